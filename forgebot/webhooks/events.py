import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from forgebot.core.exceptions import UnknownEvent

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"


class EventKind(str, Enum):
    """Webhook events the bot recognizes, named as GitHub sends them."""

    PING = "ping"
    PUSH = "push"
    CREATE = "create"
    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"

    def __str__(self) -> str:
        return self.value


_KINDS_BY_NAME = {kind.value: kind for kind in EventKind}


def classify(raw: str) -> EventKind:
    """
    Map an ``X-GitHub-Event`` value to an event kind.

    Matching is exact and case-sensitive. Whether a recognized kind has any
    handler is the registry's business, not this function's.

    Raises:
        UnknownEvent: ``raw`` is not one of the recognized kinds
    """
    try:
        return _KINDS_BY_NAME[raw]
    except KeyError:
        raise UnknownEvent(raw) from None


@dataclass(frozen=True)
class WebhookEvent:
    """A verified, classified webhook delivery."""

    kind: EventKind
    body: str
    payload: dict[str, Any] = field(default_factory=dict)
    delivery_id: str | None = None

    @classmethod
    def parse(
        cls, kind: EventKind, body: str, delivery_id: str | None = None
    ) -> "WebhookEvent":
        """
        Decode the JSON body of a delivery.

        Raises:
            ValueError: body is not a JSON object
        """
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError(f"{kind} payload must be a JSON object")
        return cls(kind=kind, body=body, payload=payload, delivery_id=delivery_id)

    @property
    def action(self) -> str | None:
        """The ``action`` field most events carry (opened, created, ...)."""
        return self.payload.get("action")

    @property
    def repository(self) -> str | None:
        """``owner/name`` of the repository the event happened in."""
        repo = self.payload.get("repository") or {}
        return repo.get("full_name")
