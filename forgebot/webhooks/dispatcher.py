from enum import Enum

from fastapi import Depends

from forgebot.config.logging import get_logger
from forgebot.core.context import Context
from forgebot.core.exceptions import DispatchError
from forgebot.core.registries import HandlerRegistry, handler_registry
from forgebot.webhooks.events import EventKind, WebhookEvent

logger = get_logger(__name__)


class DispatchOutcome(str, Enum):
    """Whether any handler acted on an event."""

    PROCESSED = "processed"
    IGNORED = "ignored"

    @property
    def response_text(self) -> str:
        return f"{self.value} request"


class Dispatcher:
    """Routes a verified webhook event to the handlers registered for its kind."""

    def __init__(self, registry: HandlerRegistry):
        self.registry = registry

    async def dispatch(
        self,
        ctx: Context,
        kind: EventKind,
        body: str,
        delivery_id: str | None = None,
    ) -> DispatchOutcome:
        """
        Run every handler for ``kind`` in registration order.

        Returns:
            PROCESSED if at least one handler acted, IGNORED otherwise
            (including when no handler is registered).

        Raises:
            DispatchError: the payload could not be decoded or a handler
                failed; handlers after the failing one are not run.
        """
        handlers = self.registry.handlers_for(kind)
        if not handlers:
            logger.debug("No handlers registered", event_kind=str(kind))
            return DispatchOutcome.IGNORED

        try:
            event = WebhookEvent.parse(kind, body, delivery_id)
        except ValueError as e:
            raise DispatchError(str(kind), e) from e

        processed = False
        for handler in handlers:
            handler_name = type(handler).__name__
            try:
                acted = await handler.handle(ctx, event)
            except Exception as e:
                logger.exception(
                    "Handler failed",
                    event_kind=str(kind),
                    handler=handler_name,
                    delivery_id=delivery_id,
                )
                raise DispatchError(str(kind), e) from e

            logger.debug(
                "Handler finished", event_kind=str(kind), handler=handler_name, acted=acted
            )
            processed = processed or bool(acted)

        return DispatchOutcome.PROCESSED if processed else DispatchOutcome.IGNORED


def get_dispatcher() -> Dispatcher:
    """Dependency injection for the dispatcher over the global handler registry."""
    return Dispatcher(handler_registry)


# Convenience type alias for dependency injection
DispatcherDep = Depends(get_dispatcher)
