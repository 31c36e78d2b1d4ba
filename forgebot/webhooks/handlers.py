"""
Webhook event handlers.

Each handler implements the EventHandler protocol and is registered for one
event kind in the handler registry.
"""

from forgebot.config.logging import get_logger
from forgebot.core.context import Context
from forgebot.webhooks.events import WebhookEvent

logger = get_logger(__name__)


class PingHandler:
    """
    Acknowledges the ping GitHub sends when a webhook is created.

    Payload expected:
    {
        "zen": "Keep it logically awesome.",
        "hook_id": 12345
    }
    """

    async def handle(self, ctx: Context, event: WebhookEvent) -> bool:
        logger.info(
            "Webhook ping received",
            hook_id=event.payload.get("hook_id"),
            zen=event.payload.get("zen"),
            repository=event.repository,
        )
        # Nothing to do on GitHub's side
        return False
