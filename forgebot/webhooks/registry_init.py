"""
Webhook handler registration.

Registers all event handlers with the global handler registry.
"""

import logging

from forgebot.core.registries import HandlerRegistry, handler_registry
from forgebot.webhooks.events import EventKind
from forgebot.webhooks.handlers import PingHandler

logger = logging.getLogger(__name__)


def register_event_handlers(registry: HandlerRegistry = handler_registry) -> None:
    """Register all webhook event handlers with the handler registry."""

    if registry.list():
        return

    registry.register(EventKind.PING, PingHandler())

    logger.info(
        "Event handlers registered", extra={"registered_kinds": registry.list()}
    )
