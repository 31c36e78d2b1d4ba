"""
Chat commands and their registration.
"""

import hmac
import logging

from forgebot.core.context import Context
from forgebot.core.registries import ChatCommandRegistry, chat_command_registry

logger = logging.getLogger(__name__)


class HelpCommand:
    """Lists the commands the bot understands."""

    def __init__(self, registry: ChatCommandRegistry):
        self.registry = registry

    async def respond(self, ctx: Context, sender: str, args: list[str]) -> str:
        names = ", ".join(f"`{name}`" for name in sorted(self.registry.list()))
        return f"Hi {sender}! I understand: {names}."


def register_chat_commands(registry: ChatCommandRegistry = chat_command_registry) -> None:
    """Register all chat commands with the chat command registry."""

    if registry.list():
        return

    registry.register("help", HelpCommand(registry))

    logger.info("Chat commands registered", extra={"registered_commands": registry.list()})


async def respond(
    ctx: Context,
    registry: ChatCommandRegistry,
    token: str,
    data: str,
    sender: str,
) -> str:
    """Reply content for a chat message addressed to the bot."""
    expected = ctx.settings.zulip_token
    if not expected or not hmac.compare_digest(token.encode(), expected.encode()):
        return "Invalid authorization."

    words = data.split()
    if not words:
        return "Empty command. Try `help`."

    command_name, args = words[0], words[1:]
    try:
        command = registry.get(command_name)
    except KeyError:
        return f"Unknown command: `{command_name}`. Try `help`."

    return await command.respond(ctx, sender, args)
