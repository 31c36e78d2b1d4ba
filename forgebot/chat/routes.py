"""
Zulip outgoing webhook endpoint.
"""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from forgebot.chat.commands import respond
from forgebot.chat.schemas import ZulipRequest, ZulipResponse
from forgebot.config.logging import get_logger
from forgebot.core.context import Context, ContextDep
from forgebot.core.registries import chat_command_registry
from forgebot.webhooks.routes import read_body

logger = get_logger(__name__)
router = APIRouter(tags=["chat"])


@router.post("/zulip-hook", response_model=None)
async def zulip_hook(
    request: Request, ctx: Context = ContextDep
) -> dict[str, Any] | PlainTextResponse:
    """Answer a message mentioning the bot in Zulip."""

    body = await read_body(request)
    try:
        zulip_request = ZulipRequest.model_validate_json(body)
    except ValidationError as e:
        return PlainTextResponse(
            f"Did not send valid JSON request: {e}", status_code=400
        )

    sender = zulip_request.message.sender_full_name or str(
        zulip_request.message.sender_id
    )
    content = await respond(
        ctx,
        chat_command_registry,
        zulip_request.token,
        zulip_request.data,
        sender,
    )

    logger.info("Chat command answered", sender_id=zulip_request.message.sender_id)
    return ZulipResponse(content=content).to_dict()
