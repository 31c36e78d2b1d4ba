"""
GitHub webhook endpoint.

Request pipeline: event header -> signature header -> body ->
signature check -> UTF-8 check -> dispatch.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from starlette.requests import ClientDisconnect

from forgebot.config.logging import get_logger
from forgebot.core.context import Context, ContextDep
from forgebot.core.exceptions import (
    ClientDisconnected,
    MalformedHeader,
    MalformedPayload,
    MissingHeader,
)
from forgebot.webhooks.dispatcher import Dispatcher, DispatcherDep
from forgebot.webhooks.events import DELIVERY_HEADER, EVENT_HEADER, classify
from forgebot.webhooks.signature import SIGNATURE_HEADER, assert_signed

logger = get_logger(__name__)
router = APIRouter(tags=["webhooks"])


def required_header(request: Request, name: str) -> str:
    """
    Read a header as UTF-8 text.

    Starlette decodes headers as latin-1, so the raw bytes are checked here.

    Raises:
        MissingHeader: header absent
        MalformedHeader: header present but not valid UTF-8
    """
    wanted = name.lower().encode("latin-1")
    for key, value in request.headers.raw:
        if key.lower() == wanted:
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError:
                raise MalformedHeader(name) from None
    raise MissingHeader(name)


async def read_body(request: Request) -> bytes:
    """Read the whole body, aborting if the client goes away mid-upload."""
    chunks = []
    try:
        async for chunk in request.stream():
            chunks.append(chunk)
    except ClientDisconnect:
        logger.warning("Client disconnected while sending body")
        raise ClientDisconnected() from None
    return b"".join(chunks)


@router.post("/github-hook", response_class=PlainTextResponse)
async def github_hook(
    request: Request,
    ctx: Context = ContextDep,
    dispatcher: Dispatcher = DispatcherDep,
) -> PlainTextResponse:
    """Receive a GitHub webhook delivery."""

    kind = classify(required_header(request, EVENT_HEADER))
    logger.debug("Webhook event", event_kind=str(kind))

    signature = required_header(request, SIGNATURE_HEADER)
    logger.debug("Webhook signature", signature=signature)

    payload = await read_body(request)
    assert_signed(signature, payload, ctx.settings.github_webhook_secret)

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError:
        raise MalformedPayload() from None

    delivery_id = request.headers.get(DELIVERY_HEADER)
    outcome = await dispatcher.dispatch(ctx, kind, body, delivery_id)

    logger.info("Webhook handled", event_kind=str(kind), outcome=outcome.value)
    return PlainTextResponse(outcome.response_text)
