import uuid
from typing import Any

from fastapi import Request, status
from fastapi.responses import PlainTextResponse
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from forgebot.config.logging import add_request_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


class ForgebotException(Exception):
    """Base exception for forgebot."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class MissingHeader(ForgebotException):
    """A required webhook header was not sent."""

    def __init__(self, header: str):
        super().__init__(
            f"{header} header must be set",
            status.HTTP_400_BAD_REQUEST,
            {"header": header},
        )


class MalformedHeader(ForgebotException):
    """A webhook header was sent but is not valid text."""

    def __init__(self, header: str):
        super().__init__(
            f"{header} header must be UTF-8 encoded",
            status.HTTP_400_BAD_REQUEST,
            {"header": header},
        )


class UnknownEvent(ForgebotException):
    """The event header names an event kind outside the recognized set."""

    def __init__(self, raw: str):
        super().__init__(
            f"X-GitHub-Event header value '{raw}' is not a recognized event",
            status.HTTP_400_BAD_REQUEST,
            {"event": raw},
        )


class SignatureMismatch(ForgebotException):
    """
    The payload signature does not match.

    Carries no detail about why, whatever the cause.
    """

    def __init__(self):
        super().__init__("Wrong signature", status.HTTP_403_FORBIDDEN)


class MalformedPayload(ForgebotException):
    """The request body is not acceptable text."""

    def __init__(self, message: str = "Payload must be UTF-8"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ClientDisconnected(ForgebotException):
    """The client went away before the body was fully read."""

    def __init__(self):
        super().__init__("Client disconnected", status.HTTP_400_BAD_REQUEST)


class DispatchError(ForgebotException):
    """A webhook handler failed while processing an event."""

    def __init__(self, kind: str, cause: BaseException):
        self.kind = kind
        self.cause = cause
        super().__init__(
            f"request failed: {cause.__class__.__name__}: {cause}",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"event": kind},
        )


async def forgebot_exception_handler(
    request: Request, exc: ForgebotException
) -> PlainTextResponse:
    """Handle forgebot specific exceptions."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request rejected",
        exception=exc.__class__.__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=request_id,
    )

    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> PlainTextResponse:
    """Handle routing level HTTP exceptions (404, 405)."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
    )

    # 405 responses carry the Allow header Starlette put on the exception
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(
    request: Request, exc: Exception
) -> PlainTextResponse:
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

    logger.error(
        "Unhandled exception",
        exception=exc.__class__.__name__,
        message=str(exc),
        request_id=request_id,
        exc_info=exc,
    )

    return PlainTextResponse(
        "Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class RequestContextMiddleware:
    """
    Middleware to add request context and correlation IDs.

    Unexpected errors are rendered here rather than by the server error
    middleware, so every response carries the request id.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Fresh correlation ID for every request
        request_id = str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id

        add_request_context(
            request_id=request_id,
            method=scope["method"],
            path=scope["path"],
        )
        logger.info("Request received")

        response_started = False

        async def send_with_request_id(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                MutableHeaders(scope=message).append(REQUEST_ID_HEADER, request_id)
                logger.info("Response sent", status_code=message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception as exc:
            if response_started:
                raise
            response = await general_exception_handler(Request(scope), exc)
            await response(scope, receive, send_with_request_id)
