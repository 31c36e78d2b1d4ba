import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from forgebot.chat.commands import register_chat_commands
from forgebot.chat.routes import router as chat_router
from forgebot.config.logging import get_logger, setup_logging
from forgebot.config.settings import Settings, settings as default_settings
from forgebot.core.context import Context
from forgebot.core.exceptions import (
    ForgebotException,
    RequestContextMiddleware,
    forgebot_exception_handler,
    http_exception_handler,
)
from forgebot.core.registries import (
    chat_command_registry,
    handler_registry,
    job_registry,
)
from forgebot.infra.jobs.registry_init import register_jobs
from forgebot.infra.jobs.routes import router as jobs_router
from forgebot.infra.jobs.scheduler import JobScheduler
from forgebot.repos.routes import router as repos_router
from forgebot.webhooks.registry_init import register_event_handlers
from forgebot.webhooks.routes import router as webhook_router

logger = get_logger(__name__)


def register_all() -> None:
    """Populate and freeze the global registries."""
    register_event_handlers()
    register_jobs()
    register_chat_commands()

    handler_registry.freeze()
    job_registry.freeze()
    chat_command_registry.freeze()


def create_app(settings: Settings | None = None, context: Context | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or default_settings

    # Initialize structured logging
    setup_logging(settings)

    # Fail fast on broken job schedules before accepting traffic
    register_all()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ctx = context or Context.from_settings(settings)
        app.state.context = ctx

        scheduler_task = None
        scheduler = None
        if settings.enable_scheduler:
            scheduler = JobScheduler(ctx, job_registry)
            scheduler_task = asyncio.create_task(scheduler.start())

        logger.info("Listening", host=settings.host, port=settings.port)
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop()
                scheduler_task.cancel()
                with suppress(asyncio.CancelledError):
                    await scheduler_task
            if context is None:
                await ctx.close()

    app = FastAPI(
        title=settings.app_name,
        description="GitHub and Zulip webhook bot with cron-scheduled jobs",
        version=settings.version,
        debug=settings.debug,
        openapi_url="/openapi.json" if settings.debug else None,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(RequestContextMiddleware)

    # Add exception handlers
    app.add_exception_handler(ForgebotException, forgebot_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return f"{settings.app_name} is awaiting triage."

    app.include_router(webhook_router)
    app.include_router(chat_router)
    app.include_router(jobs_router)
    app.include_router(repos_router)

    return app


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "forgebot.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )


if __name__ == "__main__":
    run()
