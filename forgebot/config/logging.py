import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog
from structlog.typing import Processor

from .settings import Settings, settings as default_settings


def _shared_processors(debug: bool) -> list[Processor]:
    """Processors applied to both structlog and standard library records."""
    processors: list[Processor] = [
        # Request or job ids bound in the current context
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        # `extra=` fields of standard library calls
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if debug:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[structlog.processors.CallsiteParameter.FUNC_NAME]
            )
        )
    return processors


def setup_logging(settings: Settings | None = None) -> None:
    """
    Configure structured logging with structlog.

    Modules log either through ``get_logger`` or through plain
    ``logging.getLogger``; both end up in one stdout handler rendered as
    JSON lines, or as coloured console output in debug mode.
    """
    settings = settings or default_settings
    level = getattr(logging, settings.log_level)
    shared = _shared_processors(settings.debug)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *(
                [structlog.dev.ConsoleRenderer()]
                if settings.debug
                else [
                    structlog.processors.dict_tracebacks,
                    structlog.processors.JSONRenderer(),
                ]
            ),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    # Replace rather than add, create_app may run more than once
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # httpx logs every GitHub call at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def add_request_context(request_id: str, **context: Any) -> None:
    """Add request-specific context to all log messages."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **context)


def job_context(job_id: str, job_name: str, **context: Any) -> AbstractContextManager:
    """Tag every log line emitted while a job runs, including its handlers' own."""
    return structlog.contextvars.bound_contextvars(
        job_id=job_id, job_name=job_name, **context
    )
