"""
Structured logging for the chronicle service, built on structlog.

Every record carries the environment and the data path the process was
started in (``live`` or ``demo``), so fallback warnings can be told apart
from a service that never had a database. Standard-library loggers
(uvicorn, SQLAlchemy, asyncpg) are routed through the same renderer.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, WrappedLogger

from finhistory.core.config import settings

# Third-party loggers and the level they are capped at.
QUIET_LOGGERS: dict[str, int] = {
    "uvicorn.access": logging.WARNING,
    "asyncpg": logging.WARNING,
    "httpx": logging.WARNING,
}


def _add_service_fields(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("environment", settings.environment)
    event_dict.setdefault("data_path", "live" if settings.has_database_config else "demo")
    return event_dict


def _renderer() -> Any:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(level: str | None = None) -> None:
    """
    Configure structlog and the root logger.

    Safe to call more than once (the app lifespan and the import script
    both call it); each call replaces the root handler.

    Args:
        level: Overrides LOG_LEVEL when given.
    """
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        _add_service_fields,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer()],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level or settings.log_level)

    for name, cap in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(cap)
    # SQL echo goes through logging rather than the engine's own handler
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.db_echo else logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger for a module; pass ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """
    Attach key/value pairs to every log call in the current context.

    Usage:
        bind_context(request_id="abc123", path="/api/v1/events")
        logger.info("Serving request")  # includes request_id and path
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
