"""structlog configuration shared by the API process and Celery workers."""
import logging

import structlog

from instafeed.config import Settings


def _resolve_level(level: str | None, environment: str) -> int:
    if level:
        normalized = level.strip().upper()
    else:
        normalized = "INFO" if environment.lower() == "production" else "DEBUG"
    return logging.getLevelNamesMapping().get(normalized, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """JSON logs in production, console rendering elsewhere.

    Stdlib loggers (integrations, services, tasks) go through basicConfig at
    the same level.
    """
    level = _resolve_level(settings.LOG_LEVEL, settings.APP_ENV)
    logging.basicConfig(level=level)
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.APP_ENV == "production"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )
