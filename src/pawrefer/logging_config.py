"""Structured logging for the API, the CLI and Alembic runs."""

import logging
import sys

import structlog

from pawrefer.settings import settings

# Third-party loggers that are chatty at INFO (Firebase token fetches, SQL echo)
_NOISY_LOGGERS = ("google.auth", "urllib3", "cachecontrol", "sqlalchemy.engine")

_configured = False


def _processors(log_format: str) -> list:
    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if log_format == "json":
        return shared + [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return shared + [
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.dev.ConsoleRenderer(),
    ]


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog once per process.

    Args:
        level: Overrides ``LOG_LEVEL``
        log_format: Overrides ``LOG_FORMAT``; production defaults to JSON
    """
    global _configured
    if _configured and level is None and log_format is None:
        return

    level = level or settings.log_level
    if log_format is None:
        log_format = "json" if settings.is_production else settings.log_format

    structlog.configure(
        processors=_processors(log_format),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Standard logging for uvicorn, alembic and friends
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLevelName(level)))

    _configured = True


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger bound to ``name``."""
    return structlog.get_logger(name)
