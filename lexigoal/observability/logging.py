"""Structured logging setup for applications embedding lexigoal.

Engine modules log through the standard ``logging`` module; the
coordinator emits structlog events. ``configure_logging`` wires both to
the configured level: console rendering in dev, JSON elsewhere.
"""

import logging

import structlog

from lexigoal.config.settings import Environment, Settings, get_settings

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def log_level(settings: Settings) -> int:
    return _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value]


def configure_logging(settings: Settings | None = None) -> structlog.stdlib.BoundLogger:
    """Configure structlog and the ``lexigoal`` stdlib logger; return a bound logger."""
    settings = settings or get_settings()
    level = log_level(settings)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == Environment.DEV
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.getLogger("lexigoal").setLevel(level)

    return structlog.get_logger()
