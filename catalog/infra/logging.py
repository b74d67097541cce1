"""Structured logging for the console engine.

Events carry the environment name; store credentials never reach the
output. JSON lines outside development, a colored console in development.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from catalog.config import settings

# Libraries that log every request or decoded frame at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "PIL")

SECRET_KEYS = frozenset({"auth_token", "authorization", "store_auth_token"})
REDACTED = "***"


def redact_secrets(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Mask credential values bound to an event."""
    for key in event_dict.keys() & SECRET_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def add_environment(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("env", settings.environment)
    return event_dict


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure structlog and the standard logging bridge.

    Args:
        level: Minimum level name (defaults to settings)
        json_output: Force JSON or console rendering; by default JSON is
            used when enabled in settings and not in development
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level_name}'")
    if json_output is None:
        json_output = settings.log_json and settings.environment != "dev"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_environment,
        redact_secrets,
    ]
    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Logger for ``name`` with ``initial_context`` bound to every event."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
