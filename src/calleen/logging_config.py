"""Structured logging for calleen.

Library modules only call structlog.get_logger(__name__) and log events with
keyword context. Applications opt in to calleen's rendering by calling
configure_logging (or configure_logging_from_settings) once at startup:
JSON lines in production, console output in development.
"""

import logging
import sys
from collections.abc import Mapping
from typing import IO, Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from calleen.config import Settings

HANDLER_NAME = "calleen"

_SENSITIVE_KEYS = frozenset(
    {"authorization", "proxy-authorization", "x-api-key", "api_key", "cookie", "set-cookie"}
)
_MASK = "***"

# Per-request logging is done by calleen itself
_QUIET_LOGGERS = ("httpx", "httpcore")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag events with the library name unless the host already set one."""
    event_dict.setdefault("app", "calleen")
    return event_dict


def _is_sensitive(key: object) -> bool:
    return str(key).lower() in _SENSITIVE_KEYS


def mask_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask credential-bearing values at the top level and one mapping deep.

    Header mappings logged by the client (e.g. headers={...}) keep their
    keys, but Authorization, API keys and cookies never reach the output.
    """
    for key, value in list(event_dict.items()):
        if _is_sensitive(key):
            event_dict[key] = _MASK
        elif isinstance(value, Mapping):
            event_dict[key] = {
                k: _MASK if _is_sensitive(k) else v for k, v in value.items()
            }
    return event_dict


def build_processors(environment: str, colors: bool = False) -> tuple[list[Processor], Processor]:
    """Return the shared processor chain and the final renderer.

    Production gets JSON with formatted exceptions; anything else gets the
    console renderer.
    """
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        mask_credentials,
    ]
    if environment.lower() == "production":
        shared.append(structlog.processors.format_exc_info)
        return shared, structlog.processors.JSONRenderer()
    return shared, structlog.dev.ConsoleRenderer(colors=colors)


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    stream: Optional[IO[str]] = None,
) -> None:
    """Route structlog and stdlib logging through one calleen handler.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            unknown names fall back to INFO
        environment: "production" for JSON output, anything else for console
        stream: Output stream (default: sys.stdout at call time)

    Calling it again replaces the previous calleen handler; handlers
    installed by the host application are left alone.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    stream = stream if stream is not None else sys.stdout
    shared, renderer = build_processors(environment, colors=stream.isatty())

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        environment=environment,
    )


def configure_logging_from_settings(settings: Settings) -> None:
    """configure_logging with LOG_LEVEL and ENVIRONMENT from Settings."""
    configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
