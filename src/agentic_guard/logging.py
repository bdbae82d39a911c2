"""Structured logging configuration for agentic-guard.

Uses structlog so that every denial and path rejection is a structured
record: readable key=value lines while developing, one JSON object per
line when the events are shipped to a log pipeline.

Commands and paths in log records are untrusted input. They are clipped
to ``MAX_LOGGED_VALUE_LENGTH`` characters and control characters are
escaped before rendering, so a hostile command cannot flood or forge log
lines.
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from agentic_guard.config import GuardSettings

MAX_LOGGED_VALUE_LENGTH = 512

# Event keys that carry untrusted input
UNTRUSTED_KEYS = ("command", "path", "disallowed_commands", "unsafe_commands")


def _clip(value: str) -> str:
    value = value.encode("unicode_escape").decode("ascii") if not value.isprintable() else value
    if len(value) > MAX_LOGGED_VALUE_LENGTH:
        return f"{value[:MAX_LOGGED_VALUE_LENGTH]}... ({len(value)} chars)"
    return value


def sanitize_untrusted(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Escape and clip untrusted command/path values in a log record."""
    for key in UNTRUSTED_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str):
            event_dict[key] = _clip(value)
        elif isinstance(value, (list, tuple)):
            event_dict[key] = [_clip(v) if isinstance(v, str) else v for v in value]
    return event_dict


def _renderer(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(settings: "GuardSettings | None" = None) -> None:
    """Configure structlog and stdlib logging from settings.

    Args:
        settings: Guard settings. Without settings, logs warnings and above
            to stderr in console format.
    """
    level_name = settings.log_level if settings is not None else "warning"
    log_format = settings.log_format if settings is not None else "console"
    level = logging.getLevelName(level_name.upper())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        sanitize_untrusted,
        structlog.processors.UnicodeDecoder(),
        *_renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def get_logger(name: str | None = None, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """Get a logger, optionally pre-bound with key/value pairs."""
    if name:
        return structlog.get_logger(name, **initial_values)
    return structlog.get_logger(**initial_values)


def bind_context(**kwargs: object) -> None:
    """Bind key/value pairs to every log record in the current context.

    Example:
        bind_context(session_id=emitter.session_id)
        gateway.check_command(cmd)  # records carry session_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


class Loggers:
    """Loggers for the gateway components, each tagged with its component."""

    @staticmethod
    def shell() -> structlog.stdlib.BoundLogger:
        return get_logger("agentic_guard.shell", component="shell")

    @staticmethod
    def paths() -> structlog.stdlib.BoundLogger:
        return get_logger("agentic_guard.paths", component="paths")

    @staticmethod
    def audit() -> structlog.stdlib.BoundLogger:
        return get_logger("agentic_guard.audit", component="audit")

    @staticmethod
    def config() -> structlog.stdlib.BoundLogger:
        return get_logger("agentic_guard.config", component="config")

    @staticmethod
    def approval() -> structlog.stdlib.BoundLogger:
        return get_logger("agentic_guard.approval", component="approval")
