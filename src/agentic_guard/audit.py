"""Security events emitted by the gateway.

Every denial and every path validation failure produces a SecurityEvent.
Events are written through structlog and handed to any sinks the caller
registers; persisting them is the caller's job.
"""

import getpass
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from agentic_guard.logging import Loggers


class EventLevel(Enum):
    """Severity of a security event."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"


EventSink = Callable[["SecurityEvent"], None]

# Security event names
COMMAND_SUBSTITUTION_BLOCKED = "COMMAND_SUBSTITUTION_BLOCKED"
STRICT_MODE_BLOCKED = "STRICT_MODE_BLOCKED"
SHELL_TOOL_DISABLED = "SHELL_TOOL_DISABLED"
COMMAND_BLOCKLISTED = "COMMAND_BLOCKLISTED"
COMMAND_NOT_ALLOWLISTED = "COMMAND_NOT_ALLOWLISTED"
SESSION_ALLOWLIST_UPDATED = "SESSION_ALLOWLIST_UPDATED"
PATH_VALIDATION_FAILED = "PATH_VALIDATION_FAILED"
YOLO_MODE_REJECTED = "YOLO_MODE_REJECTED"
YOLO_MODE_ACTIVATED = "YOLO_MODE_ACTIVATED"
YOLO_MODE_IN_PRODUCTION = "YOLO_MODE_IN_PRODUCTION"
YOLO_MODE_OPERATION = "YOLO_MODE_OPERATION"

# structlog method each severity is logged with
LOG_METHOD_NAMES = {
    EventLevel.INFO: "info",
    EventLevel.WARN: "warning",
    EventLevel.ERROR: "error",
    EventLevel.CRITICAL: "critical",
}


def log_security_event(
    logger: Any, level: EventLevel, message: str, event: str, **details: Any
) -> None:
    """Write a security event to ``logger`` at the method matching ``level``."""
    log = getattr(logger, LOG_METHOD_NAMES[level])
    log(message, security_event=event, **details)


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _current_dir() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


@dataclass
class SecurityEvent:
    """A single structured security event.

    Attributes:
        event: Event name, e.g. ``COMMAND_BLOCKLISTED``.
        level: Severity.
        details: Event-specific payload (command, reason, findings...).
        timestamp: ISO-8601 UTC timestamp.
        session_id: Session the event belongs to.
        user: OS user running the gateway.
        pid: Process id.
        cwd: Working directory at emission time.
    """

    event: str
    level: EventLevel
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    session_id: str | None = None
    user: str = field(default_factory=_current_user)
    pid: int = field(default_factory=os.getpid)
    cwd: str = field(default_factory=_current_dir)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            "timestamp": self.timestamp,
            "event": self.event,
            "level": self.level.value,
            "details": dict(self.details),
            "user": self.user,
            "pid": self.pid,
            "cwd": self.cwd,
        }
        if self.session_id is not None:
            data["session_id"] = self.session_id
        return data


class SecurityEventEmitter:
    """Emits security events to the log and to registered sinks.

    A failing sink is logged and skipped; it never changes a verdict.

    Example:
        events = []
        emitter = SecurityEventEmitter(sinks=[events.append])
        emitter.emit(COMMAND_BLOCKLISTED, {"command": "rm -rf /"}, EventLevel.ERROR)
    """

    def __init__(
        self,
        session_id: str | None = None,
        sinks: list[EventSink] | None = None,
    ):
        self.session_id = session_id or self._generate_session_id()
        self._sinks: list[EventSink] = list(sinks or [])
        self._logger = Loggers.audit()

    def _generate_session_id(self) -> str:
        return str(uuid.uuid4())[:8]

    def add_sink(self, sink: EventSink) -> None:
        """Register a callable that receives every emitted event."""
        self._sinks.append(sink)

    def emit(
        self,
        event: str,
        details: dict[str, Any] | None = None,
        level: EventLevel = EventLevel.WARN,
    ) -> SecurityEvent:
        """Create, log and dispatch a security event.

        Args:
            event: Event name.
            details: Event payload.
            level: Severity.

        Returns:
            The emitted SecurityEvent.
        """
        record = SecurityEvent(
            event=event,
            level=level,
            details=details or {},
            session_id=self.session_id,
        )
        self._log(record)

        for sink in self._sinks:
            try:
                sink(record)
            except Exception as e:
                self._logger.warning(
                    "security_event_sink_failed",
                    security_event=event,
                    error=str(e),
                )

        return record

    def _log(self, record: SecurityEvent) -> None:
        log_security_event(
            self._logger,
            record.level,
            "security_event",
            record.event,
            session_id=record.session_id,
            **record.details,
        )
