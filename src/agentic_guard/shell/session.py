"""Session-scoped command allow-list.

Lives for the process lifetime and only grows: once the user confirms a
soft-denied command, its prefix is allowed for the rest of the run.
Passing a SessionAllowlist to the resolver selects default-deny mode.
"""

import threading
from typing import Iterable, Iterator

from agentic_guard.audit import (
    SESSION_ALLOWLIST_UPDATED,
    EventLevel,
    SecurityEventEmitter,
)
from agentic_guard.exceptions import HardDenialError
from agentic_guard.shell.models import PermissionVerdict
from agentic_guard.shell.rules import normalize_command


class SessionAllowlist:
    """Additive-only set of approved command prefixes.

    Safe to share between concurrent tool executions.

    Example:
        session = SessionAllowlist()
        verdict = resolver.check("npm test", session)
        if verdict.is_soft_denial and user_confirms():
            session.approve(verdict)
    """

    def __init__(
        self,
        prefixes: Iterable[str] | None = None,
        emitter: SecurityEventEmitter | None = None,
    ):
        self._lock = threading.Lock()
        self._prefixes: list[str] = []
        self._emitter = emitter
        for prefix in prefixes or ():
            self._add(prefix)

    def _add(self, prefix: str) -> bool:
        normalized = normalize_command(prefix)
        if not normalized or normalized in self._prefixes:
            return False
        self._prefixes.append(normalized)
        return True

    def add(self, prefix: str) -> bool:
        """Add a command prefix.

        Returns:
            True if the prefix was new.
        """
        with self._lock:
            return self._add(prefix)

    def approve(self, verdict: PermissionVerdict) -> list[str]:
        """Record a one-time user confirmation of a soft denial.

        Args:
            verdict: The soft denial the user confirmed.

        Returns:
            Prefixes newly added to the session.

        Raises:
            HardDenialError: If the verdict is a hard denial.
        """
        if verdict.is_hard_denial:
            raise HardDenialError(verdict.block_reason)
        if verdict.all_allowed:
            return []

        with self._lock:
            added = [cmd for cmd in verdict.disallowed_commands if self._add(cmd)]

        if added and self._emitter is not None:
            self._emitter.emit(
                SESSION_ALLOWLIST_UPDATED,
                {"approved_commands": added},
                EventLevel.INFO,
            )
        return added

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._prefixes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __contains__(self, prefix: object) -> bool:
        if not isinstance(prefix, str):
            return False
        with self._lock:
            return normalize_command(prefix) in self._prefixes

    def __len__(self) -> int:
        with self._lock:
            return len(self._prefixes)
