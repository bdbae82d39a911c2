"""Permission resolver for shell commands.

Combines the global block-list, the global allow-list and an optional
session allow-list into a PermissionVerdict. Evaluation order:

1. Command substitution / injection -> hard denial
2. Strict mode and a root outside the safe set -> hard denial
3. Shell tool globally excluded -> hard denial
4. A sub-command matching a block rule -> hard denial
5. Shell tool wildcard in the allow rules -> allowed
6. Default-deny (session allow-list given) or default-allow mode:
   unmatched sub-commands -> soft denial

Rules are matched against each sub-command as written and with its
executable reduced to the bare root, so ``/bin/rm -rf /`` and
``"rm" -rf /`` hit a ``rm`` block rule.

Hard denials are never user-overridable. Soft denials mean "not
recognised" and may be confirmed once by the user.
"""

from typing import Iterable

from agentic_guard.audit import (
    COMMAND_BLOCKLISTED,
    COMMAND_NOT_ALLOWLISTED,
    COMMAND_SUBSTITUTION_BLOCKED,
    SHELL_TOOL_DISABLED,
    STRICT_MODE_BLOCKED,
    EventLevel,
    SecurityEventEmitter,
    log_security_event,
)
from agentic_guard.logging import Loggers
from agentic_guard.shell.models import CommandPolicy, PermissionVerdict
from agentic_guard.shell.rules import (
    extract_command_prefixes,
    is_shell_wildcard,
    matches_any,
    normalize_command,
)
from agentic_guard.shell.safety import validate_command_safety
from agentic_guard.shell.substitution import SubstitutionDetector
from agentic_guard.shell.tokenizer import CommandTokenizer

SUBSTITUTION_REASON = (
    "Command substitution, variable expansion, or encoded patterns detected. "
    "This is not allowed for security reasons."
)
SHELL_DISABLED_REASON = "Shell tool is globally disabled in configuration"
SESSION_MISS_REASON = "Command(s) not on the global or session allowlist."
GLOBAL_MISS_REASON = "Command(s) not in the allowed commands list."

logger = Loggers.shell()


class PermissionResolver:
    """Decides whether a multi-command string may run.

    The resolver holds no per-call state; one instance may be shared by
    concurrent tool executions.
    """

    def __init__(
        self,
        policy: CommandPolicy | None = None,
        emitter: SecurityEventEmitter | None = None,
    ):
        """Initialize the resolver.

        Args:
            policy: Allow/block rules. Defaults to an empty policy
                (default-allow with no restrictions besides injection checks).
            emitter: Optional security event emitter for denials.
        """
        self.policy = policy or CommandPolicy()
        self.emitter = emitter
        self._detector = SubstitutionDetector()
        self._tokenizer = CommandTokenizer()

        self._blocked_prefixes = extract_command_prefixes(self.policy.exclude_tools)
        self._allowed_prefixes = extract_command_prefixes(self.policy.core_tools)
        self._shell_excluded = is_shell_wildcard(self.policy.exclude_tools)
        self._shell_wildcard_allowed = is_shell_wildcard(self.policy.core_tools)

    def check(
        self,
        command: str,
        session_allowlist: Iterable[str] | None = None,
    ) -> PermissionVerdict:
        """Check a command string against the policy.

        Args:
            command: Raw command string, possibly several commands chained.
            session_allowlist: Prefixes approved for this session. Passing
                one (even empty) selects default-deny mode.

        Returns:
            PermissionVerdict for the whole command string.
        """
        if self._detector.detect(command):
            self._emit(
                COMMAND_SUBSTITUTION_BLOCKED,
                EventLevel.ERROR,
                command=command,
                findings=self._detector.explain(command),
            )
            return PermissionVerdict.hard_denial([command], SUBSTITUTION_REASON)

        if self.policy.strict_mode:
            safety = validate_command_safety(command)
            if not safety.allowed:
                reason = f"{safety.reason} (Strict mode enabled)"
                self._emit(
                    STRICT_MODE_BLOCKED,
                    EventLevel.CRITICAL,
                    command=command,
                    unsafe_commands=list(safety.unsafe_commands),
                )
                return PermissionVerdict.hard_denial(
                    safety.unsafe_commands or [command], reason
                )

        commands = [normalize_command(c) for c in self._tokenizer.split(command)]

        if self._shell_excluded:
            self._emit(SHELL_TOOL_DISABLED, EventLevel.CRITICAL, command=command)
            return PermissionVerdict.hard_denial(commands, SHELL_DISABLED_REASON)

        for cmd in commands:
            if self._matches(cmd, self._blocked_prefixes):
                reason = f"Command '{cmd}' is blocked by configuration"
                self._emit(COMMAND_BLOCKLISTED, EventLevel.ERROR, command=cmd, reason=reason)
                return PermissionVerdict.hard_denial([cmd], reason)

        # Blocklist already cleared every sub-command
        if self._shell_wildcard_allowed:
            return self._allowed(command)

        if session_allowlist is not None:
            session_prefixes = [normalize_command(p) for p in session_allowlist]
            disallowed = [
                cmd
                for cmd in commands
                if not self._matches(cmd, session_prefixes)
                and not self._matches(cmd, self._allowed_prefixes)
            ]
            if disallowed:
                return self._soft_denial(disallowed, SESSION_MISS_REASON, mode="default_deny")
        elif self._allowed_prefixes:
            disallowed = [
                cmd for cmd in commands if not self._matches(cmd, self._allowed_prefixes)
            ]
            if disallowed:
                return self._soft_denial(disallowed, GLOBAL_MISS_REASON, mode="default_allow")

        return self._allowed(command)

    def is_allowed(self, command: str) -> tuple[bool, str | None]:
        """Check a command in default-allow mode.

        Returns:
            (allowed, reason) where reason is set only when not allowed.
        """
        verdict = self.check(command)
        if verdict.all_allowed:
            return True, None
        return False, verdict.block_reason

    def _matches(self, command: str, prefixes: list[str]) -> bool:
        """Match a sub-command as written or with its executable reduced to the root."""
        return matches_any(command, prefixes) or matches_any(
            self._tokenizer.canonical_form(command), prefixes
        )

    def _allowed(self, command: str) -> PermissionVerdict:
        logger.debug("command_allowed", command=command)
        return PermissionVerdict.allowed()

    def _soft_denial(
        self, disallowed: list[str], reason: str, mode: str
    ) -> PermissionVerdict:
        self._emit(
            COMMAND_NOT_ALLOWLISTED,
            EventLevel.WARN,
            disallowed_commands=disallowed,
            reason=reason,
            mode=mode,
        )
        return PermissionVerdict.soft_denial(disallowed, reason)

    def _emit(self, event: str, level: EventLevel, **details: object) -> None:
        if self.emitter is not None:
            self.emitter.emit(event, details, level)
        else:
            log_security_event(logger, level, "command_denied", event, **details)


def check_command_permissions(
    command: str,
    policy: CommandPolicy | None = None,
    session_allowlist: Iterable[str] | None = None,
    emitter: SecurityEventEmitter | None = None,
) -> PermissionVerdict:
    """Check a shell command against security policies and allow-lists.

    Operates in one of two modes depending on ``session_allowlist``:

    1. Default deny (session allow-list given): each command must match
       the session allow-list or a global allow rule.
    2. Default allow (no session allow-list): if global allow rules
       exist, each command must match one; otherwise anything not on the
       block-list is allowed.

    Args:
        command: The shell command string to validate.
        policy: Allow/block rules.
        session_allowlist: Session-approved command prefixes.
        emitter: Optional security event emitter.

    Returns:
        PermissionVerdict detailing which commands are not allowed.
    """
    resolver = PermissionResolver(policy, emitter)
    return resolver.check(command, session_allowlist)


def is_command_allowed(
    command: str,
    policy: CommandPolicy | None = None,
) -> tuple[bool, str | None]:
    """Check a command in default-allow mode.

    Returns:
        (allowed, reason) where reason is set only when not allowed.
    """
    return PermissionResolver(policy).is_allowed(command)
