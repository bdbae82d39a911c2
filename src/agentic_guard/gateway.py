"""Security gateway facade.

Bundles a command policy, a workspace root and a security event emitter
so tool implementations have a single object to ask before running a
shell command or touching a file.

Usage:
    gateway = SecurityGateway.from_settings()
    session = gateway.new_session_allowlist()

    verdict = gateway.check_command("npm test", session)
    if gateway.needs_confirmation("npm test", verdict) and user_confirms():
        session.approve(verdict)

    result = gateway.validate_write_path("out/report.md")
"""

import os
from typing import Iterable

from agentic_guard.approval_mode import ApprovalMode, YoloModeValidator, resolve_approval_mode
from agentic_guard.audit import SecurityEventEmitter
from agentic_guard.config import GuardSettings, get_settings
from agentic_guard.exceptions import HardDenialError
from agentic_guard.logging import Loggers
from agentic_guard.paths.validator import PathValidationResult, PathValidator
from agentic_guard.shell.models import CommandPolicy, PermissionVerdict
from agentic_guard.shell.permissions import PermissionResolver
from agentic_guard.shell.session import SessionAllowlist

logger = Loggers.shell()


class SecurityGateway:
    """Single entry point for command and path checks.

    Policy and workspace root are fixed at construction; the gateway
    never mutates them.
    """

    def __init__(
        self,
        policy: CommandPolicy | None = None,
        workspace_root: str | os.PathLike[str] | None = None,
        emitter: SecurityEventEmitter | None = None,
        approval_mode: ApprovalMode = ApprovalMode.DEFAULT,
    ):
        self.policy = policy or CommandPolicy()
        self.emitter = emitter or SecurityEventEmitter()
        self.approval_mode = approval_mode
        self._yolo = YoloModeValidator(self.emitter)
        self._resolver = PermissionResolver(self.policy, self.emitter)
        self._paths = PathValidator(workspace_root, self.emitter)

    @classmethod
    def from_settings(
        cls,
        settings: GuardSettings | None = None,
        emitter: SecurityEventEmitter | None = None,
        cli_yolo: bool = False,
    ) -> "SecurityGateway":
        """Build a gateway from settings.

        Args:
            settings: Guard settings. Uses get_settings() if not provided.
            emitter: Optional event emitter; a new one is created otherwise.
            cli_yolo: YOLO mode was requested on the command line.
        """
        settings = settings or get_settings()
        gateway = cls(
            policy=settings.to_policy(),
            workspace_root=settings.workspace_root,
            emitter=emitter,
        )
        gateway.approval_mode = resolve_approval_mode(
            gateway._yolo,
            cli_yolo=cli_yolo,
            config_yolo=settings.approval_mode == "yolo",
            auto_edit=settings.approval_mode == "auto_edit",
        )
        logger.debug(
            "gateway_created",
            allow_rules=len(gateway.policy.core_tools),
            block_rules=len(gateway.policy.exclude_tools),
            strict_mode=gateway.policy.strict_mode,
            approval_mode=gateway.approval_mode.value,
            workspace_root=str(settings.workspace_root),
        )
        return gateway

    @property
    def workspace_root(self) -> str:
        return self._paths.workspace_root

    def new_session_allowlist(self, prefixes: Iterable[str] | None = None) -> SessionAllowlist:
        """Create a session allow-list that reports approvals to this gateway's emitter."""
        return SessionAllowlist(prefixes, emitter=self.emitter)

    def check_command(
        self,
        command: str,
        session_allowlist: Iterable[str] | None = None,
    ) -> PermissionVerdict:
        """Check a shell command. See :meth:`PermissionResolver.check`."""
        return self._resolver.check(command, session_allowlist)

    def needs_confirmation(self, command: str, verdict: PermissionVerdict) -> bool:
        """Decide whether the user must confirm a checked command.

        Soft denials need confirmation unless the gateway runs in YOLO
        mode, where the bypass is recorded as a security event instead.

        Raises:
            HardDenialError: If the verdict is a hard denial, in any mode.
        """
        if verdict.is_hard_denial:
            raise HardDenialError(verdict.block_reason)
        if verdict.all_allowed:
            return False
        if self.approval_mode is ApprovalMode.YOLO:
            self._yolo.log_operation(
                "run_shell_command", command, ["allowlist confirmation"]
            )
            return False
        return True

    def is_command_allowed(self, command: str) -> tuple[bool, str | None]:
        """Check a shell command in default-allow mode."""
        return self._resolver.is_allowed(command)

    def validate_path(self, path: object) -> PathValidationResult:
        return self._paths.validate(path)

    def validate_read_path(self, path: object) -> PathValidationResult:
        return self._paths.validate_read(path)

    def validate_write_path(self, path: object) -> PathValidationResult:
        return self._paths.validate_write(path)
