"""Approval modes and guarded activation of YOLO mode.

In YOLO mode soft denials are run without asking the user. Hard denials
still apply. Activating it is deliberate and audited:

- ``--yolo`` style CLI flag or ``yolo_mode`` in settings activates it.
- ``AGENTIC_GUARD_YOLO=1`` activates it only together with
  ``AGENTIC_GUARD_YOLO_CONFIRMED=1``.
- Activation inside a production-like environment is allowed but
  reported as a critical security event.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from agentic_guard.audit import (
    YOLO_MODE_ACTIVATED,
    YOLO_MODE_IN_PRODUCTION,
    YOLO_MODE_OPERATION,
    YOLO_MODE_REJECTED,
    EventLevel,
    SecurityEventEmitter,
    log_security_event,
)
from agentic_guard.logging import Loggers

YOLO_ENV_VAR = "AGENTIC_GUARD_YOLO"
YOLO_CONFIRMATION_ENV_VAR = "AGENTIC_GUARD_YOLO_CONFIRMED"
TRUTHY_VALUES = ("1", "true", "yes")

# (variable, required value); None means any non-empty value
PRODUCTION_INDICATORS: list[tuple[str, str | None]] = [
    ("NODE_ENV", "production"),
    ("ENVIRONMENT", "production"),
    ("ENV", "prod"),
    ("CI", None),
    ("KUBERNETES_SERVICE_HOST", None),
    ("AWS_LAMBDA_FUNCTION_NAME", None),
]

logger = Loggers.approval()


class ApprovalMode(Enum):
    """How much the user is asked before a tool runs."""

    DEFAULT = "default"
    AUTO_EDIT = "auto_edit"
    YOLO = "yolo"


class YoloActivationMethod(Enum):
    CLI_FLAG = "CLI_FLAG"
    CONFIG_FILE = "CONFIG_FILE"
    ENVIRONMENT_VARIABLE = "ENVIRONMENT_VARIABLE"


@dataclass(frozen=True)
class YoloActivationResult:
    """Outcome of a YOLO activation attempt.

    Attributes:
        is_valid: YOLO mode may be used.
        activation_method: Comma-joined activation methods that were seen.
        error: Why activation was refused.
        requires_confirmation: The environment variable was set without
            its confirmation variable.
    """

    is_valid: bool
    activation_method: str | None = None
    error: str | None = None
    requires_confirmation: bool = False


class YoloModeValidator:
    """Validates YOLO mode activation and audits what it bypasses.

    Example:
        validator = YoloModeValidator(emitter)
        result = validator.validate_activation(cli_flag=args.yolo)
        if result.is_valid:
            validator.validate_context()
    """

    def __init__(
        self,
        emitter: SecurityEventEmitter | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """Initialize the validator.

        Args:
            emitter: Optional security event emitter.
            environ: Environment to read. Defaults to ``os.environ``.
        """
        self.emitter = emitter
        self.environ = os.environ if environ is None else environ

    def _flag(self, name: str) -> bool:
        return self.environ.get(name, "").lower() in TRUTHY_VALUES

    def enabled_by_env(self) -> bool:
        return self._flag(YOLO_ENV_VAR)

    def confirmed(self) -> bool:
        return self._flag(YOLO_CONFIRMATION_ENV_VAR)

    def validate_activation(
        self, cli_flag: bool = False, config_flag: bool = False
    ) -> YoloActivationResult:
        """Check whether YOLO mode may be activated.

        Args:
            cli_flag: YOLO was requested on the command line.
            config_flag: YOLO was requested in settings.

        Returns:
            YoloActivationResult. Nothing requested yields an invalid
            result without an error.
        """
        env_flag = self.enabled_by_env()
        methods = []
        if cli_flag:
            methods.append(YoloActivationMethod.CLI_FLAG.value)
        if config_flag:
            methods.append(YoloActivationMethod.CONFIG_FILE.value)
        if env_flag:
            methods.append(YoloActivationMethod.ENVIRONMENT_VARIABLE.value)

        if not methods:
            return YoloActivationResult(is_valid=False)

        activation_method = ", ".join(methods)

        if env_flag and not self.confirmed():
            error = (
                "YOLO mode detected via environment variable but not confirmed. "
                f"Set {YOLO_CONFIRMATION_ENV_VAR}=1 to proceed. "
                "WARNING: This bypasses ALL security controls."
            )
            self._emit(
                YOLO_MODE_REJECTED,
                EventLevel.WARN,
                reason="Missing confirmation",
                activation_method=activation_method,
                required_env_var=YOLO_CONFIRMATION_ENV_VAR,
            )
            return YoloActivationResult(
                is_valid=False, error=error, requires_confirmation=True
            )

        self._emit(
            YOLO_MODE_ACTIVATED,
            EventLevel.CRITICAL,
            activation_method=activation_method,
            warning="All security controls bypassed",
            risk="HIGH",
        )
        logger.warning(
            "yolo_mode_active",
            message="All confirmations are skipped for soft denials. "
            "Use in trusted environments only.",
        )
        return YoloActivationResult(is_valid=True, activation_method=activation_method)

    def is_production_environment(self) -> bool:
        for name, expected in PRODUCTION_INDICATORS:
            value = self.environ.get(name)
            if value and (expected is None or value == expected):
                return True
        return False

    def validate_context(self) -> bool:
        """Report YOLO mode running in a production-like environment.

        Never blocks; always returns True.
        """
        if self.is_production_environment():
            self._emit(
                YOLO_MODE_IN_PRODUCTION,
                EventLevel.CRITICAL,
                warning="YOLO mode attempted in production environment",
                recommendation="Consider disabling YOLO mode in production",
            )
        return True

    def log_operation(
        self, operation: str, command: str, bypassed_checks: Iterable[str]
    ) -> None:
        """Record an operation that ran without confirmation."""
        self._emit(
            YOLO_MODE_OPERATION,
            EventLevel.WARN,
            operation=operation,
            command=command,
            bypassed_checks=list(bypassed_checks),
            risk="HIGH",
        )

    def info(self) -> dict[str, Any]:
        """Describe how YOLO mode is configured through the environment."""
        env_flag = self.enabled_by_env()
        return {
            "env_var_name": YOLO_ENV_VAR,
            "confirmation_var_name": YOLO_CONFIRMATION_ENV_VAR,
            "is_active": env_flag and self.confirmed(),
            "activation_method": (
                YoloActivationMethod.ENVIRONMENT_VARIABLE.value if env_flag else None
            ),
        }

    def _emit(self, event: str, level: EventLevel, **details: object) -> None:
        if self.emitter is not None:
            self.emitter.emit(event, details, level)
        else:
            log_security_event(logger, level, "yolo_mode", event, **details)


def resolve_approval_mode(
    validator: YoloModeValidator,
    cli_yolo: bool = False,
    config_yolo: bool = False,
    auto_edit: bool = False,
) -> ApprovalMode:
    """Pick the approval mode a session runs under.

    YOLO is used only when its activation is valid; a refused activation
    falls back to the non-YOLO mode.
    """
    result = validator.validate_activation(cli_flag=cli_yolo, config_flag=config_yolo)
    if result.is_valid:
        validator.validate_context()
        return ApprovalMode.YOLO
    if result.error:
        logger.warning("yolo_mode_refused", error=result.error)
    return ApprovalMode.AUTO_EDIT if auto_edit else ApprovalMode.DEFAULT
