"""Tests for approval modes and YOLO activation.

Environments are passed as plain dicts; the process environment is only
touched through monkeypatch.
"""

import pytest

from agentic_guard.approval_mode import (
    YOLO_CONFIRMATION_ENV_VAR,
    YOLO_ENV_VAR,
    ApprovalMode,
    YoloActivationResult,
    YoloModeValidator,
    resolve_approval_mode,
)
from agentic_guard.audit import (
    YOLO_MODE_ACTIVATED,
    YOLO_MODE_IN_PRODUCTION,
    YOLO_MODE_OPERATION,
    YOLO_MODE_REJECTED,
    EventLevel,
)


def validator(emitter=None, **environ) -> YoloModeValidator:
    return YoloModeValidator(emitter, environ=environ)


class TestYoloActivation:
    """Tests for validating YOLO activation."""

    def test_nothing_requested(self, emitter, events):
        """Test no activation source yields an invalid result and no events."""
        result = validator(emitter).validate_activation()

        assert result == YoloActivationResult(is_valid=False)
        assert events == []

    def test_cli_flag(self, emitter, events):
        """Test the CLI flag activates YOLO and emits a critical event."""
        result = validator(emitter).validate_activation(cli_flag=True)

        assert result.is_valid
        assert result.activation_method == "CLI_FLAG"
        assert [(e.event, e.level) for e in events] == [
            (YOLO_MODE_ACTIVATED, EventLevel.CRITICAL)
        ]
        assert events[0].details["risk"] == "HIGH"

    def test_config_and_cli(self, emitter):
        """Test every activation source is reported."""
        result = validator(emitter).validate_activation(cli_flag=True, config_flag=True)
        assert result.activation_method == "CLI_FLAG, CONFIG_FILE"

    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_env_with_confirmation(self, emitter, value):
        """Test the environment variable works once confirmed."""
        env = {YOLO_ENV_VAR: value, YOLO_CONFIRMATION_ENV_VAR: "1"}
        result = validator(emitter, **env).validate_activation()

        assert result.is_valid
        assert result.activation_method == "ENVIRONMENT_VARIABLE"

    def test_env_without_confirmation(self, emitter, events):
        """Test the environment variable alone is refused."""
        result = validator(emitter, **{YOLO_ENV_VAR: "1"}).validate_activation()

        assert not result.is_valid
        assert result.requires_confirmation
        assert f"Set {YOLO_CONFIRMATION_ENV_VAR}=1" in result.error
        assert [(e.event, e.level) for e in events] == [(YOLO_MODE_REJECTED, EventLevel.WARN)]
        assert events[0].details["required_env_var"] == YOLO_CONFIRMATION_ENV_VAR

    def test_unconfirmed_env_refuses_cli_flag_too(self, emitter):
        """Test an unconfirmed environment variable blocks any other source."""
        result = validator(emitter, **{YOLO_ENV_VAR: "1"}).validate_activation(cli_flag=True)

        assert not result.is_valid
        assert result.activation_method is None

    def test_falsy_env_ignored(self, emitter):
        """Test values other than 1/true/yes do not activate YOLO."""
        assert not validator(emitter, **{YOLO_ENV_VAR: "0"}).validate_activation().is_valid


class TestYoloContext:
    """Tests for production detection and operation logging."""

    @pytest.mark.parametrize(
        "environ",
        [
            {"NODE_ENV": "production"},
            {"ENVIRONMENT": "production"},
            {"ENV": "prod"},
            {"CI": "true"},
            {"KUBERNETES_SERVICE_HOST": "10.0.0.1"},
            {"AWS_LAMBDA_FUNCTION_NAME": "fn"},
        ],
    )
    def test_production_detected(self, environ):
        """Test each production indicator is recognised."""
        assert validator(**environ).is_production_environment()

    def test_development_not_production(self):
        """Test unrelated values are not production."""
        assert not validator(NODE_ENV="development", ENV="dev").is_production_environment()

    def test_production_context_reported(self, emitter, events):
        """Test YOLO in production is allowed but reported as critical."""
        assert validator(emitter, CI="1").validate_context() is True
        assert [(e.event, e.level) for e in events] == [
            (YOLO_MODE_IN_PRODUCTION, EventLevel.CRITICAL)
        ]

    def test_development_context_silent(self, emitter, events):
        """Test no event outside production."""
        assert validator(emitter).validate_context() is True
        assert events == []

    def test_log_operation(self, emitter, events):
        """Test bypassed operations are audited."""
        validator(emitter).log_operation("run_shell_command", "npm test", ["allowlist"])

        assert events[0].event == YOLO_MODE_OPERATION
        assert events[0].level == EventLevel.WARN
        assert events[0].details == {
            "operation": "run_shell_command",
            "command": "npm test",
            "bypassed_checks": ["allowlist"],
            "risk": "HIGH",
        }

    def test_info(self):
        """Test the environment summary."""
        env = {YOLO_ENV_VAR: "1", YOLO_CONFIRMATION_ENV_VAR: "yes"}
        assert validator(**env).info() == {
            "env_var_name": YOLO_ENV_VAR,
            "confirmation_var_name": YOLO_CONFIRMATION_ENV_VAR,
            "is_active": True,
            "activation_method": "ENVIRONMENT_VARIABLE",
        }
        assert validator().info()["is_active"] is False
        assert validator().info()["activation_method"] is None


class TestResolveApprovalMode:
    """Tests for choosing the session approval mode."""

    def test_default(self):
        """Test nothing requested stays in default mode."""
        assert resolve_approval_mode(validator()) is ApprovalMode.DEFAULT

    def test_auto_edit(self):
        """Test auto_edit is kept when YOLO is not requested."""
        assert resolve_approval_mode(validator(), auto_edit=True) is ApprovalMode.AUTO_EDIT

    def test_yolo_in_production(self, emitter, events):
        """Test a valid activation runs the production check."""
        mode = resolve_approval_mode(validator(emitter, CI="1"), cli_yolo=True)

        assert mode is ApprovalMode.YOLO
        assert [e.event for e in events] == [YOLO_MODE_ACTIVATED, YOLO_MODE_IN_PRODUCTION]

    def test_refused_falls_back(self, emitter):
        """Test a refused activation falls back to the non-YOLO mode."""
        v = validator(emitter, **{YOLO_ENV_VAR: "1"})
        assert resolve_approval_mode(v, auto_edit=True) is ApprovalMode.AUTO_EDIT
