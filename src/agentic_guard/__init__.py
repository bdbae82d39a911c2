"""agentic-guard: command and path security gateway for agentic CLIs.

Every shell command and file path an agent asks for passes through:
- Substitution/injection detection (absolute, never overridable)
- Block/allow rule resolution with hard and soft denials
- Workspace containment for file paths

Usage:
    from agentic_guard import SecurityGateway

    gateway = SecurityGateway.from_settings()
    verdict = gateway.check_command("git status && npm test")
    result = gateway.validate_path("src/main.py")
"""

from agentic_guard.approval_mode import ApprovalMode, YoloModeValidator
from agentic_guard.audit import EventLevel, SecurityEvent, SecurityEventEmitter
from agentic_guard.config import (
    GuardSettings,
    SettingsContext,
    get_settings,
    reload_settings,
    set_settings,
)
from agentic_guard.exceptions import GuardError, HardDenialError, PolicyConfigError
from agentic_guard.gateway import SecurityGateway
from agentic_guard.logging import configure_logging, get_logger
from agentic_guard.paths import (
    PathValidationResult,
    PathValidator,
    detect_path_security_issues,
    validate_and_sanitize_path,
    validate_read_path,
    validate_write_path,
)
from agentic_guard.shell import (
    CommandPolicy,
    PermissionResolver,
    PermissionVerdict,
    SessionAllowlist,
    check_command_permissions,
    contains_encoded_commands,
    detect_command_substitution,
    get_command_root,
    get_command_roots,
    is_command_allowed,
    split_commands,
)

__version__ = "0.1.0"

__all__ = [
    # Facade
    "SecurityGateway",
    # Approval modes
    "ApprovalMode",
    "YoloModeValidator",
    # Command gateway
    "CommandPolicy",
    "PermissionResolver",
    "PermissionVerdict",
    "SessionAllowlist",
    "check_command_permissions",
    "is_command_allowed",
    "detect_command_substitution",
    "contains_encoded_commands",
    "split_commands",
    "get_command_root",
    "get_command_roots",
    # Path gateway
    "PathValidator",
    "PathValidationResult",
    "validate_and_sanitize_path",
    "validate_read_path",
    "validate_write_path",
    "detect_path_security_issues",
    # Events
    "EventLevel",
    "SecurityEvent",
    "SecurityEventEmitter",
    # Configuration
    "GuardSettings",
    "SettingsContext",
    "get_settings",
    "set_settings",
    "reload_settings",
    # Logging
    "configure_logging",
    "get_logger",
    # Errors
    "GuardError",
    "HardDenialError",
    "PolicyConfigError",
]
