"""Gateway configuration.

GuardSettings carries the externally supplied policy: allow/block tool
rules, strict mode, the workspace root that bounds file access, and
logging options. The gateway only reads it.

Sources, highest priority first:
    1. Keyword arguments
    2. AGENTIC_GUARD_* environment variables
    3. ./.agentic_guard/settings.json (project)
    4. ~/.agentic_guard/settings.json (user)
    5. .env in the working directory
    6. Field defaults

Policy files in YAML are loaded explicitly with GuardSettings.from_yaml().

Access:
    set_settings(s) / get_settings() for a process-wide instance;
    ``with SettingsContext(s):`` to override it for one context (tests,
    concurrent sessions with different policies).
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Iterator, Literal, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings as PydanticBaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from agentic_guard.exceptions import PolicyConfigError
from agentic_guard.logging import Loggers
from agentic_guard.shell.models import CommandPolicy
from agentic_guard.shell.rules import validate_rules

__all__ = [
    "GuardSettings",
    "SettingsContext",
    "get_settings",
    "set_settings",
    "set_context_settings",
    "get_context_settings",
    "reload_settings",
]

CONFIG_DIR_NAME = ".agentic_guard"
SETTINGS_FILE_NAME = "settings.json"

logger = Loggers.config()


def settings_file_candidates() -> list[Path]:
    """JSON settings files in priority order (project before user)."""
    return [
        Path.cwd() / CONFIG_DIR_NAME / SETTINGS_FILE_NAME,
        Path.home() / CONFIG_DIR_NAME / SETTINGS_FILE_NAME,
    ]


class GuardSettings(PydanticBaseSettings):
    """Policy and runtime settings for the security gateway.

    Rule syntax for ``core_tools`` / ``exclude_tools``:
    - ``run_shell_command`` (or ``ShellTool``): the whole shell tool class
    - ``run_shell_command(git status)``: commands starting with ``git status``
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENTIC_GUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(
        default="agentic_guard",
        title="App Name",
        description="Name reported in logs and events",
    )

    core_tools: list[str] = Field(
        default_factory=list,
        title="Allowed Tools",
        description="Allow rules: tool names or toolName(command-prefix)",
    )
    exclude_tools: list[str] = Field(
        default_factory=list,
        title="Excluded Tools",
        description="Block rules; always win over allow rules",
    )
    strict_mode: bool = Field(
        default=False,
        title="Strict Mode",
        description="Hard-deny any command whose root is not in the safe command set",
    )

    approval_mode: Literal["default", "auto_edit", "yolo"] = Field(
        default="default",
        title="Approval Mode",
        description="yolo runs soft denials without confirmation; hard denials still apply",
    )

    workspace_root: Path = Field(
        default_factory=Path.cwd,
        title="Workspace Root",
        description="Directory that bounds all file access",
    )

    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        title="Log Level",
        description="Minimum level of log records and security events written",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        title="Log Format",
        description="console for people, json for log pipelines",
    )

    @field_validator("workspace_root", mode="before")
    @classmethod
    def expand_workspace_root(cls, v: Any) -> Any:
        return Path(v).expanduser() if isinstance(v, str) else v

    @field_validator("core_tools", "exclude_tools", mode="after")
    @classmethod
    def check_rules(cls, v: list[str]) -> list[str]:
        return validate_rules(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[PydanticBaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Insert existing JSON settings files between env and dotenv."""
        json_sources = [
            JsonConfigSettingsSource(settings_cls, json_file=path)
            for path in settings_file_candidates()
            if path.is_file()
        ]
        return (init_settings, env_settings, *json_sources, dotenv_settings)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "GuardSettings":
        """Load settings from a YAML policy file.

        Values in the file take precedence over every other source. A
        missing or empty file yields the settings from the other sources.

        Raises:
            PolicyConfigError: If the file cannot be parsed, is not a
                mapping, or contains a malformed rule.
        """
        path = Path(path).expanduser()
        if not path.exists():
            logger.debug("policy_file_missing", path=str(path))
            return cls()

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise PolicyConfigError(f"Cannot read policy file {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise PolicyConfigError(f"Policy file {path} must contain a mapping")

        settings = cls(**data)
        logger.info(
            "policy_file_loaded",
            path=str(path),
            allow_rules=len(settings.core_tools),
            block_rules=len(settings.exclude_tools),
        )
        return settings

    def to_policy(self) -> CommandPolicy:
        """Build the command policy the resolver evaluates against."""
        return CommandPolicy.from_lists(self.core_tools, self.exclude_tools, self.strict_mode)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


_settings_context: ContextVar[GuardSettings | None] = ContextVar(
    "agentic_guard_settings", default=None
)
_global_settings: GuardSettings | None = None


def get_settings() -> GuardSettings:
    """Return the active settings.

    A context override wins over the process-wide instance; the
    process-wide instance is created from the environment on first use.
    """
    scoped = _settings_context.get()
    if scoped is not None:
        return scoped

    global _global_settings
    if _global_settings is None:
        _global_settings = GuardSettings()
    return _global_settings


def set_settings(settings: GuardSettings) -> None:
    global _global_settings
    _global_settings = settings


def set_context_settings(settings: GuardSettings | None) -> Token:
    """Override settings for the current context; pass None to clear.

    Returns the token for ``ContextVar.reset``.
    """
    return _settings_context.set(settings)


def get_context_settings() -> GuardSettings | None:
    return _settings_context.get()


@contextmanager
def SettingsContext(settings: GuardSettings) -> Iterator[GuardSettings]:
    """Use ``settings`` for the duration of the block.

    Example:
        with SettingsContext(GuardSettings(strict_mode=True)):
            gateway = SecurityGateway.from_settings()
    """
    token = _settings_context.set(settings)
    try:
        yield settings
    finally:
        _settings_context.reset(token)


def reload_settings() -> GuardSettings:
    """Drop the process-wide instance and any context override, then rebuild."""
    global _global_settings
    _global_settings = None
    _settings_context.set(None)
    return get_settings()
