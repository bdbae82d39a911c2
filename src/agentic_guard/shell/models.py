"""Data models for the command gateway.

Provides the permission verdict returned for every command check and the
policy record the resolver is evaluated against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(frozen=True)
class CommandPolicy:
    """Allow/block rules the permission resolver is evaluated against.

    Attributes:
        core_tools: Allow rules. A bare shell tool name allows every
            command; ``run_shell_command(git status)`` allows commands
            starting with ``git status``.
        exclude_tools: Block rules, same syntax. Always win over allow rules.
        strict_mode: Only allow commands whose root is in the built-in
            safe command set.
    """

    core_tools: tuple[str, ...] = ()
    exclude_tools: tuple[str, ...] = ()
    strict_mode: bool = False

    @classmethod
    def from_lists(
        cls,
        core_tools: Iterable[str] | None = None,
        exclude_tools: Iterable[str] | None = None,
        strict_mode: bool = False,
    ) -> "CommandPolicy":
        """Build a policy from any iterables of rule strings."""
        return cls(
            core_tools=tuple(core_tools or ()),
            exclude_tools=tuple(exclude_tools or ()),
            strict_mode=strict_mode,
        )


@dataclass(frozen=True)
class PermissionVerdict:
    """Outcome of checking a multi-command string.

    Attributes:
        all_allowed: Every sub-command may run.
        disallowed_commands: Sub-commands that were rejected.
        block_reason: User-visible explanation for a rejection.
        is_hard_denial: The rejection can never be overridden by the user.
    """

    all_allowed: bool
    disallowed_commands: tuple[str, ...] = field(default_factory=tuple)
    block_reason: str | None = None
    is_hard_denial: bool = False

    @classmethod
    def allowed(cls) -> "PermissionVerdict":
        return cls(all_allowed=True)

    @classmethod
    def hard_denial(
        cls, disallowed: Iterable[str], reason: str
    ) -> "PermissionVerdict":
        return cls(
            all_allowed=False,
            disallowed_commands=tuple(disallowed),
            block_reason=reason,
            is_hard_denial=True,
        )

    @classmethod
    def soft_denial(
        cls, disallowed: Iterable[str], reason: str
    ) -> "PermissionVerdict":
        return cls(
            all_allowed=False,
            disallowed_commands=tuple(disallowed),
            block_reason=reason,
            is_hard_denial=False,
        )

    @property
    def is_soft_denial(self) -> bool:
        """Check if the user may confirm the command once."""
        return not self.all_allowed and not self.is_hard_denial

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for tool results and event details."""
        return {
            "all_allowed": self.all_allowed,
            "disallowed_commands": list(self.disallowed_commands),
            "block_reason": self.block_reason,
            "is_hard_denial": self.is_hard_denial,
        }
