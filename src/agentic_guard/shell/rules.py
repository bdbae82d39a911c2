"""Allow/block rule parsing and matching.

Rules use the tool-registration convention ``toolName(command-prefix)``.
A bare shell tool name is a wildcard covering every shell command. Prefixes
are matched literally at a token boundary: ``git`` matches ``git status``
and ``git`` but not ``gitk``.
"""

import re
from typing import Iterable

from agentic_guard.exceptions import PolicyConfigError

# Names under which the shell tool is registered
SHELL_TOOL_NAMES: tuple[str, ...] = ("run_shell_command", "ShellTool")

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_command(command: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RUN.sub(" ", command.strip())


def is_prefixed_by(command: str, prefix: str) -> bool:
    """Check if a normalized command starts with a rule prefix at a token boundary."""
    if not command.startswith(prefix):
        return False
    return len(command) == len(prefix) or command[len(prefix)] == " "


def matches_any(command: str, prefixes: Iterable[str]) -> bool:
    return any(is_prefixed_by(command, prefix) for prefix in prefixes)


def is_shell_wildcard(rules: Iterable[str]) -> bool:
    """Check if a rule list names the whole shell tool class."""
    rules = tuple(rules)
    return any(name in rules for name in SHELL_TOOL_NAMES)


def extract_command_prefixes(rules: Iterable[str]) -> list[str]:
    """Extract normalized command prefixes from ``toolName(prefix)`` rules.

    Rules for other tools and bare tool names are skipped.
    """
    prefixes = []
    for rule in rules:
        for tool_name in SHELL_TOOL_NAMES:
            if rule.startswith(f"{tool_name}(") and rule.endswith(")"):
                prefixes.append(normalize_command(rule[len(tool_name) + 1 : -1]))
                break
    return prefixes


def validate_rules(rules: Iterable[str]) -> list[str]:
    """Validate rule strings, returning them as a list.

    Raises:
        PolicyConfigError: If a rule is not a string or has an unbalanced
            ``toolName(`` opening.
    """
    validated = []
    for rule in rules:
        if not isinstance(rule, str):
            raise PolicyConfigError(f"Tool rule must be a string, got {type(rule).__name__}")
        if "(" in rule and not rule.endswith(")"):
            raise PolicyConfigError(f"Malformed tool rule (missing closing parenthesis): {rule!r}")
        validated.append(rule)
    return validated
