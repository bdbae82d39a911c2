"""Strict-mode safe command set.

When a policy enables strict mode, every command root must be in
``SAFE_COMMANDS``; anything else is a hard denial.
"""

from dataclasses import dataclass, field

from agentic_guard.shell.tokenizer import get_command_roots

# Commands generally safe for development workflows
SAFE_COMMANDS: frozenset[str] = frozenset({
    # File operations
    "ls", "cat", "echo", "pwd", "mkdir", "cp", "mv", "rm", "touch", "ln",
    "head", "tail", "sort", "uniq", "wc", "diff", "file", "stat", "tree",
    # Text processing
    "grep", "find", "sed", "awk", "cut", "tr",
    # Archives
    "tar", "zip", "unzip", "gzip", "gunzip",
    # Development tools
    "git", "npm", "node", "python", "python3", "pip", "pip3", "yarn", "pnpm",
    "make", "cmake", "gcc", "g++", "clang", "javac", "java", "rustc", "cargo",
    "go", "dotnet", "php", "ruby", "perl", "lua", "R", "julia", "scala", "kotlin",
    "mvn", "gradle", "ant", "sbt", "lein", "stack", "cabal",
    # System info (read-only)
    "which", "whereis", "type", "whoami", "id", "groups", "date", "uptime",
    "df", "du", "free", "ps", "top", "htop", "env", "printenv",
    # Editors and viewers
    "vim", "nano", "emacs", "less", "more", "view", "code", "subl",
    # Network (limited)
    "curl", "wget", "ping",
    # Help
    "help", "man", "info",
    # Job control
    "jobs", "bg", "fg", "nohup",
})


@dataclass(frozen=True)
class SafetyCheckResult:
    """Result of checking a command line against the safe command set."""

    allowed: bool
    reason: str | None = None
    unsafe_commands: tuple[str, ...] = field(default_factory=tuple)


def is_safe_command(command_root: str) -> bool:
    """Check if a command root is in the safe command set."""
    return command_root in SAFE_COMMANDS


def validate_command_safety(command: str) -> SafetyCheckResult:
    """Check every root of a command line against the safe command set.

    Args:
        command: Full command line.

    Returns:
        SafetyCheckResult listing the roots that are not allowlisted.
    """
    unsafe = tuple(root for root in get_command_roots(command) if not is_safe_command(root))
    if unsafe:
        return SafetyCheckResult(
            allowed=False,
            reason=(
                f"Unsafe commands detected: {', '.join(unsafe)}. "
                "Only allowlisted commands are permitted."
            ),
            unsafe_commands=unsafe,
        )
    return SafetyCheckResult(allowed=True)
