"""Exceptions raised by agentic-guard.

Validators never raise for untrusted input: they return a verdict or a
validation result. These exceptions signal caller or configuration errors.
"""


class GuardError(Exception):
    """Base class for agentic-guard errors."""

    pass


class PolicyConfigError(GuardError):
    """Raised when allow/block rules or a policy file cannot be used."""

    pass


class HardDenialError(GuardError):
    """Raised when a caller tries to approve a hard denial.

    Hard denials (command substitution, blocklist hits) are never
    user-overridable.
    """

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(
            f"Hard denials cannot be approved: {reason}" if reason
            else "Hard denials cannot be approved"
        )
