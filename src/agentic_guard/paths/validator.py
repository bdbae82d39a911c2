"""Path validation for agent-initiated file operations.

Canonicalizes candidate paths against a workspace root and rejects
anything that could escape it:
- Null bytes and control characters
- Parent-directory references, home-directory and environment-variable
  syntax, percent-encoded and hex-escaped sequences
- Resolved paths outside the workspace
- Symbolic links whose targets leave the workspace

Never raises for untrusted input; every failure is a PathValidationResult
with a descriptive error.
"""

import os
import re
from dataclasses import dataclass
from typing import Any

from agentic_guard.audit import (
    PATH_VALIDATION_FAILED,
    EventLevel,
    SecurityEventEmitter,
    log_security_event,
)
from agentic_guard.logging import Loggers

MAX_SAFE_PATH_LENGTH = 4096

# Patterns rejected outright, checked in order
SUSPICIOUS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\.\.[\\/]"),  # ../ or ..\
    re.compile(r"[\\/]\.\.$"),  # /.. or \.. at end
    re.compile(r"^\.\.[\\/]"),  # ../ or ..\ at start
    re.compile(r"^\.\.$"),  # Just ".."
    re.compile(r"~[\\/]"),  # Home directory references
    re.compile(r"\$[({]?\w+[)}]?"),  # Environment variable references
    re.compile(r"%[0-9a-fA-F]{2}"),  # URL encoded characters
    re.compile(r"\\x[0-9a-fA-F]{2}"),  # Hex encoded characters
]

CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x1f\x7f-\x9f]")
ENV_VAR_PATTERN = re.compile(r"\$[({]?\w+[)}]?")
URL_ENCODED_PATTERN = re.compile(r"%[0-9a-fA-F]{2}")
HEX_ENCODED_PATTERN = re.compile(r"\\x[0-9a-fA-F]{2}")

logger = Loggers.paths()


@dataclass(frozen=True)
class PathValidationResult:
    """Result of validating a candidate path.

    Attributes:
        is_valid: The path may be used.
        sanitized_path: Canonical absolute path (only when valid).
        error: Why the path was rejected (only when invalid).
    """

    is_valid: bool
    sanitized_path: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, sanitized_path: str) -> "PathValidationResult":
        return cls(is_valid=True, sanitized_path=sanitized_path)

    @classmethod
    def fail(cls, error: str) -> "PathValidationResult":
        return cls(is_valid=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "sanitized_path": self.sanitized_path,
            "error": self.error,
        }


class PathValidator:
    """Validates paths against a single workspace root.

    The workspace root is re-canonicalized on every call, so a root that
    did not exist at a previous check is resolved properly once it does.
    """

    def __init__(
        self,
        workspace_root: str | os.PathLike[str] | None = None,
        emitter: SecurityEventEmitter | None = None,
    ):
        """Initialize path validator.

        Args:
            workspace_root: Trust boundary. Defaults to the current working
                directory.
            emitter: Optional security event emitter for failures.
        """
        self.workspace_root = os.fspath(workspace_root) if workspace_root else os.getcwd()
        self.emitter = emitter

    def canonical_root(self) -> tuple[str, bool]:
        """Canonicalize the workspace root.

        Returns:
            (root, exists). Falls back to lexical normalization when the
            root does not exist yet.
        """
        try:
            return os.path.realpath(self.workspace_root, strict=True), True
        except OSError:
            return os.path.abspath(self.workspace_root), False

    def validate(self, path: object) -> PathValidationResult:
        """Validate and canonicalize a path.

        Args:
            path: Candidate path, relative to the workspace root or absolute.

        Returns:
            PathValidationResult with the canonical path on success.
        """
        try:
            result = self._validate(path)
        except (OSError, ValueError) as e:
            result = PathValidationResult.fail(f"Path validation failed: {e}")
        return self._report(path, result)

    def _validate(self, path: object) -> PathValidationResult:
        if not path or not isinstance(path, str):
            return PathValidationResult.fail("File path is required and must be a string")

        if "\0" in path:
            return PathValidationResult.fail(
                "File path contains null bytes, which is not allowed"
            )

        if CONTROL_CHAR_PATTERN.search(path):
            return PathValidationResult.fail(
                "File path contains control characters, which is not allowed"
            )

        for pattern in SUSPICIOUS_PATTERNS:
            if pattern.search(path):
                return PathValidationResult.fail(
                    f"File path contains suspicious pattern: {pattern.pattern}"
                )

        root, root_exists = self.canonical_root()
        resolved = os.path.normpath(os.path.join(root, path))

        if not self._is_within(resolved, root) and root_exists:
            # Absolute paths spelled through a symlinked alias of the root
            real = os.path.realpath(resolved)
            if self._is_within(real, root):
                resolved = real

        if not self._is_within(resolved, root):
            return PathValidationResult.fail(
                f"Path traversal detected: resolved path '{resolved}' "
                f"is outside workspace '{root}'"
            )

        if root_exists:
            escape = self._check_links(resolved, root)
            if escape:
                return PathValidationResult.fail(escape)

        return PathValidationResult.ok(resolved)

    def _check_links(self, resolved: str, root: str) -> str | None:
        """Re-apply containment to the real location of a path."""
        try:
            if os.path.islink(resolved):
                real = os.path.realpath(resolved)
                if not self._is_within(real, root):
                    return f"Symlink points outside workspace: '{real}' is outside '{root}'"
                return None

            # Symlinked parent directories
            real = os.path.realpath(resolved)
            if not self._is_within(real, root):
                return (
                    f"Path resolves outside workspace through a symlink: "
                    f"'{real}' is outside '{root}'"
                )
        except OSError as e:
            return f"Error validating symlink: {e}"
        return None

    def validate_read(self, path: object) -> PathValidationResult:
        """Validate a path for reading: must exist, be a file and be readable."""
        base = self.validate(path)
        if not base.is_valid:
            return base

        sanitized = base.sanitized_path
        try:
            if not os.path.exists(sanitized):
                result = PathValidationResult.fail(f"File does not exist: {sanitized}")
            elif os.path.isdir(sanitized):
                result = PathValidationResult.fail(
                    f"Path is a directory, not a file: {sanitized}"
                )
            elif not os.access(sanitized, os.R_OK):
                result = PathValidationResult.fail(f"File is not readable: {sanitized}")
            else:
                result = base
        except OSError as e:
            result = PathValidationResult.fail(f"Read validation failed: {e}")
        return self._report(path, result)

    def validate_write(self, path: object) -> PathValidationResult:
        """Validate a path for writing.

        The parent directory must exist and be writable; an existing target
        must be a writable file.
        """
        base = self.validate(path)
        if not base.is_valid:
            return base

        sanitized = base.sanitized_path
        parent = os.path.dirname(sanitized)
        try:
            if not os.path.exists(parent):
                result = PathValidationResult.fail(f"Parent directory does not exist: {parent}")
            elif not os.access(parent, os.W_OK):
                result = PathValidationResult.fail(f"Parent directory is not writable: {parent}")
            elif os.path.exists(sanitized) and os.path.isdir(sanitized):
                result = PathValidationResult.fail(
                    f"Path is a directory, not a file: {sanitized}"
                )
            elif os.path.exists(sanitized) and not os.access(sanitized, os.W_OK):
                result = PathValidationResult.fail(f"File is not writable: {sanitized}")
            else:
                result = base
        except OSError as e:
            result = PathValidationResult.fail(f"Write validation failed: {e}")
        return self._report(path, result)

    def _is_within(self, path: str, root: str) -> bool:
        """Check if a path is the root itself or below it."""
        if path == root:
            return True
        return path.startswith(root.rstrip(os.sep) + os.sep)

    def _report(self, path: object, result: PathValidationResult) -> PathValidationResult:
        if result.is_valid:
            return result
        details = {
            "path": repr(path) if not isinstance(path, str) else path,
            "error": result.error,
            "workspace_root": self.workspace_root,
        }
        if self.emitter is not None:
            self.emitter.emit(PATH_VALIDATION_FAILED, details, EventLevel.WARN)
        else:
            log_security_event(
                logger, EventLevel.WARN, "path_rejected", PATH_VALIDATION_FAILED, **details
            )
        return result


def detect_path_security_issues(path: str) -> list[str]:
    """List every potentially dangerous characteristic of a path.

    Unlike validation this does not stop at the first problem; useful for
    explaining a rejection.
    """
    issues = []

    if ".." in path:
        issues.append("Contains parent directory references (..)")

    if "\0" in path:
        issues.append("Contains null bytes")

    if CONTROL_CHAR_PATTERN.search(path):
        issues.append("Contains control characters")

    if "~" in path:
        issues.append("Contains home directory reference (~)")

    if ENV_VAR_PATTERN.search(path):
        issues.append("Contains environment variable references")

    if URL_ENCODED_PATTERN.search(path):
        issues.append("Contains URL-encoded characters")

    if HEX_ENCODED_PATTERN.search(path):
        issues.append("Contains hex-encoded characters")

    if len(path) > MAX_SAFE_PATH_LENGTH:
        issues.append(f"Path length exceeds safe limit ({MAX_SAFE_PATH_LENGTH} characters)")

    return issues


def validate_and_sanitize_path(
    path: object,
    workspace_root: str | os.PathLike[str] | None = None,
) -> PathValidationResult:
    """Validate a path against a workspace root. See :meth:`PathValidator.validate`."""
    return PathValidator(workspace_root).validate(path)


def validate_read_path(
    path: object,
    workspace_root: str | os.PathLike[str] | None = None,
) -> PathValidationResult:
    """Validate a path for reading. See :meth:`PathValidator.validate_read`."""
    return PathValidator(workspace_root).validate_read(path)


def validate_write_path(
    path: object,
    workspace_root: str | os.PathLike[str] | None = None,
) -> PathValidationResult:
    """Validate a path for writing. See :meth:`PathValidator.validate_write`."""
    return PathValidator(workspace_root).validate_write(path)
