"""Path gateway: workspace containment for file operations.

Usage:
    from agentic_guard.paths import PathValidator

    validator = PathValidator("/workspace")
    result = validator.validate("subdir/file.txt")
    # result.is_valid, result.sanitized_path == "/workspace/subdir/file.txt"

    result = validator.validate("../../etc/passwd")
    # result.is_valid == False, result.error explains why
"""

from agentic_guard.paths.validator import (
    MAX_SAFE_PATH_LENGTH,
    PathValidationResult,
    PathValidator,
    detect_path_security_issues,
    validate_and_sanitize_path,
    validate_read_path,
    validate_write_path,
)

__all__ = [
    "PathValidator",
    "PathValidationResult",
    "MAX_SAFE_PATH_LENGTH",
    "detect_path_security_issues",
    "validate_and_sanitize_path",
    "validate_read_path",
    "validate_write_path",
]
