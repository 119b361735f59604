"""Security utilities for input validation and sanitization."""

from .validation import (
    sanitize_log_input,
    validate_file_path,
    validate_length,
    validate_no_separator,
    validate_region,
    validate_uuid,
)

__all__ = [
    "sanitize_log_input",
    "validate_file_path",
    "validate_length",
    "validate_no_separator",
    "validate_region",
    "validate_uuid",
]
