"""Input validation and sanitization utilities."""

import re
from typing import Any

from scf_reconciler.core.identity import SEPARATOR

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
REGION_PATTERN = re.compile(r"^[a-z]{2}[a-z0-9]*$")
ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def sanitize_log_input(data: Any) -> Any:
    """Sanitize data before logging or printing it to prevent log injection.

    Args:
        data: Data to be logged (string, dict, list, or other types)

    Returns:
        Sanitized data safe for logging
    """
    if isinstance(data, str):
        sanitized = data.replace('\n', '\\n').replace('\r', '\\r')
        sanitized = sanitized.replace('\t', '\\t')
        sanitized = ANSI_ESCAPE.sub('', sanitized)

        # Truncate extremely long strings to prevent log flooding
        if len(sanitized) > 1000:
            sanitized = sanitized[:997] + "..."

        return sanitized

    elif isinstance(data, dict):
        return {key: sanitize_log_input(value) for key, value in data.items()}

    elif isinstance(data, list):
        return [sanitize_log_input(item) for item in data]

    else:
        return sanitize_log_input(str(data))


def validate_uuid(value: Any) -> bool:
    """Check that a value is a UUID in canonical textual form."""
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def validate_no_separator(value: Any) -> bool:
    """Check that a value can be used as a handle fragment."""
    return isinstance(value, str) and SEPARATOR not in value


def validate_length(value: Any, min_length: int, max_length: int) -> bool:
    return isinstance(value, str) and min_length <= len(value) <= max_length


def validate_region(region: str) -> bool:
    """Validate a STACKIT region name such as ``eu01``."""
    return isinstance(region, str) and bool(REGION_PATTERN.match(region))


def validate_file_path(file_path: str, allow_relative: bool = True) -> bool:
    """Validate file path for security vulnerabilities.

    Args:
        file_path: File path to validate
        allow_relative: Whether to allow relative paths

    Returns:
        True if file path is safe, False otherwise
    """
    if not isinstance(file_path, str) or not file_path.strip():
        return False

    normalized_path = file_path.strip()

    # Directory traversal and substitution markers
    dangerous_patterns = ['../', '..\\', '/./', '/..', '\\..', '~/', '${']
    for pattern in dangerous_patterns:
        if pattern in normalized_path:
            return False

    if '\x00' in normalized_path:
        return False

    if not allow_relative and not (normalized_path.startswith('/') or ':\\' in normalized_path):
        return False

    if len(normalized_path) > 4096:
        return False

    dangerous_chars = ['<', '>', '|', '*', '?', '"']
    if any(char in normalized_path for char in dangerous_chars):
        return False

    return True
