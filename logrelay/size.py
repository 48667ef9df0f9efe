"""
Size utilities for rotation thresholds.

Converts between byte counts and compact human-readable strings, and resolves
the ``max_size_mb`` setting of the rolling file stream, which may be given as a
whole number of megabytes or as a size string.

Example Usage:
    >>> size_to_bytes('1.5MB')
    1572864

    >>> size_str(10485760)
    '10MB'

    >>> megabytes('512KB')
    1
"""

import math
import re

BYTES_PER_KB = 1024
BYTES_PER_MB = 1024**2
BYTES_PER_GB = 1024**3

_UNITS = [
    (BYTES_PER_GB, "GB"),
    (BYTES_PER_MB, "MB"),
    (BYTES_PER_KB, "KB"),
    (1, "B"),
]

_UNIT_MAP = {
    "B": 1,
    "KB": BYTES_PER_KB,
    "MB": BYTES_PER_MB,
    "GB": BYTES_PER_GB,
    "KIB": BYTES_PER_KB,
    "MIB": BYTES_PER_MB,
    "GIB": BYTES_PER_GB,
}

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(GIB|MIB|KIB|GB|MB|KB|B)$", re.IGNORECASE)


class InvalidSizeError(ValueError):
    """Raised when an invalid size value or string is provided."""

    pass


def size_str(size: int | float) -> str:
    """
    Format a size in bytes as a compact string.

    Args:
        size: Size in bytes

    Returns:
        Formatted size string such as '1.5KB'

    Raises:
        InvalidSizeError: If size is negative, NaN, or infinite
    """
    if not isinstance(size, (int, float)) or isinstance(size, bool):
        raise InvalidSizeError(f"Size must be a number, got {type(size).__name__}")
    if math.isnan(size) or math.isinf(size) or size < 0:
        raise InvalidSizeError(f"Invalid size: {size}")

    if size == 0:
        return "0B"

    for threshold, suffix in _UNITS:
        if size >= threshold:
            value = size / threshold
            if value == int(value):
                return f"{int(value)}{suffix}"
            return f"{value:.1f}".rstrip("0").rstrip(".") + suffix

    return f"{size}B"


def size_to_bytes(text: str) -> int:
    """
    Parse a size string to bytes (binary units).

    Args:
        text: Size string, e.g. "500B", "1KB", "1.5MB"

    Returns:
        Size in bytes

    Raises:
        InvalidSizeError: If the string cannot be parsed
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidSizeError("Size string cannot be empty")

    match = _SIZE_PATTERN.match(text.strip())
    if not match:
        raise InvalidSizeError(f"Could not parse size string: '{text}'")

    return int(float(match.group(1)) * _UNIT_MAP[match.group(2).upper()])


def megabytes(value: int | str) -> int:
    """
    Resolve a rotation threshold to a positive whole number of megabytes.

    Integers are taken as megabytes. Strings are parsed with size_to_bytes()
    and rounded up to the next whole megabyte.

    Raises:
        InvalidSizeError: If the value is not a positive integer or size string
    """
    if isinstance(value, bool):
        raise InvalidSizeError(f"Size must be an integer or string, got {value!r}")
    if isinstance(value, int):
        if value <= 0:
            raise InvalidSizeError(f"Size must be positive, got {value}")
        return value
    if isinstance(value, str):
        if value.strip().isdigit():
            return megabytes(int(value))
        nbytes = size_to_bytes(value)
        if nbytes <= 0:
            raise InvalidSizeError(f"Size must be positive, got '{value}'")
        return math.ceil(nbytes / BYTES_PER_MB)
    raise InvalidSizeError(
        f"Size must be an integer or string, got {type(value).__name__}"
    )


__all__ = [
    "BYTES_PER_MB",
    "InvalidSizeError",
    "megabytes",
    "size_str",
    "size_to_bytes",
]
