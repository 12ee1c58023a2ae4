"""Human readable byte sizes."""

import re

from ..core.errors import ConfigError

_UNITS = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "M": 1024 ** 2,
    "MB": 1024 ** 2,
    "G": 1024 ** 3,
    "GB": 1024 ** 3,
    "T": 1024 ** 4,
    "TB": 1024 ** 4,
}

_SIZE_RE = re.compile(r"^(\d+)\s*([A-Za-z]*)$")


def parse_size(size_str: str) -> int:
    """
    Parse a size string such as ``"10MB"`` or ``"512"`` into bytes.

    Units are binary multiples and case-insensitive. ``"0"`` means unbounded.

    Args:
        size_str: The size string to parse.

    Returns:
        Size in bytes.

    Raises:
        ConfigError: If the string is empty, negative or uses an unknown unit.
    """
    if isinstance(size_str, int):
        return size_str

    text = (size_str or "").strip()
    if not text:
        raise ConfigError("Empty size string")

    match = _SIZE_RE.match(text)
    if not match:
        raise ConfigError(f"Invalid size value: {size_str!r}")

    value, unit = match.groups()
    multiplier = _UNITS.get(unit.upper())
    if multiplier is None:
        raise ConfigError(f"Unknown size unit: {unit}")

    return int(value) * multiplier


def format_size(num_bytes: int) -> str:
    """Format a byte count for display (``1.5 MB``)."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(size) < 1024:
            return f"{int(size)} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
