"""Human readable formatting helpers."""

from __future__ import annotations

__all__ = ["format_bytes"]

_UNITS = ("KB", "MB", "GB", "TB")


def format_bytes(size: int) -> str:
    """Format a byte count, e.g. 0 -> "0 B", 1536 -> "1.5 KB"."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    unit = _UNITS[0]
    for unit in _UNITS:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.1f} {unit}"
