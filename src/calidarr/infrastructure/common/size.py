"""Human-readable byte sizes."""

from __future__ import annotations

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: int | None) -> str:
    """Format a byte count as e.g. ``"1.5 GB"`` (2 decimals, zeros dropped)."""
    if not num_bytes or num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    unit = _UNITS[0]
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            break
        value /= 1024
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {unit}"
