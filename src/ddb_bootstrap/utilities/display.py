# utilities/display.py
"""Display formatting helpers for run reports."""

from typing import Optional

__all__ = ["format_bytes", "format_rate", "format_banner"]


def format_bytes(num_bytes: float) -> str:
    """Convert bytes to human-readable format.

    Examples:
        >>> format_bytes(1024)
        '1.00 KB'
        >>> format_bytes(5368709120)
        '5.00 GB'
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.2f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.2f} PB"


def format_rate(rate: Optional[float]) -> str:
    """Format a capacity-unit rate; None means the side runs unpaced.

    Examples:
        >>> format_rate(50.0)
        '50.0 units/s'
        >>> format_rate(None)
        'unpaced'
    """
    if rate is None:
        return "unpaced"
    return f"{rate:,.1f} units/s"


def format_banner(title: str, width: int = 80, style: str = "═") -> str:
    """Title line followed by a separator line of ``width`` characters."""
    return f"{title}\n{style * width}"
