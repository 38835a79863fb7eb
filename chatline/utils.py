"""
chatline.utils - Shared time formatting helpers.

Used by the media bar and the CLI tables.
"""

from __future__ import annotations


def format_time(milliseconds: float) -> str:
    """Format milliseconds as MM:SS.

    Minutes wrap at one hour, like a clock face.

    Args:
        milliseconds: Time in milliseconds

    Returns:
        Formatted string such as "01:05"
    """
    total_seconds = int(max(milliseconds, 0) // 1000)
    minutes = (total_seconds // 60) % 60
    secs = total_seconds % 60
    return f"{minutes:02d}:{secs:02d}"


def format_time_precise(milliseconds: float) -> str:
    """Format milliseconds as MM:SS.cc (hundredths of a second).

    Args:
        milliseconds: Time in milliseconds

    Returns:
        Formatted string such as "01:05.25"
    """
    ms = int(max(milliseconds, 0))
    hundredths = (ms % 1000) // 10
    return f"{format_time(ms)}.{hundredths:02d}"


def calculate_progress(current: float, total: float) -> float:
    """Fraction of total played, clamped to [0, 1]. Zero when total is 0."""
    if total == 0:
        return 0.0
    return min(max(current / total, 0.0), 1.0)
