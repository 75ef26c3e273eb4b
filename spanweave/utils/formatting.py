"""
spanweave.utils.formatting - Human readable durations and timestamps.
"""

from __future__ import annotations

from datetime import datetime, timezone


def format_duration(microseconds: float) -> str:
    """Format a duration given in microseconds.

    Example:
        >>> format_duration(850)
        '850µs'
        >>> format_duration(25000)
        '25.00ms'
        >>> format_duration(1500000)
        '1.50s'
    """
    if microseconds < 1000:
        return f"{microseconds:.0f}µs"
    if microseconds < 1_000_000:
        return f"{microseconds / 1000:.2f}ms"
    return f"{microseconds / 1_000_000:.2f}s"


def format_timestamp(microseconds: float) -> str:
    """Format an epoch timestamp in microseconds as a UTC time of day.

    Example:
        >>> format_timestamp(1_700_000_000_123_000)
        '22:13:20.123'
    """
    moment = datetime.fromtimestamp(microseconds / 1_000_000, tz=timezone.utc)
    return moment.strftime("%H:%M:%S.") + f"{moment.microsecond // 1000:03d}"
