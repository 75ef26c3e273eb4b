"""
spanweave.core.severity - Span severity derived from matched log lines.

Severity ranks error > warning > info > debug > none. An error found
either in a structured level or in the message text wins immediately;
message keywords count as much as level fields.

Functions:
    get_log_severity: Highest severity of a set of log lines
    count_levels: Number of log lines per resolved level
"""

from __future__ import annotations

from typing import Dict, Iterable, Sequence

from spanweave.core.models import LogLevel, LogLine, LogSeverity

ERROR_LEVELS = frozenset({"error", "critical", "fatal"})
ERROR_KEYWORDS = ("error", "exception", "critical", "fatal", "crit")
WARNING_LEVELS = frozenset({"warn", "warning"})
DEBUG_LEVELS = frozenset({"debug", "trace"})


def _level_name(log: LogLine) -> str:
    level = log.level
    value = level.value if isinstance(level, LogLevel) else level
    return str(value or "").lower()


def get_log_severity(logs: Sequence[LogLine]) -> LogSeverity:
    """Return the highest severity found in ``logs``.

    Args:
        logs: Log lines matched to a span

    Returns:
        LogSeverity.NONE for no logs; otherwise error, warning, info or
        debug. Logs that match no category default the result to info.
    """
    if not logs:
        return LogSeverity.NONE

    has_warning = False
    has_info = False
    has_debug = False

    for log in logs:
        text = (log.line or "").lower()
        level = _level_name(log)

        if level in ERROR_LEVELS or any(keyword in text for keyword in ERROR_KEYWORDS):
            return LogSeverity.ERROR

        if level in WARNING_LEVELS or "warn" in text:
            has_warning = True
        if level == "info":
            has_info = True
        if level in DEBUG_LEVELS:
            has_debug = True

    if has_warning:
        return LogSeverity.WARNING
    if has_info:
        return LogSeverity.INFO
    if has_debug:
        return LogSeverity.DEBUG
    return LogSeverity.INFO


def count_levels(logs: Iterable[LogLine]) -> Dict[str, int]:
    """Count log lines per resolved level, every level present in the result."""
    counts = {level.value: 0 for level in LogLevel}
    for log in logs:
        name = _level_name(log)
        counts[name] = counts.get(name, 0) + 1
    return counts
