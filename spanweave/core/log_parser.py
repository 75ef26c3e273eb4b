"""
spanweave.core.log_parser - Log line ingestion from log frames.

Every frame is parsed on its own (a log query result may be split across
several frames) and the combined result is sorted by timestamp. A frame
without a time column or a message column is skipped, not treated as an
error.

Trace and span IDs are taken from a dedicated column when one exists
(an override name is tried first, then the built-in synonyms) and
otherwise looked up in the record's labels.

Classes:
    LogFrameParser: Parses log frames into LogLine records

Functions:
    parse_log_level: Classify a free-form level string
    parse_log_data: Convenience wrapper around LogFrameParser
"""

from __future__ import annotations

import json
import logging
import math
import numbers
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from spanweave.core.frames import DataFrame, Field
from spanweave.core.models import LogLevel, LogLine
from spanweave.core.schema import (
    LOG_FIELD_RULES,
    LOG_TIME_RULES,
    SPAN_ID_LABEL_KEYS,
    TRACE_ID_LABEL_KEYS,
    resolve_field,
    resolve_first,
)

logger = logging.getLogger(__name__)

DEFAULT_TRACE_ID_FIELD = "traceId"
DEFAULT_SPAN_ID_FIELD = "spanId"

_RULES = {rule.attribute: rule for rule in LOG_FIELD_RULES}


def parse_log_level(level: Optional[str]) -> LogLevel:
    """Classify a level string into one of the known log levels.

    Matching is a case-insensitive substring test in priority order:
    err/fatal/critical -> error, warn -> warn, debug -> debug,
    trace -> trace, anything else (including None) -> info.

    Args:
        level: Raw level value

    Returns:
        The resolved LogLevel
    """
    if not level:
        return LogLevel.INFO
    lowered = str(level).lower()
    if "err" in lowered or "fatal" in lowered or "critical" in lowered:
        return LogLevel.ERROR
    if "warn" in lowered:
        return LogLevel.WARN
    if "debug" in lowered:
        return LogLevel.DEBUG
    if "trace" in lowered:
        return LogLevel.TRACE
    return LogLevel.INFO


def _to_nanos(value: Any) -> int:
    """Convert a timestamp cell to integer nanoseconds (0 if unusable)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
        return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1000
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return int(number) if math.isfinite(number) else 0


def _parse_labels(value: Any) -> Dict[str, str]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items() if v is not None}
    return {}


def _text(value: Any) -> str:
    """Stringify a cell, empty string for missing values (None or NaN)."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def _from_labels(labels: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = labels.get(key)
        if value:
            return value
    return None


class LogFrameParser:
    """Parser for log frames.

    Example:
        >>> parser = LogFrameParser(trace_id_field="trace_id")
        >>> logs = parser.parse(frames)
        >>> logs[0].level
        <LogLevel.INFO: 'info'>
    """

    def __init__(
        self,
        trace_id_field: Optional[str] = None,
        span_id_field: Optional[str] = None,
    ) -> None:
        """Initialize the parser.

        Args:
            trace_id_field: Column or label name carrying the trace ID
            span_id_field: Column or label name carrying the span ID
        """
        self.trace_id_field = trace_id_field or DEFAULT_TRACE_ID_FIELD
        self.span_id_field = span_id_field or DEFAULT_SPAN_ID_FIELD
        self._trace_id_rule = _RULES["traceId"].with_override(self.trace_id_field)
        self._span_id_rule = _RULES["spanId"].with_override(self.span_id_field)
        self._trace_label_keys = TRACE_ID_LABEL_KEYS + (self.trace_id_field,)
        self._span_label_keys = SPAN_ID_LABEL_KEYS + (self.span_id_field,)

    def parse(self, frames: Sequence[DataFrame]) -> List[LogLine]:
        """Parse all frames and return logs sorted by timestamp.

        Args:
            frames: Log frames

        Returns:
            Log lines from every usable frame, ascending by timestamp
        """
        logs: List[LogLine] = []
        for frame in frames:
            logs.extend(self.parse_frame(frame))

        logs.sort(key=lambda log: log.timestamp)
        logger.info("Parsed %d logs total", len(logs))
        return logs

    def parse_frame(self, frame: DataFrame) -> List[LogLine]:
        """Parse a single frame; an unusable frame yields no logs."""
        if frame.length == 0:
            return []

        time_field = resolve_first(frame, LOG_TIME_RULES)
        line_field = resolve_field(frame, _RULES["line"])

        if time_field is None or line_field is None:
            logger.warning(
                "Skipping frame %r - missing time or line field (fields: %s)",
                frame.name,
                frame.field_names,
            )
            return []

        labels_field = resolve_field(frame, _RULES["labels"])
        level_field = resolve_field(frame, _RULES["level"])
        trace_id_field = resolve_field(frame, self._trace_id_rule)
        span_id_field = resolve_field(frame, self._span_id_rule)

        logger.debug(
            "Log frame %r: time=%s line=%s labels=%s level=%s traceId=%s spanId=%s",
            frame.name,
            time_field.name,
            line_field.name,
            labels_field.name if labels_field else None,
            level_field.name if level_field else None,
            trace_id_field.name if trace_id_field else None,
            span_id_field.name if span_id_field else None,
        )

        return [
            self._parse_row(i, time_field, line_field, labels_field, level_field,
                            trace_id_field, span_id_field)
            for i in range(frame.length)
        ]

    def _parse_row(
        self,
        index: int,
        time_field: Field,
        line_field: Field,
        labels_field: Optional[Field],
        level_field: Optional[Field],
        trace_id_field: Optional[Field],
        span_id_field: Optional[Field],
    ) -> LogLine:
        labels = _parse_labels(labels_field.values[index]) if labels_field else {}

        trace_id = _text(trace_id_field.values[index]) if trace_id_field else ""
        span_id = _text(span_id_field.values[index]) if span_id_field else ""
        if not trace_id:
            trace_id = _from_labels(labels, self._trace_label_keys) or ""
        if not span_id:
            span_id = _from_labels(labels, self._span_label_keys) or ""

        raw_level = level_field.values[index] if level_field else None

        return LogLine(
            timestamp=_to_nanos(time_field.values[index]),
            line=_text(line_field.values[index]),
            labels=labels,
            level=parse_log_level(raw_level or labels.get("level")),
            traceId=trace_id or None,
            spanId=span_id or None,
        )


def parse_log_data(
    frames: Sequence[DataFrame],
    trace_id_field: Optional[str] = None,
    span_id_field: Optional[str] = None,
) -> List[LogLine]:
    """Parse log frames into a timestamp-sorted list of LogLine records.

    Args:
        frames: Log frames
        trace_id_field: Optional override for the trace ID column/label
        span_id_field: Optional override for the span ID column/label

    Returns:
        Sorted log lines (empty when no frame is usable)
    """
    return LogFrameParser(trace_id_field, span_id_field).parse(frames)
