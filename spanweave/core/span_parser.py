"""
spanweave.core.span_parser - Span ingestion from trace frames.

This module turns the first frame that looks like a trace (it has both a
trace ID and a span ID column) into a flat list of typed spans, with all
timing normalized to microseconds, and hands the result to the tree
builder.

Duration unit detection:
========================

When the unit hint is "auto", up to 50 positive duration values are
sampled from the top of the frame and their median is classified by
magnitude:

    median >= 1e9  -> nanoseconds   (x 1/1000)
    median >= 1e6  -> microseconds  (x 1)
    median >= 1e3  -> milliseconds  (x 1000)
    otherwise      -> seconds       (x 1,000,000)

This is a heuristic. A trace made only of short spans recorded in
microseconds (median below 1e6) is classified as milliseconds. Pass an
explicit unit when the source is known.

Classes:
    TraceFrameParser: Parses trace frames into spans and a Trace

Functions:
    detect_duration_unit: Classify raw durations by magnitude
    duration_multiplier: Multiplier to microseconds for a unit hint
    parse_tags: Merge array-form and object-form tag cells
    parse_trace_data: Convenience wrapper around TraceFrameParser
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from spanweave.core.frames import DataFrame, Field
from spanweave.core.models import DurationUnit, Span, TagValue, Trace
from spanweave.core.schema import (
    SPAN_FIELD_RULES,
    TAGS_RULE,
    is_trace_frame,
    missing_required,
    resolve_all,
    resolve_fields,
)
from spanweave.core.tree import build_trace_tree

logger = logging.getLogger(__name__)

# Number of leading duration values inspected by auto-detection
UNIT_SAMPLE_SIZE = 50

_UNIT_MULTIPLIERS: Dict[DurationUnit, float] = {
    DurationUnit.MICROSECONDS: 1.0,
    DurationUnit.MILLISECONDS: 1000.0,
    DurationUnit.SECONDS: 1_000_000.0,
}


def _to_number(value: Any) -> float:
    """Coerce a cell to float, NaN when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def detect_duration_unit(values: Sequence[Any]) -> Tuple[str, float]:
    """Guess the unit of raw duration values from their magnitude.

    Args:
        values: Raw duration cells, in row order

    Returns:
        Tuple of (unit name, multiplier to microseconds). Falls back to
        ("microseconds", 1.0) when no positive finite sample exists.
    """
    samples = [
        v for v in (_to_number(raw) for raw in list(values)[:UNIT_SAMPLE_SIZE])
        if math.isfinite(v) and v > 0
    ]
    if not samples:
        logger.debug("No positive duration samples, assuming microseconds")
        return DurationUnit.MICROSECONDS.value, 1.0

    median = float(np.median(samples))

    if median >= 1e9:
        unit, multiplier = "nanoseconds", 1 / 1000
    elif median >= 1e6:
        unit, multiplier = DurationUnit.MICROSECONDS.value, 1.0
    elif median >= 1e3:
        unit, multiplier = DurationUnit.MILLISECONDS.value, 1000.0
    else:
        unit, multiplier = DurationUnit.SECONDS.value, 1_000_000.0

    logger.debug("Auto-detected duration unit=%s median=%s", unit, median)
    return unit, multiplier


def duration_multiplier(
    unit: Union[DurationUnit, str], values: Sequence[Any] = ()
) -> float:
    """Multiplier converting raw span timing to microseconds.

    Args:
        unit: Unit hint ("auto", "microseconds", "milliseconds", "seconds")
        values: Raw duration cells, consulted only for "auto"

    Returns:
        Multiplier applied to both startTime and duration

    Raises:
        ValueError: If the unit hint is unknown
    """
    unit = DurationUnit(unit)
    if unit is DurationUnit.AUTO:
        return detect_duration_unit(values)[1]
    return _UNIT_MULTIPLIERS[unit]


def _tag_value(value: Any) -> TagValue:
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, np.generic):
        return value.item()
    return str(value)


def parse_tags(cells: Sequence[Any]) -> Dict[str, TagValue]:
    """Merge the tag cells of one row into a single mapping.

    Each cell may be a list of ``{"key": ..., "value": ...}`` pairs, a flat
    mapping, or a JSON string encoding either. Array-form entries are
    applied first, so object-form entries win on key collisions.

    Args:
        cells: Tag cells of one row (one per tag column)

    Returns:
        Merged tag mapping
    """
    from_pairs: Dict[str, TagValue] = {}
    from_objects: Dict[str, TagValue] = {}

    for cell in cells:
        if isinstance(cell, str):
            try:
                cell = json.loads(cell)
            except ValueError:
                continue
        if isinstance(cell, (list, tuple)):
            for pair in cell:
                if isinstance(pair, dict) and "key" in pair:
                    from_pairs[str(pair["key"])] = _tag_value(pair.get("value"))
        elif isinstance(cell, dict):
            for key, value in cell.items():
                from_objects[str(key)] = _tag_value(value)

    tags = dict(from_pairs)
    tags.update(from_objects)
    return tags


def _text(value: Any) -> str:
    """Stringify an identifier cell, empty string for missing values."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


class TraceFrameParser:
    """Parser for trace frames.

    Example:
        >>> parser = TraceFrameParser(duration_unit="milliseconds")
        >>> trace = parser.parse(frames)
        >>> if trace is not None:
        ...     print(trace.rootSpan.operationName)
    """

    def __init__(self, duration_unit: Union[DurationUnit, str] = DurationUnit.AUTO) -> None:
        """Initialize the parser.

        Args:
            duration_unit: Unit hint for the startTime/duration columns

        Raises:
            ValueError: If the unit hint is unknown
        """
        self.duration_unit = DurationUnit(duration_unit)

    def find_trace_frame(self, frames: Sequence[DataFrame]) -> Optional[DataFrame]:
        """Return the first frame with both trace ID and span ID columns."""
        for frame in frames:
            if is_trace_frame(frame):
                return frame
        return None

    def parse_spans(self, frames: Sequence[DataFrame]) -> Optional[List[Span]]:
        """Parse the trace frame into a flat list of spans.

        Args:
            frames: Candidate frames; the first qualifying one is used

        Returns:
            List of spans, or None when there is no usable trace data
        """
        frame = self.find_trace_frame(frames)
        if frame is None:
            logger.info("No trace frame found")
            return None

        resolved = resolve_fields(frame, SPAN_FIELD_RULES)
        logger.debug(
            "Trace frame fields resolved: %s",
            {attr: (f.name if f else None) for attr, f in resolved.items()},
        )

        missing = missing_required(resolved, SPAN_FIELD_RULES)
        if missing:
            logger.info("Missing required fields for trace parsing: %s", ", ".join(missing))
            return None

        duration_field: Field = resolved["duration"]  # type: ignore[assignment]
        multiplier = duration_multiplier(self.duration_unit, duration_field.values)
        tag_fields = resolve_all(frame, TAGS_RULE)

        spans: List[Span] = []
        dropped = 0
        for i in range(frame.length):
            span = self._parse_row(frame, i, resolved, tag_fields, multiplier)
            if span is None:
                dropped += 1
                continue
            spans.append(span)

        if dropped:
            logger.warning("Dropped %d span rows without trace or span ID", dropped)

        if spans:
            logger.debug(
                "durationUnit=%s multiplier=%s raw durations sample=%s converted (us)=%s",
                self.duration_unit.value,
                multiplier,
                duration_field.values[:5],
                [s.duration for s in spans[:5]],
            )

        if not spans:
            logger.info("No spans found")
            return None

        logger.info("Parsed %d spans", len(spans))
        return spans

    def parse(self, frames: Sequence[DataFrame]) -> Optional[Trace]:
        """Parse frames and assemble the span tree.

        Args:
            frames: Candidate frames

        Returns:
            The linked Trace, or None when there is no usable trace data
        """
        spans = self.parse_spans(frames)
        if spans is None:
            return None
        return build_trace_tree(spans)

    def _parse_row(
        self,
        frame: DataFrame,
        index: int,
        resolved: Dict[str, Optional[Field]],
        tag_fields: List[Field],
        multiplier: float,
    ) -> Optional[Span]:
        """Build one span from row ``index``; None when IDs are missing."""

        def cell(attribute: str) -> Any:
            source = resolved.get(attribute)
            return source.values[index] if source is not None else None

        trace_id = _text(cell("traceId"))
        span_id = _text(cell("spanId"))
        if not trace_id or not span_id:
            return None

        parent_span_id = _text(cell("parentSpanId")) or None
        start_time = _to_number(cell("startTime"))
        duration = _to_number(cell("duration"))

        return Span(
            traceId=trace_id,
            spanId=span_id,
            parentSpanId=parent_span_id,
            operationName=_text(cell("operationName")) or "unknown",
            serviceName=_text(cell("serviceName")) or "unknown",
            startTime=(start_time if math.isfinite(start_time) else 0.0) * multiplier,
            duration=(duration if math.isfinite(duration) else 0.0) * multiplier,
            tags=parse_tags([f.values[index] for f in tag_fields]),
        )


def parse_trace_data(
    frames: Sequence[DataFrame],
    duration_unit: Union[DurationUnit, str] = DurationUnit.AUTO,
) -> Optional[Trace]:
    """Parse trace frames into a linked Trace.

    Args:
        frames: Candidate frames
        duration_unit: Unit hint for the startTime/duration columns

    Returns:
        The Trace, or None when no frame carries usable trace data
    """
    return TraceFrameParser(duration_unit).parse(frames)
