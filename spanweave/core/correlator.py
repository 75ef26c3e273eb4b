"""
spanweave.core.correlator - Matches log lines to the spans that emitted them.

For each (span, log) pair:

1. If the log carries a span ID equal to the span's, it matches, whatever
   its timestamp.
2. Otherwise, if the log carries the span's trace ID, its timestamp
   (nanoseconds, converted to microseconds) must fall within
   ``[start - buffer, start + duration + buffer]``, bounds included. The
   buffer (1 ms by default) absorbs clock and collection skew.
3. Anything else does not match.

The relation is many-to-many: overlapping spans of the same trace can
all claim the same log through the time window, and no attempt is made to
pick a single best enclosing span.

Only spans reachable from the root take part, in pre-order depth-first
order.

Classes:
    LogSpanCorrelator: Correlates a trace with a list of log lines

Functions:
    log_matches_span: Apply the matching rule to one pair
    match_logs_to_spans: Convenience wrapper around LogSpanCorrelator
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from spanweave.core.models import LogLine, Span, SpanWithLogs, Trace
from spanweave.utils.tree import flatten_tree

logger = logging.getLogger(__name__)

# Tolerance around a span's time window, microseconds
DEFAULT_WINDOW_BUFFER_US = 1000.0


def log_matches_span(
    log: LogLine,
    span: Span,
    buffer_us: float = DEFAULT_WINDOW_BUFFER_US,
    strict_span_ids: bool = False,
) -> bool:
    """Whether ``log`` belongs to ``span``.

    Args:
        log: Candidate log line
        span: Candidate span
        buffer_us: Tolerance added on both sides of the span window
        strict_span_ids: If True, a log that carries any span ID is only
            matched by that ID, never by time window

    Returns:
        True when the log is attributed to the span
    """
    if log.spanId and log.spanId == span.spanId:
        return True

    if strict_span_ids and log.spanId:
        return False

    if log.traceId and log.traceId == span.traceId:
        log_time_us = log.timestamp / 1000
        return (span.startTime - buffer_us) <= log_time_us <= (span.startTime + span.duration + buffer_us)

    return False


class LogSpanCorrelator:
    """Attributes log lines to the spans of a trace.

    Example:
        >>> correlator = LogSpanCorrelator()
        >>> for item in correlator.correlate(trace, logs):
        ...     print(item.operationName, len(item.logs), item.severity)
    """

    def __init__(
        self,
        buffer_us: float = DEFAULT_WINDOW_BUFFER_US,
        strict_span_ids: bool = False,
    ) -> None:
        """Initialize the correlator.

        Args:
            buffer_us: Time-window tolerance in microseconds
            strict_span_ids: Disable window matching for logs carrying a span ID

        Raises:
            ValueError: If ``buffer_us`` is negative
        """
        if buffer_us < 0:
            raise ValueError("buffer_us cannot be negative")
        self.buffer_us = buffer_us
        self.strict_span_ids = strict_span_ids

    def correlate(self, trace: Trace, logs: Sequence[LogLine]) -> List[SpanWithLogs]:
        """Match logs to every reachable span of ``trace``.

        Args:
            trace: Linked trace
            logs: Log lines in any order

        Returns:
            One SpanWithLogs per reachable span, in pre-order
        """
        if trace.rootSpan is None:
            return []

        spans = flatten_tree(trace.rootSpan)
        logger.debug(
            "Matching %d logs to %d spans of trace %s", len(logs), len(spans), trace.traceId
        )

        results: List[SpanWithLogs] = []
        for span in spans:
            matched = [
                log for log in logs
                if log_matches_span(log, span, self.buffer_us, self.strict_span_ids)
            ]
            if matched:
                logger.debug("Span %s: %d logs matched", span.spanId, len(matched))
            results.append(SpanWithLogs(span=span, logs=matched))

        return results


def match_logs_to_spans(
    trace: Trace,
    logs: Sequence[LogLine],
    buffer_us: float = DEFAULT_WINDOW_BUFFER_US,
) -> List[SpanWithLogs]:
    """Match logs to the reachable spans of ``trace``.

    Args:
        trace: Linked trace
        logs: Log lines
        buffer_us: Time-window tolerance in microseconds

    Returns:
        One SpanWithLogs per reachable span, in pre-order
    """
    return LogSpanCorrelator(buffer_us=buffer_us).correlate(trace, logs)
