"""
FrameSpanExporter - OpenTelemetry SpanExporter that collects spans as a trace frame.

Finished SDK spans are kept in memory and can be turned into a trace frame
at any time, ready for the reconciliation pipeline. Timing columns are in
milliseconds; reconcile them with ``duration_unit="milliseconds"``.

Example:
    >>> from opentelemetry.sdk.trace import TracerProvider
    >>> from opentelemetry.sdk.trace.export import SimpleSpanProcessor
    >>> from spanweave.exporters import FrameSpanExporter
    >>>
    >>> exporter = FrameSpanExporter()
    >>> provider = TracerProvider()
    >>> provider.add_span_processor(SimpleSpanProcessor(exporter))
    >>> ...
    >>> frame = exporter.to_frame()
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.trace import StatusCode

from spanweave.core.frames import DataFrame, Field

logger = logging.getLogger(__name__)

# Unit of the startTime/duration columns produced by to_frame()
FRAME_DURATION_UNIT = "milliseconds"

FRAME_COLUMNS = (
    "traceID",
    "spanID",
    "parentSpanID",
    "operationName",
    "serviceName",
    "startTime",
    "duration",
    "tags",
)


def format_trace_id(trace_id: int) -> str:
    return format(trace_id, "032x")


def format_span_id(span_id: int) -> str:
    return format(span_id, "016x")


class FrameSpanExporter(SpanExporter):
    """Collects finished spans and exposes them as a trace frame.

    Attributes:
        max_spans: Upper bound on retained spans; the oldest are dropped first
    """

    def __init__(self, max_spans: int = 10_000) -> None:
        """Initialize the exporter.

        Args:
            max_spans: Maximum number of spans kept in memory
        """
        if max_spans <= 0:
            raise ValueError("max_spans must be positive")
        self.max_spans = max_spans
        self._lock = threading.Lock()
        self._rows: List[Dict[str, Any]] = []
        self._stopped = False

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Record a batch of finished spans.

        Returns:
            SpanExportResult.FAILURE after shutdown, SUCCESS otherwise
        """
        if self._stopped:
            return SpanExportResult.FAILURE
        if not spans:
            return SpanExportResult.SUCCESS

        rows = [self._readable_span_to_row(span) for span in spans]
        with self._lock:
            self._rows.extend(rows)
            overflow = len(self._rows) - self.max_spans
            if overflow > 0:
                del self._rows[:overflow]
                logger.warning("FrameSpanExporter full, dropped %d oldest spans", overflow)

        logger.debug("Collected %d spans", len(rows))
        return SpanExportResult.SUCCESS

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Nothing is buffered outside the frame store."""
        return True

    def shutdown(self) -> None:
        """Stop accepting spans. Collected spans stay available."""
        self._stopped = True
        logger.debug("FrameSpanExporter shut down with %d spans", len(self._rows))

    def clear(self) -> None:
        """Drop every collected span."""
        with self._lock:
            self._rows.clear()

    @property
    def trace_ids(self) -> List[str]:
        """Distinct trace IDs collected so far, in arrival order."""
        with self._lock:
            return list(dict.fromkeys(row["traceID"] for row in self._rows))

    def to_frame(self, trace_id: Optional[str] = None) -> DataFrame:
        """Build a trace frame from the collected spans.

        Args:
            trace_id: Only include spans of this trace (all spans if None)

        Returns:
            DataFrame with the columns listed in FRAME_COLUMNS
        """
        with self._lock:
            rows = [row for row in self._rows if trace_id is None or row["traceID"] == trace_id]

        fields = [Field(name, [row[name] for row in rows]) for name in FRAME_COLUMNS]
        fields[5].type = "number"
        fields[6].type = "number"
        return DataFrame(fields=fields, name="otel-spans")

    def _readable_span_to_row(self, span: ReadableSpan) -> Dict[str, Any]:
        """Convert a ReadableSpan to one trace frame row."""
        context = span.context
        parent_id = span.parent.span_id if span.parent else None

        service_name = "unknown"
        if span.resource and span.resource.attributes:
            service_name = str(span.resource.attributes.get("service.name", "unknown"))

        start_ns = span.start_time or 0
        end_ns = span.end_time or start_ns

        tags: Dict[str, Any] = {}
        if span.attributes:
            for key, value in span.attributes.items():
                tags[key] = value if isinstance(value, (str, bool, int, float)) else str(value)
        if span.status is not None and span.status.status_code == StatusCode.ERROR:
            tags["error"] = True

        return {
            "traceID": format_trace_id(context.trace_id),
            "spanID": format_span_id(context.span_id),
            "parentSpanID": format_span_id(parent_id) if parent_id else "",
            "operationName": span.name,
            "serviceName": service_name,
            "startTime": start_ns / 1_000_000,
            "duration": max(0, end_ns - start_ns) / 1_000_000,
            "tags": tags,
        }
