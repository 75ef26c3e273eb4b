"""
LogFrameHandler - logging.Handler that records log records as a log frame.

Each record is stored with the trace and span ID of the OpenTelemetry
span that is current when it is emitted, so that captured logs can be
correlated exactly with captured spans.

Example:
    >>> import logging
    >>> from spanweave.integrations import LogFrameHandler
    >>>
    >>> handler = LogFrameHandler(service_name="user-api")
    >>> logging.getLogger().addHandler(handler)
    >>> ...
    >>> frame = handler.to_frame()
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from opentelemetry import trace

from spanweave.core.frames import DataFrame, Field
from spanweave.exporters.frame_exporter import format_span_id, format_trace_id


class LogFrameHandler(logging.Handler):
    """Collects log records together with the active span context."""

    def __init__(
        self,
        level: int = logging.NOTSET,
        service_name: Optional[str] = None,
        max_records: int = 50_000,
    ) -> None:
        """Initialize the handler.

        Args:
            level: Minimum level handled
            service_name: Added as the "service" label when set
            max_records: Maximum number of records kept in memory
        """
        super().__init__(level)
        if max_records <= 0:
            raise ValueError("max_records must be positive")
        self.service_name = service_name
        self.max_records = max_records
        self._records_lock = threading.Lock()
        self._rows: List[Dict[str, Any]] = []

    def emit(self, record: logging.LogRecord) -> None:
        """Store one record; formatting errors go to handleError."""
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return

        labels = {"logger": record.name, "level": record.levelname.lower()}
        if self.service_name:
            labels["service"] = self.service_name

        trace_id = span_id = ""
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            trace_id = format_trace_id(context.trace_id)
            span_id = format_span_id(context.span_id)

        row = {
            "timestamp": int(record.created * 1_000_000_000),
            "line": line,
            "level": record.levelname,
            "traceId": trace_id,
            "spanId": span_id,
            "labels": labels,
        }

        with self._records_lock:
            self._rows.append(row)
            overflow = len(self._rows) - self.max_records
            if overflow > 0:
                del self._rows[:overflow]

    def clear(self) -> None:
        """Drop every collected record."""
        with self._records_lock:
            self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)

    def to_frame(self) -> DataFrame:
        """Build a log frame from the collected records."""
        with self._records_lock:
            rows = list(self._rows)

        return DataFrame(
            fields=[
                Field("timestamp", [row["timestamp"] for row in rows], type="time"),
                Field("line", [row["line"] for row in rows], type="string"),
                Field("level", [row["level"] for row in rows], type="string"),
                Field("traceId", [row["traceId"] for row in rows], type="string"),
                Field("spanId", [row["spanId"] for row in rows], type="string"),
                Field("labels", [row["labels"] for row in rows]),
            ],
            name="captured-logs",
        )
