"""
spanweave - Reconcile distributed-trace spans with log lines.

This package ingests untyped trace and log query results, infers their
schema, rebuilds the span tree and attaches to every span the log lines
that belong to it, matched by span ID or, failing that, by time window.

Example:
    >>> from spanweave import ReconcileOptions, reconcile
    >>> result = reconcile(trace_frames, log_frames, ReconcileOptions(duration_unit="auto"))
    >>> if result.trace is None:
    ...     print("no trace data")
    >>> for item in result.spans:
    ...     print("  " * item.depth, item.operationName, item.severity.value)
"""

__version__ = "0.1.0"

from spanweave.core.frames import DataFrame, Field, frame_from_records, load_frames
from spanweave.core.models import LogLevel, LogLine, LogSeverity, Span, SpanWithLogs, Trace
from spanweave.core.span_parser import parse_trace_data
from spanweave.core.tree import build_trace_tree
from spanweave.core.log_parser import parse_log_data
from spanweave.core.correlator import match_logs_to_spans
from spanweave.core.severity import get_log_severity
from spanweave.core.pipeline import ReconciledTrace, reconcile
from spanweave.config import ReconcileOptions

__all__ = [
    "ReconcileOptions",
    "DataFrame",
    "Field",
    "frame_from_records",
    "load_frames",
    "LogLevel",
    "LogLine",
    "LogSeverity",
    "Span",
    "SpanWithLogs",
    "Trace",
    "parse_trace_data",
    "build_trace_tree",
    "parse_log_data",
    "match_logs_to_spans",
    "get_log_severity",
    "ReconciledTrace",
    "reconcile",
]
