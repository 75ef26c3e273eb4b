"""
spanweave.core - Core modules for trace/log ingestion and reconciliation.

This subpackage contains the main functionality:
- frames: tabular frame model and JSON frame loading
- schema: name-pattern field resolution tables
- models: Span, LogLine, Trace and SpanWithLogs records
- span_parser: TraceFrameParser with duration unit normalization
- tree: build_trace_tree for linking spans into a rooted tree
- log_parser: LogFrameParser with level classification
- correlator: LogSpanCorrelator for ID and time-window log matching
- severity: get_log_severity for span classification
- pipeline: reconcile, the end-to-end composition
"""

from spanweave.core.frames import DataFrame, Field, frame_from_records, frames_from_json, load_frames
from spanweave.core.models import (
    DurationUnit,
    LogLevel,
    LogLine,
    LogSeverity,
    Span,
    SpanWithLogs,
    Trace,
)
from spanweave.core.span_parser import TraceFrameParser, detect_duration_unit, parse_trace_data
from spanweave.core.tree import build_trace_tree
from spanweave.core.log_parser import LogFrameParser, parse_log_data, parse_log_level
from spanweave.core.correlator import LogSpanCorrelator, match_logs_to_spans
from spanweave.core.severity import get_log_severity
from spanweave.core.pipeline import ReconciledTrace, reconcile

__all__ = [
    "DataFrame",
    "Field",
    "frame_from_records",
    "frames_from_json",
    "load_frames",
    "DurationUnit",
    "LogLevel",
    "LogLine",
    "LogSeverity",
    "Span",
    "SpanWithLogs",
    "Trace",
    "TraceFrameParser",
    "detect_duration_unit",
    "parse_trace_data",
    "build_trace_tree",
    "LogFrameParser",
    "parse_log_data",
    "parse_log_level",
    "LogSpanCorrelator",
    "match_logs_to_spans",
    "get_log_severity",
    "ReconciledTrace",
    "reconcile",
]
