"""
spanweave.core.models - Typed records produced by the reconciliation pipeline.

This module holds the value objects shared by every pipeline stage:
spans parsed from a trace frame, log lines parsed from log frames, the
assembled trace and the per-span log view handed to consumers.

Classes:
    DurationUnit: Unit hint for raw span timing columns
    LogLevel: Resolved level of a single log line
    LogSeverity: Highest severity derived from a set of log lines
    Span: A single traced operation
    LogLine: A single ingested log record
    Trace: The reconciled span tree with trace-level aggregates
    SpanWithLogs: A span together with the log lines matched to it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

TagValue = Union[str, int, float, bool]


class DurationUnit(str, Enum):
    """Unit of the raw startTime/duration columns of a trace frame."""

    AUTO = "auto"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"


class LogLevel(str, Enum):
    """Resolved level of a log line. Never left unset."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"
    TRACE = "trace"


class LogSeverity(str, Enum):
    """Severity of a span, derived from its logs.

    Ordered error > warning > info > debug > none.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"
    NONE = "none"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    LogSeverity.NONE: 0,
    LogSeverity.DEBUG: 1,
    LogSeverity.INFO: 2,
    LogSeverity.WARNING: 3,
    LogSeverity.ERROR: 4,
}


@dataclass
class Span:
    """Represents a single span of a distributed trace.

    Attributes:
        traceId: Identifier of the trace the span belongs to
        spanId: Identifier of the span, unique within its trace
        parentSpanId: ID of the parent span (None for root candidates)
        operationName: Name of the traced operation
        serviceName: Name of the service that emitted the span
        startTime: Start time in microseconds
        duration: Duration in microseconds
        tags: Span attributes
        children: Child spans, set by the tree builder
        depth: Depth in the tree (root = 0), None while unlinked or unreachable
    """
    traceId: str
    spanId: str
    parentSpanId: Optional[str]
    operationName: str
    serviceName: str
    startTime: float
    duration: float
    tags: Dict[str, TagValue] = field(default_factory=dict)
    children: List[Span] = field(default_factory=list, repr=False)
    depth: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate span data after initialization."""
        if not self.spanId:
            raise ValueError("spanId cannot be empty")
        if self.depth is not None and self.depth < 0:
            raise ValueError("depth cannot be negative")

    @property
    def endTime(self) -> float:
        """End time in microseconds."""
        return self.startTime + self.duration

    @property
    def is_root_candidate(self) -> bool:
        """True when the span declares no parent."""
        return not self.parentSpanId


@dataclass(frozen=True)
class LogLine:
    """A single log record.

    Attributes:
        timestamp: Emission time in nanoseconds (not normalized to span units)
        line: Raw message text
        labels: Stream labels attached to the record
        level: Resolved log level
        traceId: Trace identifier carried by the record, if any
        spanId: Span identifier carried by the record, if any
    """
    timestamp: int
    line: str
    labels: Dict[str, str] = field(default_factory=dict)
    level: LogLevel = LogLevel.INFO
    traceId: Optional[str] = None
    spanId: Optional[str] = None

    @property
    def timestamp_us(self) -> float:
        """Timestamp converted to microseconds."""
        return self.timestamp / 1000


@dataclass
class Trace:
    """The reconciled span tree.

    Attributes:
        traceId: Identifier of the trace
        spans: Every parsed span, reachable or not
        rootSpan: The chosen root (always set when spans is non-empty)
        startTime: Earliest span start, microseconds
        endTime: Latest span end, microseconds
        duration: endTime - startTime
        services: Distinct service names in first-seen order
    """
    traceId: str
    spans: List[Span]
    rootSpan: Optional[Span]
    startTime: float
    endTime: float
    duration: float
    services: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate trace data after initialization."""
        if self.spans and self.rootSpan is None:
            raise ValueError("rootSpan must be set for a non-empty trace")

    @property
    def span_count(self) -> int:
        """Get the total number of spans in the trace."""
        return len(self.spans)

    @property
    def unreachable_spans(self) -> List[Span]:
        """Spans that are not part of the tree hanging off rootSpan."""
        return [span for span in self.spans if span.depth is None]


@dataclass
class SpanWithLogs:
    """A span paired with the log lines matched to it.

    The wrapped span and log records are shared, not copied; the view
    itself is built fresh on every correlation run.
    """
    span: Span
    logs: List[LogLine] = field(default_factory=list)

    @property
    def traceId(self) -> str:
        return self.span.traceId

    @property
    def spanId(self) -> str:
        return self.span.spanId

    @property
    def parentSpanId(self) -> Optional[str]:
        """Declared parent ID.

        Stays None for a parentless span that the tree builder attached
        under the chosen root; use utils.tree.get_ancestors for the linked
        parent.
        """
        return self.span.parentSpanId

    @property
    def operationName(self) -> str:
        return self.span.operationName

    @property
    def serviceName(self) -> str:
        return self.span.serviceName

    @property
    def startTime(self) -> float:
        return self.span.startTime

    @property
    def duration(self) -> float:
        return self.span.duration

    @property
    def depth(self) -> Optional[int]:
        return self.span.depth

    @property
    def has_logs(self) -> bool:
        return bool(self.logs)

    @property
    def severity(self) -> LogSeverity:
        """Highest severity among the matched logs."""
        from spanweave.core.severity import get_log_severity

        return get_log_severity(self.logs)
