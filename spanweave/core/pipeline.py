"""
spanweave.core.pipeline - End-to-end reconciliation of trace and log frames.

The stages run strictly downstream: trace frames -> spans -> tree, log
frames -> log lines, then tree + logs -> annotated spans. Missing trace
data is an expected outcome, reported as ``trace is None`` with an empty
span list, never as an exception.

Classes:
    ReconciledTrace: The trace, the parsed logs and the annotated spans

Functions:
    reconcile: Run the full pipeline for one refresh
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from spanweave.config import ReconcileOptions
from spanweave.core.correlator import LogSpanCorrelator
from spanweave.core.frames import DataFrame
from spanweave.core.log_parser import LogFrameParser
from spanweave.core.models import LogLine, SpanWithLogs, Trace
from spanweave.core.span_parser import TraceFrameParser

logger = logging.getLogger(__name__)


@dataclass
class ReconciledTrace:
    """Output of one reconciliation run.

    Attributes:
        trace: The linked trace, or None when no usable trace data was found
        logs: All parsed log lines, sorted by timestamp
        spans: Reachable spans in pre-order with their matched logs
    """
    trace: Optional[Trace]
    logs: List[LogLine] = field(default_factory=list)
    spans: List[SpanWithLogs] = field(default_factory=list)

    @property
    def has_trace(self) -> bool:
        return self.trace is not None

    @property
    def unmatched_logs(self) -> List[LogLine]:
        """Logs that were attributed to no span."""
        matched = {id(log) for item in self.spans for log in item.logs}
        return [log for log in self.logs if id(log) not in matched]


def reconcile(
    trace_frames: Sequence[DataFrame],
    log_frames: Sequence[DataFrame] = (),
    options: Optional[ReconcileOptions] = None,
) -> ReconciledTrace:
    """Run the full pipeline for one set of query results.

    Args:
        trace_frames: Frames from the trace query
        log_frames: Frames from the log query
        options: Pipeline options (defaults apply when omitted)

    Returns:
        ReconciledTrace with the trace (or None), logs and annotated spans
    """
    options = options or ReconcileOptions()

    trace = TraceFrameParser(options.duration_unit).parse(trace_frames)
    logs = LogFrameParser(options.trace_id_field, options.span_id_field).parse(log_frames)

    if trace is None:
        logger.info("No trace data; %d logs left uncorrelated", len(logs))
        return ReconciledTrace(trace=None, logs=logs, spans=[])

    correlator = LogSpanCorrelator(
        buffer_us=options.window_buffer_us,
        strict_span_ids=options.strict_span_ids,
    )
    spans = correlator.correlate(trace, logs)

    logger.info(
        "Reconciled trace %s: %d spans (%d reachable), %d logs",
        trace.traceId,
        trace.span_count,
        len(spans),
        len(logs),
    )
    return ReconciledTrace(trace=trace, logs=logs, spans=spans)
