"""Shared fixtures for spanweave tests."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pytest

from spanweave.core.frames import DataFrame, Field
from spanweave.core.models import LogLevel, LogLine, Span


def make_span(
    span_id: str,
    parent: Optional[str] = None,
    start: float = 0.0,
    duration: float = 100.0,
    service: str = "svc",
    operation: str = "op",
    trace_id: str = "trace-1",
) -> Span:
    """Build an unlinked span."""
    return Span(
        traceId=trace_id,
        spanId=span_id,
        parentSpanId=parent,
        operationName=operation,
        serviceName=service,
        startTime=start,
        duration=duration,
    )


def make_log(
    timestamp: int = 0,
    line: str = "message",
    level: LogLevel = LogLevel.INFO,
    trace_id: Optional[str] = None,
    span_id: Optional[str] = None,
) -> LogLine:
    """Build a log line."""
    return LogLine(
        timestamp=timestamp,
        line=line,
        labels={},
        level=level,
        traceId=trace_id,
        spanId=span_id,
    )


def make_frame(columns: Dict[str, Sequence[Any]], name: Optional[str] = None) -> DataFrame:
    """Build a frame from an ordered column mapping."""
    return DataFrame(fields=[Field(key, list(values)) for key, values in columns.items()], name=name)


@pytest.fixture
def trace_frame() -> DataFrame:
    """Trace frame with default Tempo-style column names, timing in microseconds."""
    return make_frame({
        "traceID": ["t1", "t1", "t1", "t1"],
        "spanID": ["root", "a", "b", "c"],
        "parentSpanID": ["", "root", "root", "a"],
        "operationName": ["GET /", "auth", "query", "cache"],
        "serviceName": ["gateway", "auth", "db", "cache"],
        "startTime": [1_000_000, 1_100_000, 1_500_000, 1_200_000],
        "duration": [5_000_000, 2_000_000, 3_000_000, 1_000_000],
    }, name="traces")


@pytest.fixture
def log_frame() -> DataFrame:
    """Loki-style log frame whose IDs live in the labels."""
    return make_frame({
        "labels": [
            {"traceId": "t1", "spanId": "a", "level": "info"},
            {"traceId": "t1", "level": "warning"},
            {"traceId": "other", "level": "error"},
        ],
        "tsNs": [1_150_000_000, 1_600_000_000, 1_700_000_000],
        "Line": ["auth ok", "slow query", "boom"],
    }, name="logs")


@pytest.fixture
def spans() -> List[Span]:
    """Flat span list: root with two children, one grandchild."""
    return [
        make_span("root", None, start=0, duration=1000, service="gateway"),
        make_span("a", "root", start=100, duration=300, service="auth"),
        make_span("b", "root", start=500, duration=400, service="db"),
        make_span("c", "a", start=150, duration=100, service="auth"),
    ]
