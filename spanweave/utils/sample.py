"""
spanweave.utils.sample - Deterministic sample trace and log frames.

Produces a small multi-service trace frame (timing in milliseconds, like a
Tempo search result) and a matching log frame (nanosecond timestamps,
Loki style), for demos and tests. Some sample logs carry only the trace
ID so that time-window matching is exercised as well.

Functions:
    generate_sample_frames: Build (trace frames, log frames)
"""

from __future__ import annotations

import random
import time
from typing import Any, Dict, List, Optional, Tuple

from spanweave.core.frames import DataFrame, Field

# Unit of the sample trace frame's startTime/duration columns
SAMPLE_DURATION_UNIT = "milliseconds"

SAMPLE_TRACE_ID = "abc123def456"

# (spanId, parentSpanId, operation, service, start offset ms, duration ms, tags)
_SAMPLE_SPANS: Tuple[Tuple[str, Optional[str], str, str, float, float, Dict[str, Any]], ...] = (
    ("span-001", None, "HTTP GET /api/users", "api-gateway", 0.0, 150.0,
     {"http.method": "GET", "http.status_code": 200}),
    ("span-002", "span-001", "authenticate", "auth-service", 5.0, 25.0,
     {"user.authenticated": True}),
    ("span-003", "span-001", "SELECT * FROM users", "user-service", 35.0, 80.0,
     {"db.type": "postgresql", "db.statement": "SELECT"}),
    ("span-004", "span-003", "cache.get", "cache-service", 40.0, 5.0,
     {"cache.hit": False}),
    ("span-005", "span-003", "db.query", "postgres", 50.0, 60.0,
     {"db.rows_affected": 42}),
    ("span-006", "span-001", "serialize response", "api-gateway", 120.0, 25.0,
     {"response.size": 1024}),
)

_MESSAGES: Dict[str, Tuple[str, ...]] = {
    "info": (
        "Processing request for {operation}",
        "Operation completed successfully",
        "Handling span {span_id}",
    ),
    "debug": (
        "Entering {operation}",
        "Debug context: service={service}",
    ),
    "warn": (
        "Slow operation detected in {service}",
        "Rate limit approaching threshold",
        "Retry attempt #2 for {operation}",
    ),
    "error": (
        "Failed to process {operation}",
        "Connection timeout to upstream",
    ),
}


def generate_sample_frames(
    seed: int = 7,
    start_ms: Optional[float] = None,
) -> Tuple[List[DataFrame], List[DataFrame]]:
    """Build a sample trace frame and a sample log frame.

    Args:
        seed: Seed for the level/message choices
        start_ms: Epoch start of the root span in milliseconds (defaults to now)

    Returns:
        Tuple of ([trace frame], [log frame])
    """
    rng = random.Random(seed)
    base_ms = float(int(time.time() * 1000)) if start_ms is None else start_ms

    columns: Dict[str, List[Any]] = {
        "traceID": [], "spanID": [], "parentSpanID": [], "operationName": [],
        "serviceName": [], "startTime": [], "duration": [], "tags": [],
    }
    log_rows: List[Dict[str, Any]] = []

    for span_id, parent_id, operation, service, offset_ms, duration_ms, tags in _SAMPLE_SPANS:
        start = base_ms + offset_ms
        columns["traceID"].append(SAMPLE_TRACE_ID)
        columns["spanID"].append(span_id)
        columns["parentSpanID"].append(parent_id or "")
        columns["operationName"].append(operation)
        columns["serviceName"].append(service)
        columns["startTime"].append(start)
        columns["duration"].append(duration_ms)
        columns["tags"].append([{"key": k, "value": v} for k, v in tags.items()])

        count = rng.randint(1, 3)
        for i in range(count):
            level = rng.choice(("info", "debug", "warn", "error"))
            message = rng.choice(_MESSAGES[level]).format(
                operation=operation, service=service, span_id=span_id
            )
            # Evenly spaced inside the span, in nanoseconds
            ts_ns = int(start * 1_000_000) + int(duration_ms * 1_000_000 / (count + 1) * (i + 1))
            labels = {"service": service, "level": level, "traceId": SAMPLE_TRACE_ID}
            if rng.random() < 0.75:
                labels["spanId"] = span_id
            log_rows.append({
                "tsNs": ts_ns,
                "Line": f"{level.upper()} {service}: {message}",
                "labels": labels,
            })

    log_rows.sort(key=lambda row: row["tsNs"])

    trace_frame = DataFrame(
        fields=[Field(name, values) for name, values in columns.items()],
        name="traces",
    )
    log_frame = DataFrame(
        fields=[
            Field("labels", [row["labels"] for row in log_rows]),
            Field("tsNs", [row["tsNs"] for row in log_rows], type="time"),
            Field("Line", [row["Line"] for row in log_rows], type="string"),
        ],
        name="logs",
    )
    return [trace_frame], [log_frame]
