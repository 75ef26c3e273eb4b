"""
spanweave.config - Options consumed by the reconciliation pipeline.

Classes:
    ReconcileOptions: Duration unit hint, ID field overrides and matching tolerance
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from spanweave.core.models import DurationUnit

# Accepted keys, including the option names used by the original panel
_KEY_ALIASES = {
    "duration_unit": "duration_unit",
    "durationUnit": "duration_unit",
    "trace_id_field": "trace_id_field",
    "traceIdField": "trace_id_field",
    "lokiTraceIdField": "trace_id_field",
    "span_id_field": "span_id_field",
    "spanIdField": "span_id_field",
    "lokiSpanIdField": "span_id_field",
    "window_buffer_us": "window_buffer_us",
    "windowBufferUs": "window_buffer_us",
    "strict_span_ids": "strict_span_ids",
    "strictSpanIds": "strict_span_ids",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


@dataclass
class ReconcileOptions:
    """Options for one reconciliation run.

    Attributes:
        duration_unit: Unit of the trace frame timing columns, or "auto"
        trace_id_field: Log column/label name carrying the trace ID
        span_id_field: Log column/label name carrying the span ID
        window_buffer_us: Time-window tolerance for log matching, microseconds
        strict_span_ids: Only match logs carrying a span ID by that ID
    """
    duration_unit: str = DurationUnit.AUTO.value
    trace_id_field: str = "traceId"
    span_id_field: str = "spanId"
    window_buffer_us: float = 1000.0
    strict_span_ids: bool = False

    def __post_init__(self) -> None:
        """Validate and normalize option values."""
        try:
            self.duration_unit = DurationUnit(str(self.duration_unit).lower()).value
        except ValueError:
            allowed = ", ".join(unit.value for unit in DurationUnit)
            raise ValueError(
                f"duration_unit must be one of: {allowed} (got {self.duration_unit!r})"
            ) from None
        if not self.trace_id_field:
            raise ValueError("trace_id_field cannot be empty")
        if not self.span_id_field:
            raise ValueError("span_id_field cannot be empty")
        self.window_buffer_us = float(self.window_buffer_us)
        if self.window_buffer_us < 0:
            raise ValueError("window_buffer_us cannot be negative")
        if isinstance(self.strict_span_ids, str):
            self.strict_span_ids = self.strict_span_ids.lower() in _TRUE_STRINGS
        else:
            self.strict_span_ids = bool(self.strict_span_ids)

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> ReconcileOptions:
        """Build options from a mapping, ignoring unknown keys.

        Both snake_case names and the panel option names
        (``durationUnit``, ``lokiTraceIdField``, ``lokiSpanIdField``) are
        accepted. Empty values fall back to the defaults.
        """
        kwargs = {}
        for key, value in (mapping or {}).items():
            target = _KEY_ALIASES.get(key)
            if target is not None and value not in (None, ""):
                kwargs[target] = value
        return cls(**kwargs)

    @classmethod
    def from_env(cls, prefix: str = "SPANWEAVE_") -> ReconcileOptions:
        """Build options from ``<prefix>DURATION_UNIT`` style variables."""
        mapping = {
            name: os.environ.get(prefix + name.upper())
            for name in ("duration_unit", "trace_id_field", "span_id_field",
                         "window_buffer_us", "strict_span_ids")
        }
        return cls.from_mapping(mapping)
