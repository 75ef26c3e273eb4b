"""
Unit tests for spanweave.core.span_parser.

Tests cover trace frame selection, duration unit detection and
normalization, tag parsing, and the "no trace data" outcomes.
"""

import math

import pytest

from spanweave.core.frames import DataFrame, Field
from spanweave.core.models import DurationUnit
from spanweave.core.span_parser import (
    TraceFrameParser,
    detect_duration_unit,
    duration_multiplier,
    parse_tags,
    parse_trace_data,
)
from tests.conftest import make_frame


class TestDetectDurationUnit:
    """Tests for magnitude-based unit detection."""

    def test_microseconds(self) -> None:
        """Test that a median of 5,000,000 is treated as microseconds."""
        assert detect_duration_unit([4_000_000, 5_000_000, 6_000_000]) == ("microseconds", 1.0)

    def test_nanoseconds(self) -> None:
        """Test that a median of 1.5e9 is treated as nanoseconds."""
        unit, multiplier = detect_duration_unit([1_500_000_000])
        assert unit == "nanoseconds"
        assert multiplier == pytest.approx(1 / 1000)

    def test_milliseconds(self) -> None:
        """Test that a median of 4,500 is treated as milliseconds."""
        assert detect_duration_unit([4_000, 4_500, 5_000]) == ("milliseconds", 1000.0)

    def test_seconds(self) -> None:
        """Test that a median of 3 is treated as seconds."""
        assert detect_duration_unit([2, 3, 4]) == ("seconds", 1_000_000.0)

    def test_even_sample_count_uses_mean_of_middle_values(self) -> None:
        """Test the median of an even number of samples."""
        # median = (999 + 1001) / 2 = 1000 -> milliseconds
        assert detect_duration_unit([999, 1001])[0] == "milliseconds"

    def test_boundary_values(self) -> None:
        """Test that thresholds are inclusive."""
        assert detect_duration_unit([1e9])[0] == "nanoseconds"
        assert detect_duration_unit([1e6])[0] == "microseconds"
        assert detect_duration_unit([1e3])[0] == "milliseconds"
        assert detect_duration_unit([999.9])[0] == "seconds"

    def test_ignores_non_positive_and_invalid_values(self) -> None:
        """Test that zero, negative and non-numeric values are not sampled."""
        values = [0, -5, None, "abc", float("nan"), 5_000_000]
        assert detect_duration_unit(values)[0] == "microseconds"

    def test_numeric_strings_are_sampled(self) -> None:
        """Test that numeric strings count as samples."""
        assert detect_duration_unit(["4500", "4500"])[0] == "milliseconds"

    def test_no_samples_defaults_to_microseconds(self) -> None:
        """Test the fallback with nothing to sample."""
        assert detect_duration_unit([]) == ("microseconds", 1.0)
        assert detect_duration_unit([0, 0]) == ("microseconds", 1.0)

    def test_only_first_fifty_values_sampled(self) -> None:
        """Test that the sample is taken from the first 50 rows."""
        values = [3] * 50 + [5_000_000] * 200
        assert detect_duration_unit(values)[0] == "seconds"


class TestDurationMultiplier:
    """Tests for explicit unit hints."""

    @pytest.mark.parametrize(
        "unit, expected",
        [("microseconds", 1.0), ("milliseconds", 1000.0), ("seconds", 1_000_000.0)],
    )
    def test_explicit_units(self, unit: str, expected: float) -> None:
        """Test fixed multipliers for explicit units."""
        assert duration_multiplier(unit, [3]) == expected

    def test_auto_uses_detection(self) -> None:
        """Test that auto delegates to detection."""
        assert duration_multiplier(DurationUnit.AUTO, [3]) == 1_000_000.0

    def test_unknown_unit_raises(self) -> None:
        """Test that an unknown unit hint is rejected."""
        with pytest.raises(ValueError):
            duration_multiplier("fortnights", [])


class TestParseTags:
    """Tests for tag cell parsing."""

    def test_array_form(self) -> None:
        """Test a list of key/value pairs."""
        assert parse_tags([[{"key": "a", "value": 1}, {"key": "b", "value": "x"}]]) == {
            "a": 1,
            "b": "x",
        }

    def test_object_form(self) -> None:
        """Test a flat mapping."""
        assert parse_tags([{"a": True}]) == {"a": True}

    def test_object_wins_on_collision(self) -> None:
        """Test that object-form entries override array-form entries."""
        tags = parse_tags([{"k": "object"}, [{"key": "k", "value": "array"}, {"key": "only", "value": 1}]])
        assert tags == {"k": "object", "only": 1}

    def test_json_string_cell(self) -> None:
        """Test a JSON-encoded cell."""
        assert parse_tags(['[{"key": "a", "value": 2}]']) == {"a": 2}

    def test_missing_and_invalid_cells(self) -> None:
        """Test that unusable cells contribute nothing."""
        assert parse_tags([None, "not json", 42, [1, 2]]) == {}


class TestFrameSelection:
    """Tests for choosing the trace frame."""

    def test_no_frames(self) -> None:
        """Test that no frames means no trace."""
        assert parse_trace_data([]) is None

    def test_no_qualifying_frame(self) -> None:
        """Test frames without trace and span ID columns."""
        frame = make_frame({"time": [1], "line": ["x"]})
        assert parse_trace_data([frame]) is None

    def test_trace_id_alone_does_not_qualify(self) -> None:
        """Test that both ID columns are needed."""
        frame = make_frame({"traceID": ["t"], "startTime": [1], "duration": [1]})
        assert parse_trace_data([frame]) is None

    def test_first_qualifying_frame_used(self, trace_frame: DataFrame) -> None:
        """Test that later trace frames are ignored."""
        other = make_frame({
            "trace_id": ["t2"], "span_id": ["x"], "start_time": [1], "duration": [1],
        })
        trace = parse_trace_data([make_frame({"line": ["x"]}), trace_frame, other])
        assert trace is not None
        assert trace.traceId == "t1"

    def test_missing_required_field(self) -> None:
        """Test that a qualifying frame without duration yields no trace."""
        frame = make_frame({"traceID": ["t"], "spanID": ["s"], "startTime": [1]})
        assert parse_trace_data([frame]) is None

    def test_zero_rows(self) -> None:
        """Test that an empty trace frame yields no trace."""
        frame = make_frame({"traceID": [], "spanID": [], "startTime": [], "duration": []})
        assert parse_trace_data([frame]) is None


class TestTraceFrameParser:
    """Tests for row parsing."""

    def test_default_field_names(self, trace_frame: DataFrame) -> None:
        """Test parsing a frame with the usual column names."""
        spans = TraceFrameParser().parse_spans([trace_frame])
        assert spans is not None
        assert [s.spanId for s in spans] == ["root", "a", "b", "c"]
        assert spans[0].parentSpanId is None
        assert spans[1].parentSpanId == "root"
        assert spans[0].operationName == "GET /"
        assert spans[0].serviceName == "gateway"

    def test_auto_detection_applies_to_start_and_duration(self) -> None:
        """Test that the detected multiplier scales both timing columns."""
        frame = make_frame({
            "traceID": ["t", "t"],
            "spanID": ["a", "b"],
            "startTime": [1000, 1002],
            "duration": [4, 2],
        })
        spans = TraceFrameParser().parse_spans([frame])
        assert spans[0].startTime == 1000 * 1_000_000
        assert spans[0].duration == 4 * 1_000_000

    def test_explicit_milliseconds(self) -> None:
        """Test an explicit milliseconds hint."""
        frame = make_frame({
            "traceID": ["t"], "spanID": ["a"], "startTime": [1.5], "duration": [2.25],
        })
        spans = TraceFrameParser("milliseconds").parse_spans([frame])
        assert spans[0].startTime == 1500.0
        assert spans[0].duration == 2250.0

    def test_nanosecond_input(self) -> None:
        """Test that nanosecond durations are scaled down."""
        frame = make_frame({
            "traceID": ["t"], "spanID": ["a"],
            "startTime": [1_700_000_000_000_000_000], "duration": [2_000_000_000],
        })
        span = TraceFrameParser().parse_spans([frame])[0]
        assert span.duration == pytest.approx(2_000_000)
        assert span.startTime == pytest.approx(1_700_000_000_000_000)

    def test_optional_field_defaults(self) -> None:
        """Test defaults for missing optional columns."""
        frame = make_frame({"trace_id": ["t"], "span_id": ["a"], "start_time": [1], "duration": [1]})
        span = TraceFrameParser("microseconds").parse_spans([frame])[0]
        assert span.parentSpanId is None
        assert span.operationName == "unknown"
        assert span.serviceName == "unknown"
        assert span.tags == {}

    def test_parent_column_not_taken_as_span_id(self) -> None:
        """Test that parentSpanID before spanID is not mistaken for the span ID."""
        frame = make_frame({
            "parentSpanID": ["", "a"],
            "traceID": ["t", "t"],
            "spanID": ["a", "b"],
            "startTime": [1, 2],
            "duration": [1, 1],
        })
        spans = TraceFrameParser("microseconds").parse_spans([frame])
        assert [s.spanId for s in spans] == ["a", "b"]
        assert spans[1].parentSpanId == "a"

    def test_service_column_not_taken_as_operation(self) -> None:
        """Test that serviceName before operationName resolves correctly."""
        frame = make_frame({
            "serviceName": ["svc"],
            "traceID": ["t"],
            "spanID": ["a"],
            "operationName": ["op"],
            "startTime": [1],
            "duration": [1],
        })
        span = TraceFrameParser("microseconds").parse_spans([frame])[0]
        assert span.operationName == "op"
        assert span.serviceName == "svc"

    def test_tags_from_several_columns(self) -> None:
        """Test merging serviceTags and tags columns."""
        frame = make_frame({
            "traceID": ["t"], "spanID": ["a"], "startTime": [1], "duration": [1],
            "serviceTags": [[{"key": "host", "value": "h1"}]],
            "tags": [{"http.status_code": 200}],
        })
        span = TraceFrameParser("microseconds").parse_spans([frame])[0]
        assert span.tags == {"host": "h1", "http.status_code": 200}
        assert span.serviceName == "unknown"

    def test_rows_without_ids_dropped(self) -> None:
        """Test that rows missing a span ID are skipped."""
        frame = make_frame({
            "traceID": ["t", "t"], "spanID": ["a", None], "startTime": [1, 1], "duration": [1, 1],
        })
        spans = TraceFrameParser("microseconds").parse_spans([frame])
        assert [s.spanId for s in spans] == ["a"]

    def test_all_rows_dropped_means_no_trace(self) -> None:
        """Test that zero surviving spans yields no trace."""
        frame = make_frame({"traceID": [""], "spanID": [""], "startTime": [1], "duration": [1]})
        assert parse_trace_data([frame]) is None

    def test_non_numeric_timing_becomes_zero(self) -> None:
        """Test that unusable timing cells do not abort parsing."""
        frame = make_frame({"traceID": ["t"], "spanID": ["a"], "startTime": ["?"], "duration": [None]})
        span = TraceFrameParser("microseconds").parse_spans([frame])[0]
        assert span.startTime == 0.0
        assert span.duration == 0.0
        assert not math.isnan(span.startTime)

    def test_invalid_unit_rejected(self) -> None:
        """Test constructor validation of the unit hint."""
        with pytest.raises(ValueError):
            TraceFrameParser("hours")


class TestParseTraceData:
    """End-to-end tests for parse_trace_data."""

    def test_builds_tree(self, trace_frame: DataFrame) -> None:
        """Test that the parsed spans are linked into a tree."""
        trace = parse_trace_data([trace_frame])
        assert trace.rootSpan.spanId == "root"
        assert [c.spanId for c in trace.rootSpan.children] == ["a", "b"]
        assert trace.services == ["gateway", "auth", "db", "cache"]

    def test_default_names_without_parents_single_root(self) -> None:
        """Test that a frame without parent values gives a single-root tree."""
        frame = DataFrame(fields=[
            Field("traceID", ["t", "t", "t"]),
            Field("spanID", ["s1", "s2", "s3"]),
            Field("startTime", [1_000_000, 2_000_000, 3_000_000]),
            Field("duration", [5_000_000, 5_000_000, 5_000_000]),
            Field("serviceName", ["a", "b", "a"]),
        ])
        trace = parse_trace_data([frame])
        root = trace.rootSpan
        assert root.spanId == "s3"
        others = [s for s in trace.spans if s is not root]
        assert all(s in root.children for s in others)
        assert all(s.depth == 1 for s in others)
        assert sorted(trace.services) == ["a", "b"]
