"""
Unit tests for spanweave.core.log_parser.

Tests cover level classification, per-frame field resolution, ID
extraction from columns and labels, frame skipping and global sorting.
"""

from datetime import datetime, timezone

import numpy as np
import pytest

from spanweave.core.frames import DataFrame, Field
from spanweave.core.log_parser import LogFrameParser, parse_log_data, parse_log_level
from spanweave.core.models import LogLevel
from tests.conftest import make_frame


class TestParseLogLevel:
    """Tests for parse_log_level."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("error", LogLevel.ERROR),
            ("ERR", LogLevel.ERROR),
            ("Fatal", LogLevel.ERROR),
            ("critical", LogLevel.ERROR),
            ("warning", LogLevel.WARN),
            ("WARN", LogLevel.WARN),
            ("debug", LogLevel.DEBUG),
            ("trace", LogLevel.TRACE),
            ("info", LogLevel.INFO),
            ("notice", LogLevel.INFO),
            ("", LogLevel.INFO),
            (None, LogLevel.INFO),
        ],
    )
    def test_classification(self, raw, expected) -> None:
        """Test keyword classification of level strings."""
        assert parse_log_level(raw) is expected

    def test_error_has_priority_over_warn(self) -> None:
        """Test priority when several keywords appear."""
        assert parse_log_level("warn-or-error") is LogLevel.ERROR

    def test_debug_has_priority_over_trace(self) -> None:
        """Test that debug is checked before trace."""
        assert parse_log_level("trace-debug") is LogLevel.DEBUG


class TestFrameResolution:
    """Tests for per-frame field requirements."""

    def test_loki_style_frame(self, log_frame: DataFrame) -> None:
        """Test a frame with labels, tsNs and Line columns."""
        logs = parse_log_data([log_frame])
        assert [log.line for log in logs] == ["auth ok", "slow query", "boom"]
        assert logs[0].timestamp == 1_150_000_000
        assert logs[0].traceId == "t1"
        assert logs[0].spanId == "a"
        assert logs[1].spanId is None
        assert [log.level for log in logs] == [LogLevel.INFO, LogLevel.WARN, LogLevel.ERROR]

    def test_frame_without_line_field_skipped(self) -> None:
        """Test that a frame without a message column yields nothing."""
        frame = make_frame({"timestamp": [1], "text": ["x"]})
        assert parse_log_data([frame]) == []

    def test_frame_without_time_field_skipped(self) -> None:
        """Test that a frame without a time column yields nothing."""
        frame = make_frame({"id": [1], "message": ["x"]})
        assert parse_log_data([frame]) == []

    def test_message_field_needs_exact_name(self) -> None:
        """Test that the message column is matched by exact name only."""
        frame = make_frame({"timestamp": [1], "message_id": ["x"]})
        assert parse_log_data([frame]) == []

    @pytest.mark.parametrize("name", ["line", "message", "body", "content", "log", "Message"])
    def test_message_synonyms(self, name: str) -> None:
        """Test every accepted message column name."""
        frame = make_frame({"timestamp": [1], name: ["hello"]})
        assert parse_log_data([frame])[0].line == "hello"

    def test_time_field_by_type(self) -> None:
        """Test a time column found by its type."""
        frame = DataFrame(fields=[
            Field("when", [5], type="time"),
            Field("body", ["x"]),
        ])
        assert parse_log_data([frame])[0].timestamp == 5

    def test_time_field_by_substring(self) -> None:
        """Test a time column found by a name fragment."""
        frame = make_frame({"eventTime": [7], "body": ["x"]})
        assert parse_log_data([frame])[0].timestamp == 7

    def test_tsns_preferred_over_time(self) -> None:
        """Test that the nanosecond column wins over a coarser one."""
        frame = make_frame({"Time": [1_700], "tsNs": ["1700000000123"], "Line": ["x"]})
        assert parse_log_data([frame])[0].timestamp == 1_700_000_000_123

    def test_datetime_timestamp(self) -> None:
        """Test conversion of datetime cells to nanoseconds."""
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        frame = make_frame({"timestamp": [moment], "line": ["x"]})
        assert parse_log_data([frame])[0].timestamp == 1_704_067_200 * 1_000_000_000

    def test_numpy_int64_timestamps_exact(self) -> None:
        """Test that int64 nanosecond cells keep every nanosecond."""
        values = np.array(
            [1_700_000_000_121_000_000 + i * 1_000_003 for i in range(200)], dtype=np.int64
        )
        frame = make_frame({"tsNs": values, "Line": ["x"] * 200})
        logs = parse_log_data([frame])
        assert [log.timestamp for log in logs] == [int(v) for v in values]
        assert all(type(log.timestamp) is int for log in logs)

    def test_empty_frame_skipped(self) -> None:
        """Test a frame with zero rows."""
        frame = make_frame({"timestamp": [], "line": []})
        assert parse_log_data([frame]) == []

    def test_level_column(self) -> None:
        """Test a dedicated level column."""
        frame = make_frame({"ts": [1, 2], "line": ["a", "b"], "severity": ["ERROR", None]})
        logs = parse_log_data([frame])
        assert [log.level for log in logs] == [LogLevel.ERROR, LogLevel.INFO]

    def test_level_column_takes_precedence_over_label(self) -> None:
        """Test that the level column wins over the level label."""
        frame = make_frame({
            "ts": [1], "line": ["a"], "level": ["debug"], "labels": [{"level": "error"}],
        })
        assert parse_log_data([frame])[0].level is LogLevel.DEBUG

    def test_labels_as_json_string(self) -> None:
        """Test labels delivered as a JSON object string."""
        frame = make_frame({"ts": [1], "line": ["a"], "labels": ['{"trace_id": "t9", "level": "warn"}']})
        log = parse_log_data([frame])[0]
        assert log.labels == {"trace_id": "t9", "level": "warn"}
        assert log.traceId == "t9"
        assert log.level is LogLevel.WARN


class TestIdExtraction:
    """Tests for trace/span ID lookup."""

    def test_dedicated_columns(self) -> None:
        """Test IDs from dedicated columns."""
        frame = make_frame({"ts": [1], "line": ["a"], "trace_id": ["t"], "span_id": ["s"]})
        log = parse_log_data([frame])[0]
        assert (log.traceId, log.spanId) == ("t", "s")

    def test_override_column_name(self) -> None:
        """Test IDs from columns named by the overrides."""
        frame = make_frame({"ts": [1], "line": ["a"], "tid": ["t"], "sid": ["s"]})
        log = parse_log_data([frame], trace_id_field="tid", span_id_field="sid")[0]
        assert (log.traceId, log.spanId) == ("t", "s")

    def test_override_label_key(self) -> None:
        """Test IDs from labels named by the overrides."""
        frame = make_frame({"ts": [1], "line": ["a"], "labels": [{"tid": "t", "sid": "s"}]})
        log = LogFrameParser(trace_id_field="tid", span_id_field="sid").parse([frame])[0]
        assert (log.traceId, log.spanId) == ("t", "s")

    def test_empty_column_falls_back_to_labels(self) -> None:
        """Test label fallback when the dedicated column is empty."""
        frame = make_frame({
            "ts": [1], "line": ["a"], "traceId": [""], "labels": [{"trace_id": "from-label"}],
        })
        assert parse_log_data([frame])[0].traceId == "from-label"

    def test_nan_columns_fall_back_to_labels(self) -> None:
        """Test that NaN ID cells count as missing and defer to the labels."""
        frame = make_frame({
            "ts": [1, 2],
            "line": ["a", "b"],
            "traceId": [float("nan"), "t1"],
            "spanId": [np.nan, "s1"],
            "labels": [{"traceId": "t-label", "spanId": "s-label"}, {}],
        })
        logs = parse_log_data([frame])
        assert (logs[0].traceId, logs[0].spanId) == ("t-label", "s-label")
        assert (logs[1].traceId, logs[1].spanId) == ("t1", "s1")

    def test_nan_columns_without_labels(self) -> None:
        """Test that a NaN ID cell with no label yields no ID."""
        frame = make_frame({"ts": [1], "line": ["a"], "traceId": [np.nan], "spanId": [np.nan]})
        log = parse_log_data([frame])[0]
        assert log.traceId is None
        assert log.spanId is None

    def test_no_ids(self) -> None:
        """Test a log without any ID."""
        frame = make_frame({"ts": [1], "line": ["a"]})
        log = parse_log_data([frame])[0]
        assert log.traceId is None
        assert log.spanId is None

    def test_parent_span_column_not_used(self) -> None:
        """Test that a parent span column is not taken as the span ID."""
        frame = make_frame({"ts": [1], "line": ["a"], "parent_span_id": ["p"]})
        assert parse_log_data([frame])[0].spanId is None


class TestOrdering:
    """Tests for cross-frame concatenation and sorting."""

    def test_sorted_across_frames(self) -> None:
        """Test that the sort is global, not per frame."""
        first = make_frame({"ts": [30, 10], "line": ["c", "a"]})
        second = make_frame({"ts": [20, 40], "line": ["b", "d"]})
        logs = parse_log_data([first, second])
        assert [log.line for log in logs] == ["a", "b", "c", "d"]

    def test_bad_frame_does_not_block_good_frame(self) -> None:
        """Test skip-and-continue across frames."""
        bad = make_frame({"foo": [1]})
        good = make_frame({"ts": [1], "line": ["ok"]})
        assert [log.line for log in parse_log_data([bad, good])] == ["ok"]

    def test_no_frames(self) -> None:
        """Test that no frames gives an empty list."""
        assert parse_log_data([]) == []
