"""
spanweave.cli - Command-line interface for spanweave.

This module provides a CLI that reconciles a trace query result with a
log query result (both as JSON frame files) and prints the span tree with
the logs attached to each span.

Usage:
    spanweave <trace_file> [log_file] [--output/-o <file>] [--format <format>]

Examples:
    spanweave trace.json logs.json
    spanweave trace.json logs.json -o reconciled.json
    spanweave trace.json --format text --duration-unit milliseconds
    spanweave --sample --format text
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from spanweave import __version__
from spanweave.config import ReconcileOptions
from spanweave.core.frames import DataFrame, load_frames
from spanweave.core.models import DurationUnit, SpanWithLogs
from spanweave.core.pipeline import ReconciledTrace, reconcile
from spanweave.core.severity import count_levels
from spanweave.utils.formatting import format_duration, format_timestamp
from spanweave.utils.sample import SAMPLE_DURATION_UNIT, generate_sample_frames

logger = logging.getLogger(__name__)


def parse_args(args: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="spanweave",
        description="Reconcile trace spans with log lines",
        epilog="Example: spanweave trace.json logs.json -o reconciled.json",
    )

    parser.add_argument(
        "trace_file",
        type=str,
        nargs="?",
        default=None,
        help="Path to the trace frames (JSON format)",
    )

    parser.add_argument(
        "log_file",
        type=str,
        nargs="?",
        default=None,
        help="Path to the log frames (JSON format)",
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file path (defaults to stdout)",
    )

    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "--duration-unit",
        type=str,
        choices=[unit.value for unit in DurationUnit],
        default=None,
        help="Unit of the trace timing columns (default: auto)",
    )

    parser.add_argument(
        "--trace-id-field",
        type=str,
        default="traceId",
        help="Log field or label carrying the trace ID (default: traceId)",
    )

    parser.add_argument(
        "--span-id-field",
        type=str,
        default="spanId",
        help="Log field or label carrying the span ID (default: spanId)",
    )

    parser.add_argument(
        "--strict-span-ids",
        action="store_true",
        help="Never window-match logs that carry a span ID",
    )

    parser.add_argument(
        "--sample",
        action="store_true",
        help="Ignore input files and reconcile built-in sample data",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parsed = parser.parse_args(args)
    if not parsed.sample and not parsed.trace_file:
        parser.error("trace_file is required unless --sample is given")
    return parsed


def build_options(parsed_args: argparse.Namespace) -> ReconcileOptions:
    """Turn CLI arguments into pipeline options."""
    duration_unit = parsed_args.duration_unit
    if duration_unit is None:
        duration_unit = SAMPLE_DURATION_UNIT if parsed_args.sample else DurationUnit.AUTO.value

    return ReconcileOptions(
        duration_unit=duration_unit,
        trace_id_field=parsed_args.trace_id_field,
        span_id_field=parsed_args.span_id_field,
        strict_span_ids=parsed_args.strict_span_ids,
    )


def load_inputs(parsed_args: argparse.Namespace) -> tuple[List[DataFrame], List[DataFrame]]:
    """Load trace and log frames from the files named on the command line.

    Raises:
        FileNotFoundError: If an input file doesn't exist
        json.JSONDecodeError: If an input file contains invalid JSON
    """
    if parsed_args.sample:
        return generate_sample_frames()

    trace_frames = load_frames(parsed_args.trace_file)
    log_frames = load_frames(parsed_args.log_file) if parsed_args.log_file else []
    return trace_frames, log_frames


def _span_to_dict(item: SpanWithLogs) -> Dict[str, Any]:
    return {
        "traceId": item.traceId,
        "spanId": item.spanId,
        "parentSpanId": item.parentSpanId,
        "operationName": item.operationName,
        "serviceName": item.serviceName,
        "startTime": item.startTime,
        "duration": item.duration,
        "depth": item.depth,
        "tags": item.span.tags,
        "severity": item.severity.value,
        "logs": [
            {
                "timestamp": log.timestamp,
                "level": log.level.value,
                "line": log.line,
                "labels": log.labels,
            }
            for log in item.logs
        ],
    }


def generate_json_output(result: ReconciledTrace) -> str:
    """Generate JSON output for a reconciliation result.

    Args:
        result: The reconciliation result

    Returns:
        JSON string with the trace summary and annotated spans
    """
    trace = result.trace
    output: Dict[str, Any] = {
        "trace": None,
        "totalLogs": len(result.logs),
        "unmatchedLogs": len(result.unmatched_logs),
        "spans": [_span_to_dict(item) for item in result.spans],
    }

    if trace is not None:
        output["trace"] = {
            "traceId": trace.traceId,
            "startTime": trace.startTime,
            "endTime": trace.endTime,
            "duration": trace.duration,
            "services": trace.services,
            "totalSpans": trace.span_count,
            "unreachableSpans": len(trace.unreachable_spans),
        }

    return json.dumps(output, indent=2, default=str)


def generate_text_output(result: ReconciledTrace) -> str:
    """Generate an indented text listing of the annotated span tree.

    Args:
        result: The reconciliation result

    Returns:
        Multi-line text report
    """
    trace = result.trace
    if trace is None:
        return f"No trace data ({len(result.logs)} logs parsed)"

    lines = [
        f"Trace {trace.traceId}  {format_duration(trace.duration)}  "
        f"{trace.span_count} spans  services: {', '.join(trace.services)}",
    ]

    for item in result.spans:
        indent = "  " * (item.depth or 0)
        lines.append(
            f"{indent}- {item.serviceName}: {item.operationName}  "
            f"{format_duration(item.duration)}  [{item.severity.value}]  "
            f"{len(item.logs)} logs"
        )
        for log in item.logs:
            lines.append(
                f"{indent}    {format_timestamp(log.timestamp_us)} "
                f"{log.level.value.upper():5} {log.line}"
            )

    counts = count_levels(result.logs)
    summary = ", ".join(f"{level}={count}" for level, count in counts.items() if count)
    lines.append(
        f"Logs: {len(result.logs)} total, {len(result.unmatched_logs)} unmatched"
        + (f" ({summary})" if summary else "")
    )
    if trace.unreachable_spans:
        lines.append(f"Unreachable spans: {len(trace.unreachable_spans)}")

    return "\n".join(lines)


def write_output(content: str, output_path: str | None) -> None:
    """Write content to output file or stdout.

    Args:
        content: The content to write
        output_path: Path to output file, or None for stdout
    """
    if output_path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    else:
        print(content)


def main(args: List[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    try:
        parsed_args = parse_args(args)

        logging.basicConfig(
            level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

        options = build_options(parsed_args)
        trace_frames, log_frames = load_inputs(parsed_args)

        if parsed_args.verbose:
            print(
                f"Loaded {len(trace_frames)} trace frames and {len(log_frames)} log frames",
                file=sys.stderr,
            )

        result = reconcile(trace_frames, log_frames, options)

        if parsed_args.verbose:
            if result.trace is None:
                print("No trace data found", file=sys.stderr)
            else:
                print(
                    f"Reconciled {len(result.spans)} spans with {len(result.logs)} logs",
                    file=sys.stderr,
                )

        if parsed_args.format == "text":
            output = generate_text_output(result)
        else:
            output = generate_json_output(result)

        write_output(output, parsed_args.output)

        if parsed_args.verbose and parsed_args.output:
            print(f"Output written to: {parsed_args.output}", file=sys.stderr)

        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in input file: {e}", file=sys.stderr)
        return 2

    except ValueError as e:
        print(f"Error: Invalid options or frames: {e}", file=sys.stderr)
        return 3

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 4


if __name__ == "__main__":
    sys.exit(main())
