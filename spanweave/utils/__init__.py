"""
spanweave.utils - Utility functions for tree traversal, formatting and sample data.

This subpackage contains utility functions:
- tree: cycle-safe traversal of linked span trees
- formatting: human readable durations and timestamps
- sample: deterministic sample trace and log frames
"""

from spanweave.utils.tree import (
    flatten_tree,
    get_ancestors,
    get_descendants,
    get_max_depth,
    get_spans_by_service,
    get_span_by_id,
    get_unreachable_spans,
    calculate_subtree_duration,
)
from spanweave.utils.formatting import format_duration, format_timestamp

__all__ = [
    "flatten_tree",
    "get_ancestors",
    "get_descendants",
    "get_max_depth",
    "get_spans_by_service",
    "get_span_by_id",
    "get_unreachable_spans",
    "calculate_subtree_duration",
    "format_duration",
    "format_timestamp",
]
