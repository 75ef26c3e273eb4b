"""
spanweave.utils.tree - Traversal helpers for linked span trees.

All traversals are iterative and keep a visited set, so a span graph with
malformed (cyclic) parent links cannot loop or exhaust the stack.

Functions:
    flatten_tree: Flatten a span tree using pre-order traversal
    get_descendants: Get all descendant spans of a given span
    get_ancestors: Get all ancestor spans of a given span
    get_max_depth: Get the maximum depth in a trace
    get_spans_by_service: Group spans by their service name
    get_span_by_id: Find a span by ID
    get_unreachable_spans: Spans not reachable from the root
    calculate_subtree_duration: Sum of durations in a subtree
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from spanweave.core.models import Span, Trace


def flatten_tree(root_span: Optional["Span"]) -> List["Span"]:
    """Flatten a span tree into a list using pre-order traversal.

    The root span comes first, followed by each child and, immediately
    after it, all of that child's descendants.

    Args:
        root_span: Root of the tree to flatten (None yields an empty list)

    Returns:
        List of all spans in the tree, each at most once

    Example:
        >>> spans = flatten_tree(trace.rootSpan)
        >>> spans[0] is trace.rootSpan
        True
    """
    if root_span is None:
        return []

    result: List["Span"] = []
    visited: Set[int] = set()
    stack: List["Span"] = [root_span]

    while stack:
        span = stack.pop()
        if id(span) in visited:
            continue
        visited.add(id(span))
        result.append(span)
        stack.extend(reversed(span.children))

    return result


def get_descendants(span: "Span") -> List["Span"]:
    """Get all descendant spans of a given span, in pre-order.

    Args:
        span: The span to find descendants for

    Returns:
        List of descendants, not including the span itself
    """
    return [s for s in flatten_tree(span) if s is not span]


def get_ancestors(span: "Span", all_spans: Sequence["Span"]) -> List["Span"]:
    """Get all ancestor spans of a given span.

    Walks the linked tree upwards, so spans attached under the root by
    the tree builder report it as their parent. Unlinked spans fall back
    to their parentSpanId. Ordered from immediate parent to the topmost
    ancestor; stops at a missing parent or on a cycle.

    Args:
        span: The span to find ancestors for
        all_spans: All spans of the trace (used for parent lookup)

    Returns:
        List of ancestor spans; empty for a root span
    """
    span_map: Dict[str, "Span"] = {s.spanId: s for s in all_spans}
    linked_parent: Dict[int, "Span"] = {}
    for candidate in all_spans:
        for child in candidate.children:
            linked_parent.setdefault(id(child), candidate)

    ancestors: List["Span"] = []
    seen: Set[int] = {id(span)}

    current = span
    while True:
        parent = linked_parent.get(id(current))
        if parent is None and current.parentSpanId:
            parent = span_map.get(current.parentSpanId)
        if parent is None or id(parent) in seen:
            break
        seen.add(id(parent))
        ancestors.append(parent)
        current = parent

    return ancestors


def get_max_depth(trace: "Trace") -> int:
    """Get the maximum depth of any reachable span (0 for empty traces)."""
    depths = [span.depth for span in trace.spans if span.depth is not None]
    return max(depths) if depths else 0


def get_spans_by_service(trace: "Trace") -> Dict[str, List["Span"]]:
    """Group every span of the trace by service name."""
    service_map: Dict[str, List["Span"]] = {}
    for span in trace.spans:
        service_map.setdefault(span.serviceName, []).append(span)
    return service_map


def get_span_by_id(span_id: str, all_spans: Sequence["Span"]) -> Optional["Span"]:
    """Find a span by its ID, or None."""
    for span in all_spans:
        if span.spanId == span_id:
            return span
    return None


def get_unreachable_spans(trace: "Trace") -> List["Span"]:
    """Spans of the trace that are not in the tree under rootSpan."""
    reachable = {id(span) for span in flatten_tree(trace.rootSpan)}
    return [span for span in trace.spans if id(span) not in reachable]


def calculate_subtree_duration(span: "Span") -> float:
    """Sum of the durations of a span and all its descendants.

    This is the sum of individual durations, not wall-clock time.

    Returns:
        Total duration in microseconds
    """
    return sum(s.duration for s in flatten_tree(span))
