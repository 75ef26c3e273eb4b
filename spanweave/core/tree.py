"""
spanweave.core.tree - Assembles a flat span list into a rooted tree.

Root selection:
    - A span without a parent is a root candidate; the last one in input
      order becomes the root. Earlier candidates are attached under it,
      after its declared children, so the tree keeps a single root.
    - A span whose declared parent is missing (an orphan) is promoted to
      root only if no root has been chosen when it is reached. A later
      parentless span still replaces it.
    - With no candidate at all, the first span is the root.

Orphans that were not promoted stay in ``Trace.spans`` with ``depth`` set
to None; they count towards the trace aggregates but are not reachable
from the root.

Depths are assigned with an explicit stack. A child edge that leads back
to an already visited span (malformed parent links forming a cycle) is
dropped, so the result is always a tree.

Functions:
    build_trace_tree: Link spans and compute trace aggregates
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from spanweave.core.models import Span, Trace

logger = logging.getLogger(__name__)


def _copy_span(span: Span) -> Span:
    return dataclasses.replace(span, tags=dict(span.tags), children=[], depth=None)


def _assign_depths(root: Span) -> int:
    """Assign depths below ``root`` and cut cycle edges.

    Returns:
        Number of child edges removed because they closed a cycle
    """
    root.depth = 0
    visited: Set[int] = {id(root)}
    stack: List[Span] = [root]
    removed = 0

    while stack:
        span = stack.pop()
        kept: List[Span] = []
        for child in span.children:
            if id(child) in visited:
                removed += 1
                logger.warning(
                    "Cycle in parent links: dropping edge %s -> %s", span.spanId, child.spanId
                )
                continue
            visited.add(id(child))
            child.depth = span.depth + 1
            kept.append(child)
        span.children = kept
        stack.extend(reversed(kept))

    return removed


def build_trace_tree(spans: Sequence[Span]) -> Trace:
    """Build a linked Trace from a flat span list.

    The input spans are not modified; the returned trace owns fresh
    copies.

    Args:
        spans: Spans in input order

    Returns:
        Trace with children/depth set and trace-level aggregates

    Raises:
        ValueError: If ``spans`` is empty
    """
    if not spans:
        raise ValueError("cannot build a trace from an empty span list")

    linked = [_copy_span(span) for span in spans]
    span_map: Dict[str, Span] = {span.spanId: span for span in linked}

    root: Optional[Span] = None
    root_candidates: List[Span] = []
    services: Dict[str, None] = {}

    for span in linked:
        services.setdefault(span.serviceName, None)

        if span.is_root_candidate:
            root_candidates.append(span)
            root = span
            continue

        parent = span_map.get(span.parentSpanId)  # type: ignore[arg-type]
        if parent is not None:
            parent.children.append(span)
        elif root is None:
            # Orphan promoted until a real root shows up
            root = span

    if len(root_candidates) > 1:
        logger.warning(
            "Trace has %d parentless spans, using the last one (%s) as root",
            len(root_candidates),
            root_candidates[-1].spanId,
        )
        for extra in root_candidates[:-1]:
            root_candidates[-1].children.append(extra)

    if root is None:
        root = linked[0]

    _assign_depths(root)

    unreachable = sum(1 for span in linked if span.depth is None)
    if unreachable:
        logger.debug("%d spans are not reachable from root %s", unreachable, root.spanId)

    starts = np.array([span.startTime for span in linked], dtype=np.float64)
    ends = starts + np.array([span.duration for span in linked], dtype=np.float64)
    start_time = float(starts.min())
    end_time = float(ends.max())

    return Trace(
        traceId=root.traceId or linked[0].traceId,
        spans=linked,
        rootSpan=root,
        startTime=start_time,
        endTime=end_time,
        duration=end_time - start_time,
        services=list(services),
    )
