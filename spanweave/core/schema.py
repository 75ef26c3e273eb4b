"""
spanweave.core.schema - Name-pattern field resolution for untyped frames.

Frames arrive without a fixed schema, so each logical attribute (trace ID,
start time, log message, ...) is located by matching column names against
an ordered list of synonyms. The tables here are plain data so that the
resolution policy can be inspected and tested apart from the parsers.

Resolution rules:
    - Patterns are tried in order; the first pattern that hits wins.
    - For a given pattern, a column whose whole name equals the pattern is
      preferred over one that merely contains it.
    - Columns whose name contains an excluded fragment are never matched
      (e.g. "parentSpanID" is not a span ID column).
    - Matching is case-insensitive.

Classes:
    FieldRule: Synonym rule for one logical attribute

Functions:
    resolve_field: Resolve one rule against a frame
    resolve_fields: Resolve every rule of a table against a frame
    is_trace_frame: Whether a frame qualifies as a trace frame
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from spanweave.core.frames import DataFrame, Field

SUBSTRING = "substring"
EXACT = "exact"


@dataclass(frozen=True)
class FieldRule:
    """Synonym rule for one logical attribute.

    Attributes:
        attribute: Logical attribute name (e.g. "traceId")
        patterns: Lower-case synonyms in priority order
        mode: "substring" or "exact"
        exclude: Name fragments that disqualify a column
        field_type: If set, a column of this type matches when no name does
        required: Whether the owning parser needs this attribute
    """
    attribute: str
    patterns: Tuple[str, ...]
    mode: str = SUBSTRING
    exclude: Tuple[str, ...] = ()
    field_type: Optional[str] = None
    required: bool = False

    def __post_init__(self) -> None:
        if self.mode not in (SUBSTRING, EXACT):
            raise ValueError(f"unknown match mode: {self.mode}")
        if not self.patterns and self.field_type is None:
            raise ValueError(f"rule {self.attribute!r} has nothing to match on")

    def with_override(self, name: Optional[str]) -> FieldRule:
        """Return a copy that tries ``name`` before the built-in synonyms."""
        if not name:
            return self
        override = name.lower()
        patterns = (override,) + tuple(p for p in self.patterns if p != override)
        return FieldRule(
            attribute=self.attribute,
            patterns=patterns,
            mode=self.mode,
            exclude=self.exclude,
            field_type=self.field_type,
            required=self.required,
        )


# Span frame attributes, in the order they are resolved.
SPAN_FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule("traceId", ("traceid", "trace_id"), required=True),
    FieldRule("spanId", ("spanid", "span_id"), exclude=("parent",), required=True),
    FieldRule("parentSpanId", ("parentspanid", "parent_span_id", "parentid")),
    FieldRule("operationName", ("operationname", "operation_name", "name"), exclude=("service",)),
    FieldRule("serviceName", ("servicename", "service_name", "service"), exclude=("tags",)),
    FieldRule("startTime", ("starttime", "start_time"), required=True),
    FieldRule("duration", ("duration",), required=True),
)

# Every column matching this rule contributes tags.
TAGS_RULE = FieldRule("tags", ("tags",))

# Log frame attributes. Time prefers well-known exact names, then any
# column mentioning "time", then a column typed as time.
LOG_TIME_RULES: Tuple[FieldRule, ...] = (
    FieldRule("timestamp", ("tsns", "timestamp", "time", "ts"), mode=EXACT, required=True),
    FieldRule("timestamp", ("time",), field_type="time", required=True),
)

LOG_FIELD_RULES: Tuple[FieldRule, ...] = (
    FieldRule("line", ("line", "message", "body", "content", "log"), mode=EXACT, required=True),
    FieldRule("labels", ("label",)),
    FieldRule("level", ("level", "severity")),
    FieldRule("traceId", ("traceid", "trace_id")),
    FieldRule("spanId", ("spanid", "span_id"), exclude=("parent",)),
)

# Label keys consulted when a log frame has no dedicated ID column.
TRACE_ID_LABEL_KEYS: Tuple[str, ...] = ("trace_id", "traceId", "traceid")
SPAN_ID_LABEL_KEYS: Tuple[str, ...] = ("span_id", "spanId", "spanid")


def _excluded(name: str, rule: FieldRule) -> bool:
    return any(fragment in name for fragment in rule.exclude)


def resolve_field(frame: DataFrame, rule: FieldRule) -> Optional[Field]:
    """Find the column of ``frame`` that carries ``rule.attribute``.

    Args:
        frame: Frame to search
        rule: Synonym rule to apply

    Returns:
        The matching field, or None
    """
    candidates = [
        (f.name.lower(), f) for f in frame.fields
        if f.name and not _excluded(f.name.lower(), rule)
    ]

    for pattern in rule.patterns:
        for name, candidate in candidates:
            if name == pattern:
                return candidate
        if rule.mode == SUBSTRING:
            for name, candidate in candidates:
                if pattern in name:
                    return candidate

    if rule.field_type is not None:
        for candidate in frame.fields:
            if candidate.type == rule.field_type:
                return candidate

    return None


def resolve_first(frame: DataFrame, rules: Sequence[FieldRule]) -> Optional[Field]:
    """Apply alternative rules for the same attribute, first hit wins."""
    for rule in rules:
        found = resolve_field(frame, rule)
        if found is not None:
            return found
    return None


def resolve_all(frame: DataFrame, rule: FieldRule) -> List[Field]:
    """Return every column of ``frame`` matching ``rule`` in frame order."""
    matches: List[Field] = []
    for candidate in frame.fields:
        name = (candidate.name or "").lower()
        if not name or _excluded(name, rule):
            continue
        if rule.mode == EXACT:
            hit = name in rule.patterns
        else:
            hit = any(pattern in name for pattern in rule.patterns)
        if hit:
            matches.append(candidate)
    return matches


def resolve_fields(
    frame: DataFrame, rules: Sequence[FieldRule]
) -> Dict[str, Optional[Field]]:
    """Resolve each rule of a table against a frame.

    Args:
        frame: Frame to search
        rules: Rules keyed by their attribute name

    Returns:
        Mapping of attribute name to matching field (or None)
    """
    return {rule.attribute: resolve_field(frame, rule) for rule in rules}


def missing_required(resolved: Dict[str, Optional[Field]], rules: Sequence[FieldRule]) -> List[str]:
    """Names of required attributes that did not resolve."""
    return [rule.attribute for rule in rules if rule.required and resolved.get(rule.attribute) is None]


def is_trace_frame(frame: DataFrame) -> bool:
    """Whether ``frame`` has both a trace ID and a span ID column."""
    trace_rule, span_rule = SPAN_FIELD_RULES[0], SPAN_FIELD_RULES[1]
    return resolve_field(frame, trace_rule) is not None and resolve_field(frame, span_rule) is not None
