"""
spanweave.core.frames - Tabular frame model and JSON frame loading.

A frame is an ordered list of named, typed columns of equal length, the
shape in which trace-query and log-query results reach the pipeline. No
column position is meaningful; every consumer resolves columns by name.

Classes:
    Field: A single named column
    DataFrame: An ordered collection of equal-length fields

Functions:
    frame_from_records: Build a frame from row mappings
    frames_from_json: Build frames from decoded JSON
    load_frames: Read frames from a JSON file
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

logger = logging.getLogger(__name__)


@dataclass
class Field:
    """A named column.

    Attributes:
        name: Column name as delivered by the data source
        values: Cell values, one per row
        type: Loose type hint (e.g. "string", "number", "time", "other")
        labels: Optional column labels
    """
    name: str
    values: List[Any]
    type: str = "other"
    labels: Optional[Dict[str, str]] = None

    def __post_init__(self) -> None:
        self.values = list(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass
class DataFrame:
    """An ordered list of equal-length fields.

    Attributes:
        fields: Columns in source order
        name: Optional frame name (query ref id or similar)
    """
    fields: List[Field] = field(default_factory=list)
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate that all fields have the same number of rows."""
        lengths = {len(f) for f in self.fields}
        if len(lengths) > 1:
            raise ValueError(
                f"fields of frame {self.name!r} have different lengths: {sorted(lengths)}"
            )

    @property
    def length(self) -> int:
        """Number of rows in the frame."""
        return len(self.fields[0]) if self.fields else 0

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> Optional[Field]:
        """Find a field by case-insensitive exact name."""
        wanted = name.lower()
        for candidate in self.fields:
            if candidate.name.lower() == wanted:
                return candidate
        return None

    def rows(self) -> Iterable[Dict[str, Any]]:
        """Iterate rows as name -> value mappings."""
        for i in range(self.length):
            yield {f.name: f.values[i] for f in self.fields}


def frame_from_records(
    records: Sequence[Mapping[str, Any]],
    name: Optional[str] = None,
) -> DataFrame:
    """Build a frame from a sequence of row mappings.

    Columns are ordered by first appearance across the records; rows that
    lack a column get None in that cell.

    Args:
        records: Row mappings
        name: Optional frame name

    Returns:
        DataFrame with one field per distinct key
    """
    columns: List[str] = []
    seen = set()
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                columns.append(key)

    fields = [
        Field(name=column, values=[record.get(column) for record in records])
        for column in columns
    ]
    return DataFrame(fields=fields, name=name)


def _frame_from_json(raw: Any, index: int) -> DataFrame:
    """Convert one decoded JSON frame entry into a DataFrame.

    Raises:
        ValueError: If the entry has no recognisable frame shape
    """
    if isinstance(raw, list):
        return frame_from_records(raw)

    if not isinstance(raw, dict):
        raise ValueError(f"frame {index} is not an object or a record list")

    name = raw.get("name") or raw.get("refId")

    if "fields" in raw:
        fields: List[Field] = []
        for raw_field in raw["fields"]:
            if not isinstance(raw_field, dict) or "name" not in raw_field:
                raise ValueError(f"frame {index} has a field without a name")
            fields.append(
                Field(
                    name=str(raw_field["name"]),
                    values=raw_field.get("values") or [],
                    type=str(raw_field.get("type") or "other"),
                    labels=raw_field.get("labels"),
                )
            )
        return DataFrame(fields=fields, name=name)

    if "records" in raw:
        return frame_from_records(raw["records"], name=name)

    raise ValueError(f"frame {index} has neither 'fields' nor 'records'")


def frames_from_json(data: Any) -> List[DataFrame]:
    """Build frames from decoded JSON.

    Accepted shapes:
    - a list of frames
    - an object with a "frames" list
    - a single frame object

    Malformed frame entries are skipped with a warning rather than
    aborting the whole load.

    Args:
        data: Decoded JSON value

    Returns:
        List of frames, possibly empty
    """
    if isinstance(data, dict) and "frames" in data:
        entries = data["frames"]
    elif isinstance(data, dict):
        entries = [data]
    elif isinstance(data, list):
        # A bare list of flat records is a single frame, not a frame list
        if data and all(isinstance(e, dict) and "fields" not in e and "records" not in e for e in data):
            entries = [data]
        else:
            entries = data
    else:
        logger.warning("Unsupported frame payload of type %s", type(data).__name__)
        return []

    frames: List[DataFrame] = []
    for index, raw in enumerate(entries):
        try:
            frames.append(_frame_from_json(raw, index))
        except (ValueError, TypeError) as e:
            logger.warning("Skipping malformed frame %d: %s", index, e)
    return frames


def load_frames(path: Union[str, Path]) -> List[DataFrame]:
    """Read frames from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        List of frames

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    frames = frames_from_json(data)
    logger.debug("Loaded %d frames from %s", len(frames), file_path)
    return frames
