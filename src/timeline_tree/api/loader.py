"""Loading flat element rows from spreadsheet exports.

Timelines are authored in a spreadsheet, one row per element. Fetching the
sheet is someone else's job; this module reads what such a fetch leaves on
disk (JSON or CSV) and converts between element rows and pandas DataFrames.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from timeline_tree.shared import get_logger
from timeline_tree.tree import LeafNode, SectionNode, TimelineTree, TimelineTreeError

PathLike = Union[str, Path]

_DELIMITERS = {".csv": ",", ".tsv": "\t"}

logger = get_logger(__name__, component="element_loader")


class ElementLoadError(TimelineTreeError):
    """Raised when element rows cannot be read from a source."""

    def __init__(self, message: str, path: Optional[PathLike] = None) -> None:
        super().__init__(message if path is None else f"{path}: {message}")
        self.path = path


def load_elements(path: PathLike, type_field: str = "type") -> List[Dict[str, Any]]:
    """Read flat element rows from a JSON, CSV or TSV export.

    JSON files hold either a list of row objects or an object with an
    ``elements`` list. CSV and TSV files hold one row per element with a
    header line; empty cells are left out of the row.

    Args:
        path: File to read
        type_field: Name of the column holding each element's type tag

    Returns:
        Row dictionaries in file order, ready for the builder

    Raises:
        ElementLoadError: If the file is unreadable or malformed
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        rows = _load_json(path)
    elif suffix in _DELIMITERS:
        try:
            frame = pd.read_csv(path, sep=_DELIMITERS[suffix], dtype=str)
        except (OSError, ValueError) as e:
            raise ElementLoadError(f"Could not read table: {e}", path) from e
        rows = elements_from_dataframe(frame, type_field, source=path)
    else:
        raise ElementLoadError(
            f"Unsupported file type {suffix or '(none)'}; expected .json, .csv or .tsv",
            path,
        )

    if rows and not any(type_field in row for row in rows):
        raise ElementLoadError(f"No rows carry a {type_field!r} field", path)

    logger.debug("Loaded element rows", extra={"path": str(path), "row_count": len(rows)})
    return rows


def _load_json(path: Path) -> List[Dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ElementLoadError(f"Could not read file: {e}", path) from e
    except json.JSONDecodeError as e:
        raise ElementLoadError(f"Invalid JSON: {e}", path) from e

    if isinstance(data, dict) and "elements" in data:
        data = data["elements"]
    if not isinstance(data, list):
        raise ElementLoadError("Expected a list of element objects", path)

    for index, row in enumerate(data):
        if not isinstance(row, dict):
            raise ElementLoadError(
                f"Element {index} is a {type(row).__name__}, expected an object", path
            )
    return data


def _is_missing(value: Any) -> bool:
    return pd.api.types.is_scalar(value) and pd.isna(value)


def elements_from_dataframe(
    frame: pd.DataFrame,
    type_field: str = "type",
    source: Optional[PathLike] = None,
) -> List[Dict[str, Any]]:
    """Convert a DataFrame with one row per element into row dictionaries.

    Missing cells are dropped from the row rather than carried as NaN.

    Raises:
        ElementLoadError: If the frame has no type column
    """
    if type_field not in frame.columns:
        raise ElementLoadError(
            f"Missing {type_field!r} column; found {', '.join(map(str, frame.columns))}",
            source,
        )
    return [
        {
            str(column): value
            for column, value in record.items()
            if not _is_missing(value)
        }
        for record in frame.to_dict(orient="records")
    ]


def tree_to_dataframe(tree: TimelineTree, type_field: str = "type") -> pd.DataFrame:
    """Flatten a built tree into one DataFrame row per leaf.

    ``group`` and ``unit`` hold 1-based section ordinals; ``unit`` is empty
    for group headings, which sit directly in their group. A payload field
    whose name clashes with one of these columns or with ``type_field`` is
    written under ``payload_<name>`` instead.
    """
    rows: List[Dict[str, Any]] = []
    for group_number, group in enumerate(tree.groups, start=1):
        unit_number = 0
        for child in group.children:
            if isinstance(child, SectionNode):
                unit_number += 1
                for leaf in child.children:
                    rows.append(_leaf_row(leaf, group_number, unit_number, type_field))
            else:
                rows.append(_leaf_row(child, group_number, None, type_field))

    if not rows:
        return pd.DataFrame(columns=["group", "unit", type_field])
    return pd.DataFrame(rows)


def _leaf_row(
    leaf: LeafNode,
    group_number: int,
    unit_number: Optional[int],
    type_field: str,
) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "group": group_number,
        "unit": unit_number,
        type_field: leaf.element_type.value,
    }
    for key, value in leaf.payload.items():
        row[f"payload_{key}" if key in row else key] = value
    return row
