"""Flat timeline elements and their closed set of types.

An element is one row of the source sheet: a type tag plus whatever payload
columns the row carries. The builder only ever looks at the tag.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

# Spelling used by the spreadsheet template the timelines are authored in
_SOURCE_ALIASES = {
    "group-flag": "group-heading",
    "unit-flag": "unit-heading",
}


class TimelineTreeError(Exception):
    """Base exception for timeline tree errors."""


class InvalidElementTypeError(TimelineTreeError):
    """An input element carries a type outside the closed enumeration."""

    def __init__(self, index: Optional[int], element_type: Any) -> None:
        location = "" if index is None else f" at index {index}"
        super().__init__(
            f"Unknown element type {element_type!r}{location}; expected one of "
            f"{', '.join(repr(t.value) for t in ElementType)}"
        )
        self.index = index
        self.element_type = element_type


class ElementType(Enum):
    """Type tag of a flat timeline element."""

    GROUP_HEADING = "group-heading"
    UNIT_HEADING = "unit-heading"
    RECORD = "record"

    @classmethod
    def from_value(cls, value: Any, accept_aliases: bool = True) -> "ElementType":
        """Resolve a raw type tag.

        Args:
            value: An ElementType, a canonical type string, or (when
                ``accept_aliases`` is set) a source alias such as ``group-flag``
            accept_aliases: Whether spreadsheet aliases are recognised

        Returns:
            The matching ElementType

        Raises:
            ValueError: If the value names no element type
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Element type must be a string, got {type(value).__name__}")

        normalized = value.strip().lower()
        if accept_aliases:
            normalized = _SOURCE_ALIASES.get(normalized, normalized)
        return cls(normalized)

    @property
    def is_heading(self) -> bool:
        """Whether elements of this type open a section."""
        return self is not ElementType.RECORD


@dataclass(frozen=True)
class Element:
    """One flat input item: a type tag and an opaque payload."""

    element_type: ElementType
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.payload, Mapping):
            raise TypeError(
                f"Element payload must be a mapping, got {type(self.payload).__name__}"
            )
        # Own a shallow copy so later edits to the caller's row do not leak in
        object.__setattr__(self, "payload", dict(self.payload))

    @classmethod
    def from_mapping(
        cls,
        row: Mapping[str, Any],
        type_field: str = "type",
        accept_aliases: bool = True,
        index: Optional[int] = None,
    ) -> "Element":
        """Split a flat row into its type tag and payload.

        Args:
            row: Mapping holding the type tag under ``type_field``
            type_field: Key of the type tag
            accept_aliases: Whether spreadsheet aliases are recognised
            index: Position of the row in its sequence, for error reporting

        Raises:
            InvalidElementTypeError: If the tag is missing or unknown
        """
        raw_type = row.get(type_field)
        try:
            element_type = ElementType.from_value(raw_type, accept_aliases)
        except ValueError:
            raise InvalidElementTypeError(index, raw_type) from None
        payload = {key: value for key, value in row.items() if key != type_field}
        return cls(element_type, payload)

    @property
    def is_heading(self) -> bool:
        return self.element_type.is_heading

    def to_dict(self, type_field: str = "type") -> Dict[str, Any]:
        """Return the flat row form of this element."""
        row: Dict[str, Any] = {type_field: self.element_type.value}
        row.update(self.payload)
        return row
