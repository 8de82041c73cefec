"""Tests for flat timeline elements and their type tags."""

import pickle
from typing import Any

import pytest

from timeline_tree.tree import (
    Element,
    ElementType,
    InvalidElementTypeError,
    TimelineTreeError,
)


class TestElementType:
    """Test type tag resolution."""

    @pytest.mark.parametrize("value,expected", [
        ("group-heading", ElementType.GROUP_HEADING),
        ("unit-heading", ElementType.UNIT_HEADING),
        ("record", ElementType.RECORD),
        ("  Record ", ElementType.RECORD),
        ("GROUP-HEADING", ElementType.GROUP_HEADING),
    ])
    def test_canonical_values(self, value: str, expected: ElementType) -> None:
        """Test canonical names resolve regardless of case and padding."""
        assert ElementType.from_value(value) is expected

    def test_aliases(self) -> None:
        """Test spreadsheet aliases resolve to heading types."""
        assert ElementType.from_value("group-flag") is ElementType.GROUP_HEADING
        assert ElementType.from_value("Unit-Flag") is ElementType.UNIT_HEADING

    def test_aliases_can_be_disabled(self) -> None:
        """Test aliases are rejected when not accepted."""
        with pytest.raises(ValueError):
            ElementType.from_value("group-flag", accept_aliases=False)

    def test_member_passes_through(self) -> None:
        """Test an ElementType resolves to itself."""
        assert ElementType.from_value(ElementType.RECORD) is ElementType.RECORD

    @pytest.mark.parametrize("value", ["footnote", "", None, 3, "group"])
    def test_unknown_values(self, value: Any) -> None:
        """Test anything outside the closed set is rejected."""
        with pytest.raises(ValueError):
            ElementType.from_value(value)

    def test_is_heading(self) -> None:
        """Test only the two heading types open sections."""
        assert ElementType.GROUP_HEADING.is_heading
        assert ElementType.UNIT_HEADING.is_heading
        assert not ElementType.RECORD.is_heading


class TestElement:
    """Test Element construction and conversion."""

    def test_from_mapping_splits_type_and_payload(self) -> None:
        """Test the type field is removed from the payload."""
        element = Element.from_mapping({"type": "record", "title": "T", "date": "1949"})

        assert element.element_type is ElementType.RECORD
        assert element.payload == {"title": "T", "date": "1949"}

    def test_from_mapping_custom_type_field(self) -> None:
        """Test a different type column can be named."""
        element = Element.from_mapping({"kind": "unit-heading", "type": "x"}, type_field="kind")

        assert element.element_type is ElementType.UNIT_HEADING
        assert element.payload == {"type": "x"}

    def test_from_mapping_invalid_type(self) -> None:
        """Test unknown types raise with the index and raw value."""
        with pytest.raises(InvalidElementTypeError) as exc_info:
            Element.from_mapping({"type": "chapter"}, index=4)

        error = exc_info.value
        assert isinstance(error, TimelineTreeError)
        assert error.index == 4
        assert error.element_type == "chapter"
        assert "'chapter' at index 4" in str(error)
        assert "'group-heading'" in str(error)

    def test_error_without_index(self) -> None:
        """Test the message omits the location when no index is known."""
        error = InvalidElementTypeError(None, "chapter")

        assert "at index" not in str(error)

    def test_payload_is_copied(self) -> None:
        """Test later edits to the source row do not reach the element."""
        row = {"type": "record", "title": "before"}
        element = Element.from_mapping(row)

        row["title"] = "after"

        assert element.payload["title"] == "before"

    def test_to_dict_restores_row(self) -> None:
        """Test the flat row form puts the type first."""
        element = Element(ElementType.GROUP_HEADING, {"title": "1900s"})

        assert element.to_dict() == {"type": "group-heading", "title": "1900s"}
        assert element.to_dict("kind") == {"kind": "group-heading", "title": "1900s"}

    def test_is_heading(self) -> None:
        """Test is_heading follows the type."""
        assert Element(ElementType.UNIT_HEADING).is_heading
        assert not Element(ElementType.RECORD).is_heading

    def test_equality_and_pickling(self) -> None:
        """Test elements compare by value and survive pickling."""
        element = Element(ElementType.RECORD, {"title": "T"})

        assert element == Element(ElementType.RECORD, {"title": "T"})
        assert pickle.loads(pickle.dumps(element)) == element

    @pytest.mark.parametrize("payload", [[("a", 1)], "title", None])
    def test_non_mapping_payload_rejected(self, payload: Any) -> None:
        """Test payloads must be mappings and are never reshaped."""
        with pytest.raises(TypeError, match="payload must be a mapping"):
            Element(ElementType.RECORD, payload)
