"""Tests for timeline tree nodes and navigation."""

import json

from timeline_tree.tree import (
    Element,
    ElementType,
    LeafNode,
    SectionLevel,
    SectionNode,
    TimelineTree,
    build_tree,
)


def sample_tree() -> TimelineTree:
    return build_tree([
        {"type": "record", "title": "Prologue"},
        {"type": "group-heading", "title": "1949"},
        {"type": "unit-heading", "title": "Spring"},
        {"type": "record", "title": "Arrival"},
        {"type": "record", "title": "Settling"},
    ])


class TestSectionNode:
    """Test section node accessors."""

    def test_heading_is_first_heading_child(self) -> None:
        """Test heading returns the leading heading leaf."""
        heading = LeafNode(Element(ElementType.UNIT_HEADING, {"title": "U"}))
        record = LeafNode(Element(ElementType.RECORD))
        section = SectionNode(SectionLevel.UNIT, [heading, record])

        assert section.heading is heading
        assert section.has_heading
        assert section.records == [record]

    def test_headingless_section(self) -> None:
        """Test a section starting with a record has no heading."""
        section = SectionNode(SectionLevel.UNIT, [LeafNode(Element(ElementType.RECORD))])

        assert section.heading is None
        assert not section.has_heading

    def test_empty_section(self) -> None:
        """Test an empty section has no heading or children."""
        section = SectionNode(SectionLevel.GROUP)

        assert section.heading is None
        assert section.sections == []
        assert section.kind == "section"

    def test_nodes_compare_by_identity(self) -> None:
        """Test two equal-looking sections are distinct nodes."""
        assert SectionNode(SectionLevel.GROUP) != SectionNode(SectionLevel.GROUP)


class TestTimelineTree:
    """Test whole-tree navigation."""

    def test_counts(self) -> None:
        """Test section and record counts."""
        tree = sample_tree()

        assert tree.group_count == 2
        assert tree.unit_count == 2
        assert tree.record_count == 3
        assert not tree.is_empty
        assert tree.max_depth == 3

    def test_empty_tree(self) -> None:
        """Test a fresh tree is an empty root."""
        tree = TimelineTree()

        assert tree.is_empty
        assert tree.root.level is SectionLevel.ROOT
        assert tree.max_depth == 0
        assert tree.elements() == []
        assert tree.outline() == ""

    def test_iter_nodes_is_pre_order_with_depths(self) -> None:
        """Test iteration visits parents before children."""
        tree = sample_tree()

        visited = [
            (depth, node.kind if isinstance(node, SectionNode) else node.element_type.value)
            for depth, node in tree.iter_nodes()
        ]

        assert visited == [
            (0, "section"),
            (1, "section"),
            (2, "section"),
            (3, "record"),
            (1, "section"),
            (2, "group-heading"),
            (2, "section"),
            (3, "unit-heading"),
            (3, "record"),
            (3, "record"),
        ]

    def test_elements_in_input_order(self) -> None:
        """Test the leaf walk returns payloads in source order."""
        titles = [element.payload["title"] for element in sample_tree().elements()]

        assert titles == ["Prologue", "1949", "Spring", "Arrival", "Settling"]

    def test_to_dict(self) -> None:
        """Test the dictionary form nests levels and payloads."""
        data = build_tree([{"type": "group-heading", "title": "G"}]).to_dict()

        assert data == {
            "level": "root",
            "children": [{
                "level": "group-section",
                "children": [{"type": "group-heading", "payload": {"title": "G"}}],
            }],
        }

    def test_to_json_handles_unicode_and_objects(self) -> None:
        """Test JSON output keeps non-ASCII text and stringifies unknown values."""
        tree = build_tree([{"type": "record", "title": "臺北", "when": object()}])

        text = tree.to_json()
        data = json.loads(text)

        assert "臺北" in text
        record = data["children"][0]["children"][0]["children"][0]
        assert record["payload"]["title"] == "臺北"
        assert isinstance(record["payload"]["when"], str)

    def test_outline(self) -> None:
        """Test the text outline indents by depth."""
        assert sample_tree().outline().splitlines() == [
            "[group-section]",
            "  [unit-section]",
            "    - record Prologue",
            "[group-section]",
            "  - group-heading 1949",
            "  [unit-section]",
            "    - unit-heading Spring",
            "    - record Arrival",
            "    - record Settling",
        ]

    def test_structural_equality(self) -> None:
        """Test trees built from the same input are equal."""
        assert sample_tree() == sample_tree()
        assert sample_tree() != TimelineTree()
