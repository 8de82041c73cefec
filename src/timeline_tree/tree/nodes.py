"""Node types of a built timeline tree.

The tree has a fixed shape: a synthetic root holding group sections, group
sections holding an optional group heading followed by unit sections, and unit
sections holding an optional unit heading followed by records. Children are
only ever appended by the builder; the tree offers navigation, not editing.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from timeline_tree.tree.elements import Element, ElementType


class SectionLevel(Enum):
    """Structural level of a section node."""

    ROOT = "root"
    GROUP = "group-section"
    UNIT = "unit-section"


@dataclass(eq=False)
class LeafNode:
    """A tree node wrapping exactly one input element."""

    element: Element

    kind = "leaf"

    @property
    def element_type(self) -> ElementType:
        return self.element.element_type

    @property
    def payload(self) -> Dict[str, Any]:
        return self.element.payload

    @property
    def is_heading(self) -> bool:
        return self.element.is_heading

    def to_dict(self) -> Dict[str, Any]:
        """Convert leaf to the renderer-facing dictionary form."""
        return {"type": self.element_type.value, "payload": dict(self.payload)}


Node = Union[LeafNode, "SectionNode"]


@dataclass(eq=False)
class SectionNode:
    """A section: an ordered list of children at one structural level."""

    level: SectionLevel
    children: List[Node] = field(default_factory=list)

    kind = "section"

    def _append(self, child: Node) -> None:
        self.children.append(child)

    @property
    def heading(self) -> Optional[LeafNode]:
        """The heading leaf of this section, if it has one."""
        if self.children and isinstance(self.children[0], LeafNode):
            first = self.children[0]
            if first.is_heading:
                return first
        return None

    @property
    def has_heading(self) -> bool:
        return self.heading is not None

    @property
    def sections(self) -> List["SectionNode"]:
        """Child sections (unit sections of a group, group sections of the root)."""
        return [child for child in self.children if isinstance(child, SectionNode)]

    @property
    def records(self) -> List[LeafNode]:
        """Record leaves directly under this section."""
        return [
            child for child in self.children
            if isinstance(child, LeafNode)
            and child.element_type is ElementType.RECORD
        ]

    def iter_nodes(self, depth: int = 0) -> Iterator[Tuple[int, Node]]:
        """Yield ``(depth, node)`` pairs in pre-order, starting with this section."""
        yield depth, self
        for child in self.children:
            if isinstance(child, SectionNode):
                yield from child.iter_nodes(depth + 1)
            else:
                yield depth + 1, child

    def to_dict(self) -> Dict[str, Any]:
        """Convert section to the renderer-facing dictionary form."""
        return {
            "level": self.level.value,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(eq=False)
class TimelineTree:
    """A built timeline: the synthetic root and navigation over it.

    Examples:
        >>> tree = build_tree([{"type": "group-heading", "title": "1900s"}])
        >>> tree.group_count
        1
        >>> tree.groups[0].heading.payload["title"]
        '1900s'
    """

    root: SectionNode = field(default_factory=lambda: SectionNode(SectionLevel.ROOT))

    @property
    def groups(self) -> List[SectionNode]:
        """Group sections in input order."""
        return self.root.sections

    @property
    def units(self) -> List[SectionNode]:
        """All unit sections in input order."""
        return [unit for group in self.groups for unit in group.sections]

    @property
    def group_count(self) -> int:
        return len(self.root.children)

    @property
    def unit_count(self) -> int:
        return len(self.units)

    @property
    def record_count(self) -> int:
        return sum(len(unit.records) for unit in self.units)

    @property
    def is_empty(self) -> bool:
        return not self.root.children

    @property
    def max_depth(self) -> int:
        """Deepest structural depth in the tree (root = 0)."""
        return max((depth for depth, _ in self.iter_nodes()), default=0)

    def iter_nodes(self) -> Iterator[Tuple[int, Node]]:
        """Yield ``(depth, node)`` pairs in pre-order, root included."""
        return self.root.iter_nodes()

    def iter_leaves(self) -> Iterator[LeafNode]:
        """Yield leaf nodes in pre-order."""
        for _, node in self.iter_nodes():
            if isinstance(node, LeafNode):
                yield node

    def elements(self) -> List[Element]:
        """Input elements recovered from a pre-order walk of the leaves."""
        return [leaf.element for leaf in self.iter_leaves()]

    def structure(self) -> Tuple[Any, ...]:
        """Nested-tuple outline of the tree used for structural comparison."""
        def _outline(node: Node) -> Any:
            if isinstance(node, LeafNode):
                return (node.element_type.value, node.element)
            return (node.level.value, tuple(_outline(child) for child in node.children))

        return _outline(self.root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimelineTree):
            return NotImplemented
        return self.structure() == other.structure()

    def to_dict(self) -> Dict[str, Any]:
        """Convert tree to the renderer-facing dictionary form."""
        return self.root.to_dict()

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the tree; payload values that JSON cannot hold are stringified."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def outline(self) -> str:
        """Indented plain-text outline, one line per node."""
        lines = []
        for depth, node in self.iter_nodes():
            if node is self.root:
                continue
            indent = "  " * (depth - 1)
            if isinstance(node, SectionNode):
                lines.append(f"{indent}[{node.level.value}]")
            else:
                title = node.payload.get("title")
                label = f" {title}" if title else ""
                lines.append(f"{indent}- {node.element_type.value}{label}")
        return "\n".join(lines)
