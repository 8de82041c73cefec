"""Tree building engine for timelines.

Key Components:
    TimelineTreeBuilder: Single-pass builder turning flat elements into a tree
    TimelineTree: Built tree with navigation and serialization
    SectionNode / LeafNode: Node types of the tree
    Element / ElementType: Flat input items and their closed type set
    TreeValidator: Structural invariant checks for built trees
"""

from .elements import (
    Element,
    ElementType,
    InvalidElementTypeError,
    TimelineTreeError,
)
from .nodes import (
    LeafNode,
    SectionLevel,
    SectionNode,
    TimelineTree,
)
from .validation import (
    TreeValidator,
    ValidationIssue,
    ValidationIssueType,
    ValidationResult,
)
from .builder import (
    BuildResult,
    TimelineTreeBuilder,
    build_tree,
)

__all__ = [
    "Element",
    "ElementType",
    "InvalidElementTypeError",
    "TimelineTreeError",
    "LeafNode",
    "SectionLevel",
    "SectionNode",
    "TimelineTree",
    "TreeValidator",
    "ValidationIssue",
    "ValidationIssueType",
    "ValidationResult",
    "BuildResult",
    "TimelineTreeBuilder",
    "build_tree",
]
