"""Timeline Tree.

Builds the two-level timeline tree (group sections holding unit sections
holding records) from a flat, ordered list of typed elements, inferring
section boundaries from element type transitions alone.

Progressive API Disclosure:
- Level 1: Simple functions - build_tree(), build(), build_file()
- Level 2: Configured builder - TimelineTreeBuilder with TimelineConfig
- Level 3: Structural checks - TreeValidator
"""

__version__ = "0.1.0"
__author__ = "Timeline Tree Team"

from .api import ElementLoadError, build, build_file, load_elements, tree_to_dataframe
from .shared.config import TimelineConfig
from .tree import (
    BuildResult,
    Element,
    ElementType,
    InvalidElementTypeError,
    LeafNode,
    SectionLevel,
    SectionNode,
    TimelineTree,
    TimelineTreeBuilder,
    TimelineTreeError,
    TreeValidator,
    build_tree,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple build functions
    "build_tree",
    "build",
    "build_file",
    "load_elements",
    "tree_to_dataframe",

    # Level 2: Configured builder
    "TimelineTreeBuilder",
    "TimelineConfig",

    # Level 3: Structural checks
    "TreeValidator",

    # Result objects and data structures
    "BuildResult",
    "TimelineTree",
    "SectionNode",
    "SectionLevel",
    "LeafNode",
    "Element",
    "ElementType",

    # Errors
    "TimelineTreeError",
    "InvalidElementTypeError",
    "ElementLoadError",
]
