"""Public build API and input loaders."""

from .timeline import build, build_file
from .loader import (
    ElementLoadError,
    elements_from_dataframe,
    load_elements,
    tree_to_dataframe,
)

__all__ = [
    "build",
    "build_file",
    "ElementLoadError",
    "elements_from_dataframe",
    "load_elements",
    "tree_to_dataframe",
]
