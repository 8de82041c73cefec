"""Core tree building implementation for timelines.

This module turns a flat, ordered sequence of typed elements into the
two-level timeline tree. Section boundaries are inferred from element types
alone, in one pass, without lookahead:

* a group heading closes everything open and starts a new group section;
* a unit heading closes the open unit and starts a new unit section inside
  the open group, opening a headingless group first if none is open;
* a record joins the open unit, opening a headingless unit (and group) first
  if none is open.
"""

import os
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

import psutil

from timeline_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
    TimelineConfig,
    get_logger,
)
from timeline_tree.tree.elements import Element, ElementType, InvalidElementTypeError
from timeline_tree.tree.nodes import LeafNode, SectionLevel, SectionNode, TimelineTree
from timeline_tree.tree.validation import TreeValidator, ValidationResult

ElementInput = Union[Element, Mapping]


@dataclass
class BuildResult:
    """Result of one build: the tree plus diagnostics and metrics."""

    tree: TimelineTree = field(default_factory=TimelineTree)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    validation_result: Optional[ValidationResult] = None
    correlation_id: Optional[str] = None

    @property
    def success(self) -> bool:
        """False only when output validation ran and found violations."""
        return self.validation_result is None or self.validation_result.success

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        ))

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the build."""
        summary = {
            "success": self.success,
            "group_count": self.tree.group_count,
            "unit_count": self.tree.unit_count,
            "record_count": self.tree.record_count,
            "diagnostic_count": len(self.diagnostics),
            "performance": self.performance.to_dict(),
        }
        if self.validation_result is not None:
            summary["validation"] = self.validation_result.to_dict()
        return summary


@dataclass
class _BuildState:
    """Open path and counters for one call to :meth:`TimelineTreeBuilder.build`."""

    result: BuildResult
    tree: TimelineTree = field(default_factory=TimelineTree)
    open_group: Optional[SectionNode] = None
    open_unit: Optional[SectionNode] = None
    sections_opened: int = 0
    implicit_sections_opened: int = 0


class TimelineTreeBuilder:
    """Builds timeline trees from flat element sequences.

    A builder instance holds only configuration. Every call to :meth:`build`
    creates its own open path and tree, so one instance may be reused or
    shared between threads.
    """

    def __init__(
        self,
        config: Optional[TimelineConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Configuration; defaults to ``TimelineConfig()``
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or TimelineConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "timeline_tree_builder")

    def build(self, elements: Iterable[ElementInput]) -> BuildResult:
        """Build a timeline tree from a flat element sequence.

        Args:
            elements: Elements, or flat row mappings carrying a type field

        Returns:
            BuildResult containing the tree, diagnostics and metrics

        Raises:
            InvalidElementTypeError: If any element has an unknown type; no
                partial tree is returned
        """
        start_time = time.time()
        builder_config = self.config.builder
        memory_before = self._get_memory_usage() if builder_config.track_memory else 0

        element_list = elements if isinstance(elements, Sequence) else list(elements)

        self.logger.info(
            "Starting tree building",
            extra={"element_count": len(element_list)}
        )

        result = BuildResult(correlation_id=self.correlation_id)
        if not element_list and builder_config.collect_diagnostics:
            result.add_diagnostic(
                DiagnosticSeverity.INFO,
                "No elements provided - empty tree created",
                "tree_builder",
                details={"input_type": "empty"}
            )

        state = _BuildState(result)
        placed: List[Element] = []
        try:
            for index, item in enumerate(element_list):
                element = self._coerce_element(index, item)
                self._place_element(state, index, element)
                placed.append(element)
        except InvalidElementTypeError as e:
            self.logger.error(
                "Tree building failed",
                extra={"index": e.index, "element_type": repr(e.element_type)},
                exc_info=False
            )
            raise

        tree = state.tree
        result.tree = tree
        result.performance.elements_processed = len(placed)
        result.performance.sections_opened = state.sections_opened
        result.performance.implicit_sections_opened = state.implicit_sections_opened

        if builder_config.validate_output:
            result.validation_result = TreeValidator(self.correlation_id).validate(
                tree, source=placed
            )
            if not result.validation_result.success:
                self.logger.warning(
                    "Built tree failed validation",
                    extra={"error_count": result.validation_result.error_count}
                )

        if builder_config.track_memory:
            result.performance.memory_used_bytes = max(
                0, self._get_memory_usage() - memory_before
            )
        result.performance.processing_time_ms = (time.time() - start_time) * 1000

        self.logger.info(
            "Tree building completed",
            extra={
                "group_count": tree.group_count,
                "unit_count": tree.unit_count,
                "record_count": tree.record_count,
                "processing_time_ms": result.performance.processing_time_ms,
            }
        )
        return result

    def _coerce_element(self, index: int, item: ElementInput) -> Element:
        builder_config = self.config.builder
        if isinstance(item, Element):
            try:
                element_type = ElementType.from_value(
                    item.element_type, builder_config.accept_aliases
                )
            except ValueError:
                raise InvalidElementTypeError(index, item.element_type) from None
            if element_type is item.element_type:
                return item
            return Element(element_type, item.payload)
        if isinstance(item, Mapping):
            return Element.from_mapping(
                item,
                type_field=builder_config.type_field,
                accept_aliases=builder_config.accept_aliases,
                index=index,
            )
        raise TypeError(
            f"Element at index {index} must be an Element or a mapping, "
            f"got {type(item).__name__}"
        )

    def _place_element(self, state: _BuildState, index: int, element: Element) -> None:
        if element.element_type is ElementType.GROUP_HEADING:
            self._place_group_heading(state, index, element)
        elif element.element_type is ElementType.UNIT_HEADING:
            self._place_unit_heading(state, index, element)
        else:
            self._place_record(state, index, element)

    def _place_group_heading(self, state: _BuildState, index: int, element: Element) -> None:
        state.open_unit = None
        state.open_group = self._open_section(
            state, SectionLevel.GROUP, state.tree.root, index, implicit=False
        )
        state.open_group._append(LeafNode(element))

    def _place_unit_heading(self, state: _BuildState, index: int, element: Element) -> None:
        state.open_unit = None
        if state.open_group is None:
            state.open_group = self._open_section(
                state, SectionLevel.GROUP, state.tree.root, index, implicit=True
            )
        state.open_unit = self._open_section(
            state, SectionLevel.UNIT, state.open_group, index, implicit=False
        )
        state.open_unit._append(LeafNode(element))

    def _place_record(self, state: _BuildState, index: int, element: Element) -> None:
        if state.open_unit is None:
            if state.open_group is None:
                state.open_group = self._open_section(
                    state, SectionLevel.GROUP, state.tree.root, index, implicit=True
                )
            state.open_unit = self._open_section(
                state, SectionLevel.UNIT, state.open_group, index, implicit=True
            )
        state.open_unit._append(LeafNode(element))

    def _open_section(
        self,
        state: _BuildState,
        level: SectionLevel,
        parent: SectionNode,
        index: int,
        implicit: bool,
    ) -> SectionNode:
        # Callers append the triggering element straight after, so the new
        # section never stays empty.
        section = SectionNode(level)
        parent._append(section)
        state.sections_opened += 1

        if implicit:
            state.implicit_sections_opened += 1
            self.logger.debug(
                "Opened headingless section",
                extra={"level": level.value, "index": index}
            )
            if self.config.builder.collect_diagnostics:
                state.result.add_diagnostic(
                    DiagnosticSeverity.INFO,
                    f"Opened headingless {level.value} for element {index}",
                    "tree_builder",
                    position={"index": index},
                    details={"level": level.value}
                )
        return section

    def _get_memory_usage(self) -> int:
        """Get current resident memory usage in bytes."""
        return psutil.Process(os.getpid()).memory_info().rss


def build_tree(
    elements: Iterable[ElementInput],
    config: Optional[TimelineConfig] = None
) -> TimelineTree:
    """Build a timeline tree from a flat element sequence.

    Args:
        elements: Elements, or flat row mappings carrying a ``type`` field

    Returns:
        The finished, caller-owned TimelineTree

    Raises:
        InvalidElementTypeError: If any element has an unknown type

    Examples:
        >>> tree = build_tree([
        ...     {"type": "group-heading", "title": "1949"},
        ...     {"type": "record", "title": "Arrival"},
        ... ])
        >>> [section.level.value for section in tree.groups[0].sections]
        ['unit-section']
    """
    return TimelineTreeBuilder(config).build(elements).tree
