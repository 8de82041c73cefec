"""Structural validation of built timeline trees.

The builder maintains these invariants by construction; the validator checks
them from the outside so trees produced elsewhere (deserialized, hand-made in
tests, or from a future builder change) can be verified the same way.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from timeline_tree.shared import DiagnosticSeverity, get_logger
from timeline_tree.tree.elements import Element, ElementType
from timeline_tree.tree.nodes import LeafNode, SectionLevel, SectionNode, TimelineTree

_MAX_DEPTH = 3


class ValidationIssueType(Enum):
    """Types of structural issues the validator reports."""

    EMPTY_SECTION = "empty_section"
    HEADING_POSITION = "heading_position"
    DUPLICATE_HEADING = "duplicate_heading"
    DEPTH_TYPING = "depth_typing"
    ORDER_MISMATCH = "order_mismatch"
    INTERNAL_ERROR = "internal_error"


@dataclass
class ValidationIssue:
    """Single validation issue with detailed information."""

    issue_type: ValidationIssueType
    severity: DiagnosticSeverity
    message: str
    node_path: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        """Validate issue data."""
        if not self.message:
            raise ValueError("Validation issue message cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "issue_type": self.issue_type.value,
            "severity": self.severity.name,
            "message": self.message,
        }
        if self.node_path is not None:
            result["node_path"] = self.node_path
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class ValidationResult:
    """Outcome of validating one tree."""

    success: bool = True
    issues: List[ValidationIssue] = field(default_factory=list)
    rules_checked: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0
    nodes_validated: int = 0

    @property
    def error_count(self) -> int:
        """Get number of error-level issues."""
        return len([
            issue for issue in self.issues
            if issue.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
        ])

    def get_issues_by_type(self, issue_type: ValidationIssueType) -> List[ValidationIssue]:
        """Get validation issues of specific type."""
        return [issue for issue in self.issues if issue.issue_type == issue_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error_count": self.error_count,
            "nodes_validated": self.nodes_validated,
            "rules_checked": list(self.rules_checked),
            "processing_time_ms": self.processing_time_ms,
            "issues": [issue.to_dict() for issue in self.issues],
        }


class TreeValidator:
    """Checks a timeline tree against its structural invariants.

    Rules:
        non_empty_sections: every section has at least one child
        heading_first: a heading leaf, if present, is its section's first child
        single_heading: a section holds at most one heading leaf
        depth_typing: depth 1 holds group sections, depth 2 group headings or
            unit sections, depth 3 unit headings or records
        order_preservation: pre-order leaves reproduce the source sequence
            (only when the source is supplied)
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_validator")

    def validate(
        self,
        tree: TimelineTree,
        source: Optional[Sequence[Element]] = None,
    ) -> ValidationResult:
        """Validate a timeline tree.

        Args:
            tree: Tree to check
            source: Element sequence the tree was built from, if known

        Returns:
            ValidationResult listing every violation found
        """
        start_time = time.time()
        result = ValidationResult()

        try:
            if tree.root.level is not SectionLevel.ROOT:
                self._add_issue(
                    result,
                    ValidationIssueType.DEPTH_TYPING,
                    f"Tree root has level {tree.root.level.value}, expected root",
                    "/",
                )
            for position, child in enumerate(tree.root.children, start=1):
                self._check_node(child, 1, f"/{position}", result)

            result.rules_checked.extend([
                "non_empty_sections",
                "heading_first",
                "single_heading",
                "depth_typing",
            ])

            if source is not None:
                self._check_order(tree, source, result)
                result.rules_checked.append("order_preservation")

        except Exception as e:
            self.logger.error("Tree validation failed", extra={"error": str(e)})
            result.issues.append(ValidationIssue(
                issue_type=ValidationIssueType.INTERNAL_ERROR,
                severity=DiagnosticSeverity.CRITICAL,
                message=f"Validation failed: {e}",
                details={"exception_type": type(e).__name__},
            ))

        result.success = result.error_count == 0
        result.processing_time_ms = (time.time() - start_time) * 1000

        self.logger.info(
            "Tree validation completed",
            extra={
                "success": result.success,
                "error_count": result.error_count,
                "nodes_validated": result.nodes_validated,
            }
        )
        return result

    def _check_node(self, node: Any, depth: int, path: str, result: ValidationResult) -> None:
        result.nodes_validated += 1

        if not self._allowed_at_depth(node, depth):
            self._add_issue(
                result,
                ValidationIssueType.DEPTH_TYPING,
                f"{self._describe(node)} is not allowed at depth {depth}",
                path,
                {"depth": depth},
            )

        if not isinstance(node, SectionNode):
            return

        if not node.children:
            self._add_issue(
                result,
                ValidationIssueType.EMPTY_SECTION,
                f"{node.level.value} has no children",
                path,
            )

        heading_positions = [
            position for position, child in enumerate(node.children)
            if isinstance(child, LeafNode) and child.is_heading
        ]
        if len(heading_positions) > 1:
            self._add_issue(
                result,
                ValidationIssueType.DUPLICATE_HEADING,
                f"{node.level.value} has {len(heading_positions)} headings",
                path,
                {"positions": heading_positions},
            )
        for position in heading_positions:
            if position != 0:
                self._add_issue(
                    result,
                    ValidationIssueType.HEADING_POSITION,
                    f"Heading at child position {position} of {node.level.value}",
                    f"{path}/{position + 1}",
                )

        if depth >= _MAX_DEPTH:
            return
        for position, child in enumerate(node.children, start=1):
            self._check_node(child, depth + 1, f"{path}/{position}", result)

    @staticmethod
    def _allowed_at_depth(node: Any, depth: int) -> bool:
        if isinstance(node, SectionNode):
            return (
                (depth == 1 and node.level is SectionLevel.GROUP)
                or (depth == 2 and node.level is SectionLevel.UNIT)
            )
        if isinstance(node, LeafNode):
            if depth == 2:
                return node.element_type is ElementType.GROUP_HEADING
            if depth == 3:
                return node.element_type in (ElementType.UNIT_HEADING, ElementType.RECORD)
        return False

    @staticmethod
    def _describe(node: Any) -> str:
        if isinstance(node, SectionNode):
            return node.level.value
        if isinstance(node, LeafNode):
            return f"{node.element_type.value} leaf"
        return type(node).__name__

    def _check_order(
        self,
        tree: TimelineTree,
        source: Sequence[Element],
        result: ValidationResult,
    ) -> None:
        leaves = tree.elements()
        if len(leaves) != len(source):
            self._add_issue(
                result,
                ValidationIssueType.ORDER_MISMATCH,
                f"Tree holds {len(leaves)} leaves but source has {len(source)} elements",
                details={"leaf_count": len(leaves), "source_count": len(source)},
            )
        for index, (leaf_element, source_element) in enumerate(zip(leaves, source)):
            if leaf_element != source_element:
                self._add_issue(
                    result,
                    ValidationIssueType.ORDER_MISMATCH,
                    f"Leaf {index} does not match source element {index}",
                    details={
                        "index": index,
                        "leaf_type": leaf_element.element_type.value,
                        "source_type": source_element.element_type.value,
                    },
                )
                break

    def _add_issue(
        self,
        result: ValidationResult,
        issue_type: ValidationIssueType,
        message: str,
        node_path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        result.issues.append(ValidationIssue(
            issue_type=issue_type,
            severity=DiagnosticSeverity.ERROR,
            message=message,
            node_path=node_path,
            details=details,
        ))
