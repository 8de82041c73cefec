"""Diagnostic and performance result types for timeline tree building.

These objects travel with every build so callers can inspect what the builder
did (implicit sections it had to open, empty input) without parsing logs.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to dictionary representation."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.position is not None:
            result["position"] = dict(self.position)
        if self.details is not None:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for a single build."""

    processing_time_ms: float = 0.0
    memory_used_bytes: int = 0
    elements_processed: int = 0
    sections_opened: int = 0
    implicit_sections_opened: int = 0

    @property
    def elements_per_second(self) -> float:
        """Calculate elements processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_processed * 1000.0) / self.processing_time_ms

    @property
    def sections_per_element(self) -> float:
        """Ratio of sections opened to elements consumed."""
        if self.elements_processed == 0:
            return 0.0
        return self.sections_opened / self.elements_processed

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary representation."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "memory_used_bytes": self.memory_used_bytes,
            "elements_processed": self.elements_processed,
            "sections_opened": self.sections_opened,
            "implicit_sections_opened": self.implicit_sections_opened,
            "elements_per_second": self.elements_per_second,
        }
