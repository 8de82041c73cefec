"""Shared utilities for timeline tree building.

This module provides the configuration objects, result types and logging
helpers used across the builder, the loaders and the command-line tool.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    BuilderConfig,
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    HeadingTheme,
    RecordTheme,
    RenderConfig,
    ThemeConfig,
    TimelineConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "BuilderConfig",
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "HeadingTheme",
    "RecordTheme",
    "RenderConfig",
    "ThemeConfig",
    "TimelineConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
