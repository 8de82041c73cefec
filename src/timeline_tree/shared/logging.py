"""Structured logging utilities for timeline tree building.

Wraps the standard library logger so every record carries the component name,
an optional correlation ID for tracing one build across log lines, and any
context bound to the logger (such as the file being built).
"""

import logging
from typing import Any, Dict, Optional


class CorrelationLogger:
    """Logger that automatically includes correlation ID and component information."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name for structured logging
            context: Fields attached to every record from this logger
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split('.')[-1]
        self.context = dict(context or {})

    def bind(self, **context: Any) -> "CorrelationLogger":
        """Return a logger that adds ``context`` to every record."""
        return CorrelationLogger(
            self.logger.name,
            self.correlation_id,
            self.component,
            {**self.context, **context},
        )

    def _log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]],
        exc_info: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        record_extra = {
            "component": self.component,
            "correlation_id": self.correlation_id,
            **self.context,
        }
        if extra:
            record_extra.update(extra)
        self.logger.log(level, message, extra=record_extra, exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra)

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True
    ) -> None:
        """Log an error; the active exception's traceback is included by default."""
        self._log(logging.ERROR, message, extra, exc_info)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        CorrelationLogger instance
    """
    return CorrelationLogger(name, correlation_id, component)


class _RecordDefaults(logging.Filter):
    """Fill in the structured fields for records that bypassed CorrelationLogger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler whose format shows component and correlation ID.

    Args:
        level: Standard logging level name, e.g. ``"DEBUG"``
    """
    handler = logging.StreamHandler()
    handler.addFilter(_RecordDefaults())
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s [%(component)s %(correlation_id)s] %(message)s"
    ))
    logging.basicConfig(level=getattr(logging, level), handlers=[handler])
