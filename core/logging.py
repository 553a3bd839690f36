# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across monitor components
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Provides structured, JSON-formatted logging for the dependency monitor.

Features:
- Component-based loggers
- Contextual fields (dependency, operation, monitor_id)
- JSON output for log aggregation
- Context isolated per asyncio task

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger("health.monitor")

    with log_context(dependency="postgres", operation="evaluate"):
        logger.info("Evaluating dependency", extra={"ttl_ms": 60000})
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union
from enum import Enum


class ComponentType(str, Enum):
    """Component types for logging categorization."""
    MONITOR = "monitor"
    CACHE = "cache"
    REGISTRY = "registry"
    METRICS = "metrics"
    API = "api"


@dataclass
class LogContext:
    """
    Context for structured logging.

    Stored in a ContextVar so each asyncio task sees its own fields.
    """
    dependency: Optional[str] = None
    operation: Optional[str] = None
    monitor_id: Optional[str] = None
    correlation_id: Optional[str] = None
    component: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is not None and key != "extra":
                result[key] = value
        if self.extra:
            result.update(self.extra)
        return result


# Task-local context stack (tuples are immutable, so copies never alias)
_context_stack: ContextVar[Tuple[LogContext, ...]] = ContextVar(
    "depmon_log_context", default=()
)


def get_current_context() -> LogContext:
    """Get current logging context."""
    stack = _context_stack.get()
    if stack:
        return stack[-1]
    return LogContext()


@contextmanager
def log_context(**kwargs):
    """
    Context manager for adding logging context.

    Args:
        **kwargs: Context fields to add

    Example:
        with log_context(dependency="redis", operation="refresh"):
            logger.info("Refreshing")
    """
    # Merge with parent context
    parent = get_current_context()
    new_context = LogContext(
        dependency=kwargs.get("dependency", parent.dependency),
        operation=kwargs.get("operation", parent.operation),
        monitor_id=kwargs.get("monitor_id", parent.monitor_id),
        correlation_id=kwargs.get("correlation_id", parent.correlation_id),
        component=kwargs.get("component", parent.component),
        extra={**parent.extra, **kwargs.get("extra", {})},
    )

    token = _context_stack.set(_context_stack.get() + (new_context,))
    try:
        yield new_context
    finally:
        _context_stack.reset(token)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON for easy parsing by log aggregators.
    """

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_context: bool = True,
        include_source: bool = True,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_context = include_context
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.now(timezone.utc).isoformat()

        if self.include_level:
            log_data["level"] = record.levelname

        if self.include_logger:
            log_data["logger"] = record.name

        log_data["message"] = record.getMessage()

        if self.include_context:
            context_dict = get_current_context().to_dict()
            if context_dict:
                log_data["context"] = context_dict

        # Extra fields attached by ContextLogger
        if hasattr(record, "extra") and record.extra:
            log_data["data"] = record.extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_source:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Includes context fields inline for easy reading.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human reading."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)

        context = get_current_context()
        context_parts = []
        if context.dependency:
            context_parts.append(f"dep={context.dependency}")
        if context.operation:
            context_parts.append(f"op={context.operation}")
        if context.monitor_id:
            context_parts.append(f"monitor={context.monitor_id}")

        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        message = record.getMessage()

        extra_str = ""
        if hasattr(record, "extra") and record.extra:
            extra_str = f" {record.extra}"

        result = f"{timestamp} {level} {record.name}{context_str}: {message}{extra_str}"

        if record.exc_info:
            result += f"\n{self.formatException(record.exc_info)}"

        return result


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that includes context in log records.

    Automatically includes the task-local context in all log messages.
    """

    def process(self, msg, kwargs):
        """Process log record to include context."""
        extra = dict(kwargs.get("extra") or {})
        extra.update(get_current_context().to_dict())
        if self.extra and self.extra.get("component"):
            extra.setdefault("component", self.extra["component"])

        # Store as attribute for formatter access
        kwargs["extra"] = {"extra": extra}

        return msg, kwargs


def get_logger(
    name: str,
    component: Optional[ComponentType] = None,
) -> ContextLogger:
    """
    Get a context-aware logger.

    Args:
        name: Logger name (e.g., "health.monitor")
        component: Optional component type for categorization

    Returns:
        ContextLogger instance
    """
    base_logger = logging.getLogger(name)
    component_value = component.value if component is not None else None
    return ContextLogger(base_logger, {"component": component_value})


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    include_source: bool = True,
) -> None:
    """
    Configure logging for the host process.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON format (for production)
        include_source: Include source file/line info in JSON output
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter = StructuredFormatter(include_context=True, include_source=include_source)
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ComponentType",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "get_current_context",
]
