# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Structured logging with run context
# PURPOSE: Consistent, queryable logging across engine components
# CREATED: 31 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Provides structured logging for the dependency engine.

Features:
- Contextual fields (run_id, model_id, node_id, depth)
- JSON output for log aggregation
- Named checkpoints for tracing a run

Context lives in a ContextVar, so each asyncio task of a run (and each
nested fractal run) sees its own fields.

Usage:
    import logging
    from core.logging import log_context

    logger = logging.getLogger(__name__)

    with log_context(run_id="run-123", model_id="pricing"):
        logger.info("Executing level 2")
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class LogContext:
    """Contextual fields attached to every record logged inside log_context."""
    run_id: Optional[str] = None
    model_id: Optional[str] = None
    node_id: Optional[str] = None
    depth: Optional[int] = None
    component: Optional[str] = None
    operation: Optional[str] = None
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


_current_context: ContextVar[LogContext] = ContextVar("engine_log_context", default=LogContext())


def get_current_context() -> LogContext:
    """Get current logging context."""
    return _current_context.get()


@contextmanager
def log_context(**kwargs):
    """
    Context manager for adding logging context.

    Fields not given are inherited from the enclosing context.

    Example:
        with log_context(run_id="run-123", node_id="price"):
            logger.info("Executing node")
    """
    parent = get_current_context()
    extra = {**parent.extra, **kwargs.pop("extra", {})}
    known = {k: v for k, v in kwargs.items() if k in LogContext.__dataclass_fields__}
    extra.update({k: v for k, v in kwargs.items() if k not in known})
    new_context = replace(parent, extra=extra, **known)

    token = _current_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_context.reset(token)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON for easy parsing by log aggregators.
    """

    def __init__(self, include_context: bool = True, include_source: bool = True):
        super().__init__()
        self.include_context = include_context
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": _utc_now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context_dict = get_current_context().to_dict()
            if context_dict:
                log_data["context"] = context_dict

        if getattr(record, "extra", None):
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
    One line per record. Nested fractal runs are indented by depth so a
    parent run and its children read as a tree.
    """

    _FIELDS = (("run", "run_id"), ("model", "model_id"), ("node", "node_id"), ("op", "operation"))

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        tags = [
            f"{label}={getattr(context, attr)}"
            for label, attr in self._FIELDS
            if getattr(context, attr)
        ]
        indent = "  " * (context.depth or 0)

        line = (
            f"{_utc_now():%H:%M:%S} {record.levelname:<7} {indent}{record.name}"
            f"{' [' + ' '.join(tags) + ']' if tags else ''}: {record.getMessage()}"
        )
        if getattr(record, "extra", None):
            line += f" {record.extra}"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    include_source: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON format (also enabled by LOG_FORMAT=json)
        include_source: Include source file/line info in JSON records
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

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


# ============================================================================
# CHECKPOINT LOGGING
# ============================================================================

def log_checkpoint(
    name: str,
    data: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log a named checkpoint.

    Checkpoints are named markers ("run_started", "level_completed") that can
    be queried to reconstruct the flow of a run.
    """
    if logger is None:
        logger = logging.getLogger("checkpoint")

    checkpoint_data: Dict[str, Any] = {
        "checkpoint": name,
        "timestamp": _utc_now().isoformat(),
    }
    checkpoint_data.update(get_current_context().to_dict())
    if data:
        checkpoint_data["data"] = data

    logger.info(f"CHECKPOINT: {name}", extra={"extra": checkpoint_data})


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "configure_logging",
    "log_context",
    "get_current_context",
    "log_checkpoint",
]
