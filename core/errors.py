# ============================================================================
# ENGINE ERRORS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Foundation - Error taxonomy
# PURPOSE: Typed failures returned (never thrown) by engine components
# CREATED: 19 OCT 2026
# ============================================================================
"""
Engine Errors

Every domain failure is one of these types. Components return them wrapped
in a Result; only the action executor path raises them, and the
orchestrator catches them per node.
"""

from typing import Any, Dict, List, Optional, Sequence

from core.contracts import FailureClass


class EngineError(Exception):
    """Base exception for engine failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(EngineError):
    """Malformed input: duplicate ids, cycles, rule violations."""

    def __init__(
        self,
        message: str,
        errors: Optional[Sequence[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.errors: List[str] = list(errors) if errors else [message]
        super().__init__(message, details)


class IntegrityError(EngineError):
    """Dependencies that reference node ids absent from the graph."""

    def __init__(self, message: str, broken_references: Optional[Sequence[str]] = None):
        self.broken_references: List[str] = list(broken_references or [])
        super().__init__(message, {"broken_references": self.broken_references})


class ConfigurationError(EngineError):
    """Invalid policy or engine configuration."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(message, {"field": field} if field else None)


class ExecutionError(EngineError):
    """A node's action failed. Carries the classification used for recovery."""

    def __init__(
        self,
        message: str,
        failure_class: FailureClass = FailureClass.TRANSIENT_FAILURE,
        node_id: Optional[str] = None,
    ):
        self.failure_class = failure_class
        self.node_id = node_id
        super().__init__(
            message,
            {"failure_class": failure_class.value, "node_id": node_id},
        )


class FractalCycleError(EngineError):
    """A nested model appears twice in the active call chain."""

    def __init__(self, model_id: str, call_chain: Sequence[str]):
        self.model_id = model_id
        self.call_chain: List[str] = list(call_chain)
        chain = " → ".join(self.call_chain + [model_id])
        super().__init__(
            f"Fractal cycle detected: {chain}",
            {"model_id": model_id, "call_chain": self.call_chain},
        )


class DepthExceededError(EngineError):
    """Nesting or dependency depth past the configured bound."""

    def __init__(self, message: str, depth: int, limit: int):
        self.depth = depth
        self.limit = limit
        super().__init__(message, {"depth": depth, "limit": limit})


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "EngineError",
    "ValidationError",
    "IntegrityError",
    "ConfigurationError",
    "ExecutionError",
    "FractalCycleError",
    "DepthExceededError",
]
