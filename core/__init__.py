# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors and the Result type
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import (
    NodeKind,
    NodeStatus,
    RunStatus,
    AccessRight,
    AccessLevel,
    ContextRelation,
    BackoffKind,
    FailureClass,
    RecoveryAction,
    EngineOperation,
)
from core.errors import (
    EngineError,
    ValidationError,
    IntegrityError,
    ConfigurationError,
    ExecutionError,
    FractalCycleError,
    DepthExceededError,
)
from core.result import Result

__all__ = [
    # Enums
    "NodeKind",
    "NodeStatus",
    "RunStatus",
    "AccessRight",
    "AccessLevel",
    "ContextRelation",
    "BackoffKind",
    "FailureClass",
    "RecoveryAction",
    "EngineOperation",
    # Errors
    "EngineError",
    "ValidationError",
    "IntegrityError",
    "ConfigurationError",
    "ExecutionError",
    "FractalCycleError",
    "DepthExceededError",
    # Result
    "Result",
]
