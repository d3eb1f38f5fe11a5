# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Model exports
# PURPOSE: Central export point for all engine models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models for nodes, plans, context rules, recovery, nested models,
run reports and facade commands. DependencyGraph is a frozen dataclass
built only by GraphBuilder.
"""

from core.models.node import Node, NodeState, DEFAULT_PRIORITY
from core.models.graph import DependencyGraph
from core.models.plan import (
    Cycle,
    CycleReport,
    ExecutionPlanEntry,
    CriticalPath,
    ExecutionPlan,
    ValidationReport,
    RepairAction,
    IntegrityReport,
)
from core.models.context import (
    ContextAccessRule,
    ContextFlowPolicy,
    ContextAccessDecision,
    ContextHierarchySummary,
)
from core.models.recovery import (
    RetryPolicy,
    RecoveryStrategyMap,
    RecoveryDecision,
    RecoveryLogEntry,
)
from core.models.report import ExecutionStatus, CompletionReport
from core.models.fractal import FractalBinding, NestedModel, FractalResult
from core.models.run import RunConfig
from core.models.events import EngineEvent, EventType, EventStatus
from core.models.commands import EngineCommand, EngineResponse, parse_command

__all__ = [
    # Node
    "Node",
    "NodeState",
    "DEFAULT_PRIORITY",
    # Graph & plan
    "DependencyGraph",
    "Cycle",
    "CycleReport",
    "ExecutionPlanEntry",
    "CriticalPath",
    "ExecutionPlan",
    "ValidationReport",
    "RepairAction",
    "IntegrityReport",
    # Context
    "ContextAccessRule",
    "ContextFlowPolicy",
    "ContextAccessDecision",
    "ContextHierarchySummary",
    # Recovery
    "RetryPolicy",
    "RecoveryStrategyMap",
    "RecoveryDecision",
    "RecoveryLogEntry",
    # Runs
    "ExecutionStatus",
    "CompletionReport",
    "FractalBinding",
    "NestedModel",
    "FractalResult",
    "RunConfig",
    # Events
    "EngineEvent",
    "EventType",
    "EventStatus",
    # Commands
    "EngineCommand",
    "EngineResponse",
    "parse_command",
]
