# ============================================================================
# ORCHESTRATOR ENGINE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Engine components
# PURPOSE: Graph building, cycle detection, planning, validation, context, retry
# CREATED: 31 JAN 2026
# ============================================================================
"""
Orchestrator Engine Components

- graph: GraphBuilder (node list -> DependencyGraph)
- cycles: CycleDetector
- planner: ExecutionPlanner (levels, critical path, parallel groups)
- validator: WorkflowValidator, IntegrityChecker
- context: ContextPropagator
- templates: Jinja2-based template resolution and context paths
- retry: RetryCoordinator
"""

from orchestrator.engine.graph import GraphBuilder
from orchestrator.engine.cycles import CycleDetector
from orchestrator.engine.planner import ExecutionPlanner, PlannerConfig
from orchestrator.engine.validator import WorkflowValidator, IntegrityChecker
from orchestrator.engine.context import ContextPropagator
from orchestrator.engine.templates import (
    TemplateResolver,
    TemplateContext,
    NodeContext,
    TemplateResolutionError,
    ContextMapper,
)
from orchestrator.engine.retry import RetryCoordinator

__all__ = [
    "GraphBuilder",
    "CycleDetector",
    "ExecutionPlanner",
    "PlannerConfig",
    "WorkflowValidator",
    "IntegrityChecker",
    "ContextPropagator",
    "TemplateResolver",
    "TemplateContext",
    "NodeContext",
    "TemplateResolutionError",
    "ContextMapper",
    "RetryCoordinator",
]
