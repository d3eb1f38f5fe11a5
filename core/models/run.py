# ============================================================================
# RUN CONFIGURATION
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Per-run execution options
# PURPOSE: Everything one orchestrator run needs besides its nodes
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: RunConfig
# DEPENDENCIES: pydantic
# ============================================================================
"""
Run Configuration

Unset (None) options fall back to the orchestrator's EngineDefaults when
the run starts, so a RunConfig only has to name what differs.
"""

from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from core.models.context import ContextAccessRule, ContextFlowPolicy
from core.models.fractal import FractalBinding
from core.models.recovery import RecoveryStrategyMap, RetryPolicy


class RunConfig(BaseModel):
    """Options for one orchestrator run."""
    run_id: str = Field(default_factory=lambda: uuid4().hex, min_length=1)
    model_id: Optional[str] = Field(default=None, description="Model this run executes, if any")
    inputs: Dict[str, Any] = Field(default_factory=dict)

    # Scheduling
    parallelism_cap: Optional[int] = Field(default=None, ge=1)
    node_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    stage_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    continue_on_failure: Optional[bool] = None

    # Planning
    warn_depth: Optional[int] = Field(default=None, ge=1)
    max_depth: Optional[int] = Field(default=None, ge=1)

    # Recovery
    retry_policy: Optional[RetryPolicy] = None
    recovery_strategies: Optional[RecoveryStrategyMap] = None

    # Context isolation (no rules = every completed node is visible)
    context_rules: List[ContextAccessRule] = Field(default_factory=list)
    flow_policy: Optional[ContextFlowPolicy] = None
    max_hierarchy_depth: Optional[int] = Field(default=None, ge=0)

    # Nesting
    bindings: List[FractalBinding] = Field(default_factory=list)
    max_nesting_depth: Optional[int] = Field(default=None, ge=0)

    def binding_for(self, node_id: str) -> Optional[FractalBinding]:
        for binding in self.bindings:
            if binding.container_node_id == node_id:
                return binding
        return None


__all__ = ["RunConfig"]
