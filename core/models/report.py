# ============================================================================
# RUN REPORT MODELS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Run status snapshots and completion report
# PURPOSE: What the orchestrator reports while and after a run executes
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: ExecutionStatus, CompletionReport
# DEPENDENCIES: pydantic
# ============================================================================
"""
Run Report Models

ExecutionStatus is a point-in-time snapshot (get_status); CompletionReport
is produced exactly once when a run reaches a terminal state.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from core.contracts import RunStatus
from core.models.node import NodeState
from core.models.recovery import RecoveryLogEntry


class ExecutionStatus(BaseModel):
    """Snapshot of an in-flight (or finished) run."""
    run_id: str
    model_id: Optional[str] = None
    status: RunStatus = RunStatus.PENDING
    total_nodes: int = 0
    current_level: Optional[int] = None
    current_nodes: List[str] = Field(default_factory=list)
    completed_nodes: List[str] = Field(default_factory=list)
    failed_nodes: List[str] = Field(default_factory=list)
    skipped_nodes: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def progress(self) -> float:
        """Percentage of nodes in a terminal state."""
        if not self.total_nodes:
            return 100.0 if self.status.is_terminal() else 0.0
        done = len(self.completed_nodes) + len(self.failed_nodes) + len(self.skipped_nodes)
        return round(100.0 * done / self.total_nodes, 2)


class CompletionReport(BaseModel):
    """
    Terminal report of one run.

    pending_nodes were never dispatched because the run halted or was
    cancelled first.
    """
    run_id: str
    model_id: Optional[str] = None
    status: RunStatus
    depth: int = Field(default=0, ge=0, description="Fractal nesting depth of the run")

    completed_nodes: List[str] = Field(default_factory=list)
    failed_nodes: List[str] = Field(default_factory=list)
    skipped_nodes: List[str] = Field(default_factory=list)
    pending_nodes: List[str] = Field(default_factory=list)

    node_states: Dict[str, NodeState] = Field(default_factory=dict)
    outputs: Dict[str, Any] = Field(default_factory=dict)
    recovery_log: List[RecoveryLogEntry] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    levels_executed: int = 0
    started_at: datetime
    completed_at: datetime
    elapsed_ms: float = 0.0

    @computed_field
    @property
    def success(self) -> bool:
        return self.status == RunStatus.COMPLETED

    def to_context(self, inputs: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Context shape used for output extraction and templates."""
        return {
            "inputs": inputs or {},
            "nodes": {
                node_id: {"output": state.output, "status": state.status.value}
                for node_id, state in self.node_states.items()
            },
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["ExecutionStatus", "CompletionReport"]
