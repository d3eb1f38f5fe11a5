# ============================================================================
# NODE MODELS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Node definition and runtime state
# PURPOSE: Authored unit of work and its per-run state
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: Node, NodeState, DEFAULT_PRIORITY
# DEPENDENCIES: pydantic
# ============================================================================
"""
Node Models

Key concept:
- Node = TEMPLATE (what to do, what it depends on)
- NodeState = INSTANCE (runtime state for one run)

The graph holds Nodes and is never mutated while a run is in flight; the
orchestrator creates one NodeState per node and updates those instead.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from core.contracts import FailureClass, NodeKind, NodeStatus
from core.models.recovery import RetryPolicy

# Priority used when a node does not set one
DEFAULT_PRIORITY = 5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Node(BaseModel):
    """
    A unit of work with identity and ordered dependencies.

    Dependencies are node ids. Duplicates are dropped, first occurrence wins.
    """
    node_id: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(default=None, max_length=256)
    kind: NodeKind = Field(default=NodeKind.STAGE)
    dependencies: List[str] = Field(default_factory=list)
    priority: Optional[int] = Field(default=None, description="Higher runs first within a level")

    # Action
    handler: Optional[str] = Field(default=None, max_length=64)
    params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Parameters with {{ template }} expressions"
    )
    timeout_seconds: Optional[float] = Field(default=None, gt=0)
    retry: Optional[RetryPolicy] = None
    allow_failure: bool = Field(
        default=False,
        description="Failure of this node never halts the run"
    )

    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _normalize_dependencies(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        seen = set()
        ordered = []
        for dep in v:
            if dep not in seen:
                seen.add(dep)
                ordered.append(dep)
        return ordered

    @property
    def effective_priority(self) -> int:
        return DEFAULT_PRIORITY if self.priority is None else self.priority

    @property
    def display_name(self) -> str:
        return self.name or self.node_id

    def is_container(self) -> bool:
        return self.kind == NodeKind.CONTAINER

    def has_dependency(self, node_id: str) -> bool:
        return node_id in self.dependencies

    def add_dependency(self, node_id: str) -> None:
        if node_id not in self.dependencies:
            self.dependencies.append(node_id)

    def remove_dependency(self, node_id: str) -> bool:
        """Remove a dependency. Returns False if it was not present."""
        if node_id not in self.dependencies:
            return False
        self.dependencies.remove(node_id)
        return True


class NodeState(BaseModel):
    """
    Runtime state of a node within one run.

    Lifecycle:
        1. Created with status=PENDING when the run starts
        2. RUNNING when its level dispatches it
        3. COMPLETED or FAILED when the action returns
        4. FAILED -> PENDING through prepare_retry while attempts remain
        5. SKIPPED if a fatal dependency did not complete
    """
    node_id: str
    status: NodeStatus = Field(default=NodeStatus.PENDING)
    attempts: int = Field(default=0, ge=0)
    output: Optional[Any] = None
    error_message: Optional[str] = Field(default=None, max_length=2000)
    failure_class: Optional[FailureClass] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @computed_field
    @property
    def execution_duration_seconds(self) -> Optional[float]:
        if not self.started_at:
            return None
        end_time = self.completed_at or _utc_now()
        return (end_time - self.started_at).total_seconds()

    def can_transition_to(self, new_status: NodeStatus) -> bool:
        """
        Validate a status transition.

        Valid transitions:
            PENDING -> RUNNING, SKIPPED
            RUNNING -> COMPLETED, FAILED
            FAILED -> PENDING (retry)
            COMPLETED, SKIPPED -> (none, terminal)
        """
        if self.status == new_status:
            return True

        allowed = {
            NodeStatus.PENDING: {NodeStatus.RUNNING, NodeStatus.SKIPPED},
            NodeStatus.RUNNING: {NodeStatus.COMPLETED, NodeStatus.FAILED},
            NodeStatus.FAILED: {NodeStatus.PENDING},
            NodeStatus.COMPLETED: set(),
            NodeStatus.SKIPPED: set(),
        }
        return new_status in allowed.get(self.status, set())

    def _transition(self, new_status: NodeStatus) -> None:
        if not self.can_transition_to(new_status):
            raise ValueError(f"Cannot transition from {self.status.value} to {new_status.value}")
        self.status = new_status

    def mark_running(self) -> None:
        self._transition(NodeStatus.RUNNING)
        self.attempts += 1
        self.started_at = _utc_now()
        self.completed_at = None

    def mark_completed(self, output: Any = None) -> None:
        self._transition(NodeStatus.COMPLETED)
        self.output = output
        self.error_message = None
        self.failure_class = None
        self.completed_at = _utc_now()

    def mark_failed(self, error_message: str, failure_class: Optional[FailureClass] = None) -> None:
        self._transition(NodeStatus.FAILED)
        self.error_message = error_message[:2000]
        self.failure_class = failure_class
        self.completed_at = _utc_now()

    def mark_skipped(self, reason: str) -> None:
        self._transition(NodeStatus.SKIPPED)
        self.error_message = reason[:2000]
        self.completed_at = _utc_now()

    def prepare_retry(self) -> bool:
        """Reset a failed node to PENDING. Returns False if it had not failed."""
        if self.status != NodeStatus.FAILED:
            return False
        self.status = NodeStatus.PENDING
        self.started_at = None
        self.completed_at = None
        return True


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["Node", "NodeState", "DEFAULT_PRIORITY"]
