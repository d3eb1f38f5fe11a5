# ============================================================================
# PLANNING MODELS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Cycle, validation and execution plan records
# PURPOSE: Artifacts produced by detector, validators and planner
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: Cycle, CycleReport, ExecutionPlanEntry, CriticalPath,
#          ExecutionPlan, ValidationReport, RepairAction, IntegrityReport
# DEPENDENCIES: pydantic
# ============================================================================
"""
Planning Models

Everything here is a plain value: produced once, read by callers and the
orchestrator, never mutated afterwards.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from core.models.node import Node


# ============================================================================
# CYCLES
# ============================================================================

class Cycle(BaseModel):
    """
    A dependency loop.

    Every member appears once. Each id is a dependency of the next one and
    the last id is a dependency of the first.
    """
    node_ids: List[str]

    def __len__(self) -> int:
        return len(self.node_ids)

    @property
    def closed_path(self) -> List[str]:
        """Members with the first id repeated at the end."""
        return self.node_ids + self.node_ids[:1]

    def describe(self, names: Optional[Dict[str, str]] = None) -> str:
        names = names or {}
        return " → ".join(names.get(node_id, node_id) for node_id in self.closed_path)

    def canonical(self) -> tuple:
        """Rotation-independent identity, used for de-duplication."""
        if not self.node_ids:
            return ()
        start = self.node_ids.index(min(self.node_ids))
        return tuple(self.node_ids[start:] + self.node_ids[:start])


class CycleReport(BaseModel):
    cycles: List[Cycle] = Field(default_factory=list)

    @computed_field
    @property
    def is_acyclic(self) -> bool:
        return not self.cycles

    @property
    def nodes_in_cycles(self) -> List[str]:
        seen: Dict[str, None] = {}
        for cycle in self.cycles:
            for node_id in cycle.node_ids:
                seen.setdefault(node_id, None)
        return list(seen)


# ============================================================================
# EXECUTION PLAN
# ============================================================================

class ExecutionPlanEntry(BaseModel):
    """Scheduling record for one node."""
    node_id: str
    level: int = Field(..., ge=0)
    dependencies: List[str] = Field(default_factory=list)
    can_execute_in_parallel: bool = False
    priority: int = 5


class CriticalPath(BaseModel):
    """Longest weighted chain through the graph."""
    node_ids: List[str] = Field(default_factory=list)
    total_weight: float = 0.0

    @computed_field
    @property
    def length(self) -> int:
        return len(self.node_ids)


class ExecutionPlan(BaseModel):
    """
    Level-ordered plan.

    entries are sorted by level, then priority (high first), then input order.
    levels[k] lists the ids at level k in the same order.
    parallel_groups splits each level into batches no larger than the cap.
    """
    entries: List[ExecutionPlanEntry] = Field(default_factory=list)
    levels: List[List[str]] = Field(default_factory=list)
    parallel_groups: List[List[str]] = Field(default_factory=list)
    critical_path: CriticalPath = Field(default_factory=CriticalPath)
    warnings: List[str] = Field(default_factory=list)
    parallelism_cap: Optional[int] = None

    @computed_field
    @property
    def depth(self) -> int:
        return len(self.levels)

    @computed_field
    @property
    def max_parallelism(self) -> int:
        return max((len(level) for level in self.levels), default=0)

    def entry_for(self, node_id: str) -> Optional[ExecutionPlanEntry]:
        for entry in self.entries:
            if entry.node_id == node_id:
                return entry
        return None

    def execution_order(self) -> List[str]:
        return [entry.node_id for entry in self.entries]


# ============================================================================
# VALIDATION & INTEGRITY
# ============================================================================

class ValidationReport(BaseModel):
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors


class RepairAction(BaseModel):
    action: str
    target: str
    status: str = "applied"


class IntegrityReport(BaseModel):
    """
    Broken-reference findings, and the repair applied when one was requested.

    broken_references: "node -> missing" strings
    missing_dependencies: distinct referenced ids absent from the node set
    repaired_nodes: node copies with dangling dependencies removed
    """
    broken_references: List[str] = Field(default_factory=list)
    missing_dependencies: List[str] = Field(default_factory=list)
    repair_actions: List[RepairAction] = Field(default_factory=list)
    repaired_nodes: List[Node] = Field(default_factory=list)
    remaining_issues: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_intact(self) -> bool:
        return not self.broken_references

    @computed_field
    @property
    def all_repairs_successful(self) -> bool:
        return bool(self.repair_actions) and not self.remaining_issues


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "Cycle",
    "CycleReport",
    "ExecutionPlanEntry",
    "CriticalPath",
    "ExecutionPlan",
    "ValidationReport",
    "RepairAction",
    "IntegrityReport",
]
