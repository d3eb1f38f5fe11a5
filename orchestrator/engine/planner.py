# ============================================================================
# EXECUTION PLANNER
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Level assignment, critical path, parallel grouping
# PURPOSE: Turn an acyclic DependencyGraph into an ExecutionPlan
# CREATED: 19 OCT 2026
# ============================================================================
"""
Execution Planner

Kahn's algorithm assigns each node a level:

    level(n) = 0                                   if n has no dependencies
    level(n) = 1 + max(level(d) for d in deps(n))  otherwise

Nodes on the same level never depend on each other, so a level is a batch
that may run concurrently. Within a level, entries are ordered by priority
(higher first; unset counts as 5), then by input order.

The critical path is the longest chain by weight (1 per node, or the supplied
durations), found by dynamic programming over the topological order. Its
length in nodes is 1 + the maximum level when weights are uniform.
"""

import logging
from collections import deque
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from core.config.defaults import PlannerDefaults
from core.errors import DepthExceededError, ValidationError
from core.models.graph import DependencyGraph
from core.models.plan import CriticalPath, ExecutionPlan, ExecutionPlanEntry
from core.result import Result

logger = logging.getLogger(__name__)


class PlannerConfig(BaseModel):
    """Per-call planning options."""
    max_depth: Optional[int] = Field(default=None, ge=1, description="Hard bound on levels")
    warn_depth: int = Field(default=15, ge=1)
    complexity_threshold: int = Field(default=10, ge=1)
    parallelism_cap: Optional[int] = Field(default=None, ge=1)
    durations: Dict[str, float] = Field(default_factory=dict)

    @field_validator("durations")
    @classmethod
    def _non_negative(cls, v: Dict[str, float]) -> Dict[str, float]:
        for node_id, duration in v.items():
            if duration < 0:
                raise ValueError(f"duration for {node_id} must be non-negative")
        return v

    @classmethod
    def from_defaults(cls, defaults: Optional[PlannerDefaults] = None, **overrides) -> "PlannerConfig":
        defaults = defaults or PlannerDefaults()
        values = {
            "warn_depth": defaults.warn_depth,
            "complexity_threshold": defaults.complexity_threshold,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class ExecutionPlanner:
    """Produces execution plans. Stateless apart from its default config."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()

    # =========================================================================
    # PLAN
    # =========================================================================

    def plan(
        self,
        graph: DependencyGraph,
        config: Optional[PlannerConfig] = None,
    ) -> Result[ExecutionPlan]:
        """
        Build the execution plan for an acyclic graph.

        Fails with ValidationError if the graph has a cycle and with
        DepthExceededError if the level count passes config.max_depth.
        """
        config = config or self.config

        levelled = self._levels(graph)
        if levelled.is_failure:
            return Result.fail(levelled.error)
        levels, topo_order = levelled.value

        depth = (max(levels) + 1) if levels else 0
        if config.max_depth is not None and depth > config.max_depth:
            return Result.fail(DepthExceededError(
                f"Dependency depth {depth} exceeds maximum of {config.max_depth}",
                depth=depth,
                limit=config.max_depth,
            ))

        order = sorted(
            range(len(graph)),
            key=lambda i: (levels[i], -graph.nodes[i].effective_priority, i),
        )

        grouped: List[List[str]] = [[] for _ in range(depth)]
        for i in order:
            grouped[levels[i]].append(graph.nodes[i].node_id)

        entries = []
        for i in order:
            node = graph.nodes[i]
            entries.append(ExecutionPlanEntry(
                node_id=node.node_id,
                level=levels[i],
                dependencies=graph.get_dependencies(node.node_id),
                can_execute_in_parallel=len(grouped[levels[i]]) > 1,
                priority=node.effective_priority,
            ))

        parallel_groups: List[List[str]] = []
        for level_ids in grouped:
            parallel_groups.extend(_chunk(level_ids, config.parallelism_cap))

        plan = ExecutionPlan(
            entries=entries,
            levels=grouped,
            parallel_groups=parallel_groups,
            critical_path=self._critical_path(graph, topo_order, config.durations),
            warnings=self._warnings(graph, depth, config),
            parallelism_cap=config.parallelism_cap,
        )

        logger.debug(
            f"Planned {len(graph)} nodes in {plan.depth} levels, "
            f"critical path {plan.critical_path.node_ids}"
        )
        return Result.ok(plan)

    # =========================================================================
    # INDIVIDUAL QUERIES
    # =========================================================================

    def critical_path(
        self,
        graph: DependencyGraph,
        durations: Optional[Dict[str, float]] = None,
    ) -> Result[CriticalPath]:
        levelled = self._levels(graph)
        if levelled.is_failure:
            return Result.fail(levelled.error)
        _, topo_order = levelled.value
        return Result.ok(self._critical_path(graph, topo_order, durations or {}))

    def execution_order(self, graph: DependencyGraph) -> Result[List[str]]:
        """Flat order: by level, then priority, then input order."""
        planned = self.plan(graph, self.config.model_copy(update={"max_depth": None}))
        if planned.is_failure:
            return Result.fail(planned.error)
        return Result.ok(planned.value.execution_order())

    def reachable_from(self, graph: DependencyGraph, node_id: str) -> Result[List[str]]:
        """Start node plus everything that transitively depends on it."""
        start = graph.index.get(node_id)
        if start is None:
            return Result.fail(ValidationError(f'Start node "{node_id}" not found in graph'))

        visited = {start}
        queue = deque([start])
        reached: List[str] = []
        while queue:
            i = queue.popleft()
            reached.append(graph.nodes[i].node_id)
            for j in graph.dependents[i]:
                if j not in visited:
                    visited.add(j)
                    queue.append(j)
        return Result.ok(reached)

    def dependency_depth(self, graph: DependencyGraph, node_id: str) -> int:
        """
        Level of one node; -1 if the node is unknown or sits on or behind
        a cycle (and so has no level).
        """
        i = graph.index.get(node_id)
        if i is None:
            return -1
        levels, _, _ = _kahn(graph)
        return levels[i] if levels[i] is not None else -1

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _levels(self, graph: DependencyGraph) -> Result[Tuple[List[int], List[int]]]:
        levels, topo_order, remaining = _kahn(graph)
        if remaining:
            names = [graph.nodes[i].node_id for i in remaining]
            return Result.fail(ValidationError(
                f"Graph contains a cycle involving nodes: {names}",
                details={"nodes": names},
            ))
        return Result.ok((levels, topo_order))

    def _critical_path(
        self,
        graph: DependencyGraph,
        topo_order: List[int],
        durations: Dict[str, float],
    ) -> CriticalPath:
        if not topo_order:
            return CriticalPath()

        dist = [0.0] * len(graph)
        pred: List[Optional[int]] = [None] * len(graph)
        for i in topo_order:
            best: Optional[int] = None
            for d in graph.dependencies[i]:
                if best is None or dist[d] > dist[best]:
                    best = d
            weight = durations.get(graph.nodes[i].node_id, 1.0)
            dist[i] = weight + (dist[best] if best is not None else 0.0)
            pred[i] = best

        end = topo_order[0]
        for i in topo_order:
            if dist[i] > dist[end]:
                end = i

        chain: List[str] = []
        cursor: Optional[int] = end
        while cursor is not None:
            chain.append(graph.nodes[cursor].node_id)
            cursor = pred[cursor]
        chain.reverse()
        return CriticalPath(node_ids=chain, total_weight=dist[end])

    def _warnings(self, graph: DependencyGraph, depth: int, config: PlannerConfig) -> List[str]:
        warnings = []
        if depth > config.warn_depth:
            warnings.append(
                f"Deep dependency chain detected ({depth} levels) - "
                f"consider restructuring for better performance"
            )

        threshold = config.complexity_threshold
        for i, node in enumerate(graph.nodes):
            if len(graph.dependencies[i]) > threshold:
                warnings.append(
                    f"Node '{node.display_name}' has {len(graph.dependencies[i])} dependencies "
                    f"(threshold {threshold}) - consider splitting it"
                )
            if len(graph.dependents[i]) > threshold:
                warnings.append(
                    f"Node '{node.display_name}' has {len(graph.dependents[i])} dependents "
                    f"(threshold {threshold}) - it is a bottleneck"
                )
        return warnings


def _kahn(graph: DependencyGraph) -> Tuple[List[Optional[int]], List[int], List[int]]:
    """
    Kahn's algorithm over index adjacency.

    Returns (levels, topological order, indices left over because of cycles).
    Levels of left-over nodes are None.
    """
    n = len(graph)
    in_degree = [len(deps) for deps in graph.dependencies]
    levels: List[Optional[int]] = [None] * n
    queue = deque(i for i in range(n) if in_degree[i] == 0)
    for i in queue:
        levels[i] = 0

    order: List[int] = []
    while queue:
        i = queue.popleft()
        order.append(i)
        for j in graph.dependents[i]:
            candidate = levels[i] + 1
            if levels[j] is None or candidate > levels[j]:
                levels[j] = candidate
            in_degree[j] -= 1
            if in_degree[j] == 0:
                queue.append(j)

    remaining = [i for i in range(n) if in_degree[i] > 0]
    for i in remaining:
        levels[i] = None
    return levels, order, remaining


def _chunk(ids: List[str], size: Optional[int]) -> List[List[str]]:
    if not ids:
        return []
    if not size:
        return [list(ids)]
    return [ids[k:k + size] for k in range(0, len(ids), size)]


__all__ = ["ExecutionPlanner", "PlannerConfig"]
