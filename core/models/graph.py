# ============================================================================
# DEPENDENCY GRAPH
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Read-only dependency graph
# PURPOSE: Index-based graph storage shared by builder, detector, planner
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: DependencyGraph
# DEPENDENCIES: dataclasses
# ============================================================================
"""
Dependency Graph

Nodes live in a dense tuple; edges are stored as integer indices into it.
A -> B means "B depends on A" (A must complete before B).

    dependencies[i]  indices of the nodes node i depends on (declared order)
    dependents[i]    indices of the nodes that depend on node i

Once built the graph is never mutated, so any number of readers (planner,
orchestrator workers, nested runs) can share it.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

from core.models.node import Node


@dataclass(frozen=True)
class DependencyGraph:
    """Adjacency-by-index graph over a fixed node set."""
    nodes: Tuple[Node, ...] = ()
    index: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    dependencies: Tuple[Tuple[int, ...], ...] = ()
    dependents: Tuple[Tuple[int, ...], ...] = ()

    # (node_id, referenced_id) pairs allowed to point outside this graph
    deferred_references: Tuple[Tuple[str, str], ...] = ()

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.index

    @property
    def node_ids(self) -> List[str]:
        return [node.node_id for node in self.nodes]

    @property
    def edge_count(self) -> int:
        return sum(len(deps) for deps in self.dependencies)

    def get_node(self, node_id: str) -> Optional[Node]:
        i = self.index.get(node_id)
        return None if i is None else self.nodes[i]

    def get_dependencies(self, node_id: str) -> List[str]:
        """Get ids of nodes that this node depends on."""
        i = self.index.get(node_id)
        if i is None:
            return []
        return [self.nodes[j].node_id for j in self.dependencies[i]]

    def get_dependents(self, node_id: str) -> List[str]:
        """Get ids of nodes that depend on this node."""
        i = self.index.get(node_id)
        if i is None:
            return []
        return [self.nodes[j].node_id for j in self.dependents[i]]

    def edges(self) -> Iterator[Tuple[str, str]]:
        """Yield (dependency_id, dependent_id) pairs."""
        for i, deps in enumerate(self.dependencies):
            for j in deps:
                yield self.nodes[j].node_id, self.nodes[i].node_id

    def roots(self) -> List[str]:
        """Nodes with no in-graph dependencies."""
        return [n.node_id for i, n in enumerate(self.nodes) if not self.dependencies[i]]

    def terminals(self) -> List[str]:
        """Nodes nothing depends on."""
        return [n.node_id for i, n in enumerate(self.nodes) if not self.dependents[i]]


__all__ = ["DependencyGraph"]
