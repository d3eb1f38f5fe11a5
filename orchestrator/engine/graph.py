# ============================================================================
# GRAPH BUILDER
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Dependency graph construction
# PURPOSE: Turn an unordered node list into an indexed DependencyGraph
# CREATED: 31 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Graph Builder

Single pass over the node list:
1. Index every node id (duplicates are a ValidationError)
2. Resolve each dependency id to an index (absent ids are an IntegrityError,
   unless the caller declared them deferred)
3. Freeze adjacency in both directions

The builder never mutates its input and keeps no state between calls.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Sequence, Tuple

from core.errors import IntegrityError, ValidationError
from core.models.graph import DependencyGraph
from core.models.node import Node
from core.result import Result

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Builds dependency graphs from node lists."""

    def build(
        self,
        nodes: Sequence[Node],
        deferred: Iterable[str] = (),
    ) -> Result[DependencyGraph]:
        """
        Build a dependency graph.

        Args:
            nodes: Nodes in any order
            deferred: Ids that may be referenced without being present
                (cross-graph references resolved later); no edge is created

        Returns:
            Result with the DependencyGraph, or ValidationError/IntegrityError
        """
        deferred_ids = set(deferred)

        index: Dict[str, int] = {}
        duplicates: List[str] = []
        for i, node in enumerate(nodes):
            if node.node_id in index:
                duplicates.append(node.node_id)
                continue
            index[node.node_id] = i

        if duplicates:
            return Result.fail(ValidationError(
                f"Duplicate node ids: {', '.join(sorted(set(duplicates)))}",
                errors=[f"Duplicate node id: {node_id}" for node_id in sorted(set(duplicates))],
            ))

        dependencies: List[Tuple[int, ...]] = []
        dependents: List[List[int]] = [[] for _ in nodes]
        broken: List[str] = []
        deferred_refs: List[Tuple[str, str]] = []

        for i, node in enumerate(nodes):
            resolved: List[int] = []
            for dep_id in node.dependencies:
                j = index.get(dep_id)
                if j is None:
                    if dep_id in deferred_ids:
                        deferred_refs.append((node.node_id, dep_id))
                    else:
                        broken.append(f"{node.node_id} -> {dep_id}")
                    continue
                resolved.append(j)
                dependents[j].append(i)
            dependencies.append(tuple(resolved))

        if broken:
            logger.warning(f"Graph has {len(broken)} broken reference(s): {broken}")
            return Result.fail(IntegrityError(
                f"Dependencies reference unknown nodes: {', '.join(broken)}",
                broken_references=broken,
            ))

        graph = DependencyGraph(
            nodes=tuple(nodes),
            index=MappingProxyType(index),
            dependencies=tuple(dependencies),
            dependents=tuple(tuple(d) for d in dependents),
            deferred_references=tuple(deferred_refs),
        )
        logger.debug(
            f"Built graph: {len(graph)} nodes, {graph.edge_count} edges"
            + (f", {len(deferred_refs)} deferred" if deferred_refs else "")
        )
        return Result.ok(graph)


__all__ = ["GraphBuilder"]
