# ============================================================================
# CYCLE DETECTOR
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Cycle enumeration
# PURPOSE: Report every dependency loop, not just whether one exists
# CREATED: 19 OCT 2026
# ============================================================================
"""
Cycle Detector

Three-colour depth-first search along dependency -> dependent edges:

    WHITE  not visited
    GRAY   on the current DFS path
    BLACK  fully explored

An edge into a GRAY node closes a loop; the loop is the slice of the current
path from that node to the top. The walk uses an explicit stack, so chains of
any length are safe, and restarts from every unvisited node so disconnected
components are covered. Each back edge yields one cycle; rotations of the same
loop are reported once.

Runs in O(nodes + edges).
"""

import logging
from typing import List, Optional, Sequence, Set, Tuple

from core.models.graph import DependencyGraph
from core.models.node import Node
from core.models.plan import Cycle, CycleReport
from core.result import Result
from orchestrator.engine.graph import GraphBuilder

logger = logging.getLogger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


class CycleDetector:
    """Enumerates the cycles of a dependency graph."""

    def __init__(self, builder: Optional[GraphBuilder] = None):
        self._builder = builder or GraphBuilder()

    def detect(self, graph: DependencyGraph) -> Result[CycleReport]:
        """
        Find all distinct cycles.

        Returns:
            Result with a CycleReport (is_acyclic, cycles)
        """
        n = len(graph)
        color = [WHITE] * n
        path_pos = [-1] * n
        path: List[int] = []
        cycles: List[Cycle] = []
        seen: Set[tuple] = set()

        # Roots first, in input order, then whatever is left (pure loops)
        start_order = [i for i in range(n) if not graph.dependencies[i]]
        start_order += [i for i in range(n) if graph.dependencies[i]]

        for start in start_order:
            if color[start] != WHITE:
                continue

            color[start] = GRAY
            path_pos[start] = 0
            path.append(start)
            work: List[Tuple[int, int]] = [(start, 0)]

            while work:
                current, k = work[-1]
                successors = graph.dependents[current]

                if k < len(successors):
                    work[-1] = (current, k + 1)
                    nxt = successors[k]

                    if color[nxt] == WHITE:
                        color[nxt] = GRAY
                        path_pos[nxt] = len(path)
                        path.append(nxt)
                        work.append((nxt, 0))
                    elif color[nxt] == GRAY:
                        members = path[path_pos[nxt]:]
                        cycle = Cycle(node_ids=[graph.nodes[i].node_id for i in members])
                        key = cycle.canonical()
                        if key not in seen:
                            seen.add(key)
                            cycles.append(cycle)
                else:
                    work.pop()
                    path.pop()
                    path_pos[current] = -1
                    color[current] = BLACK

        if cycles:
            logger.warning(
                f"Detected {len(cycles)} cycle(s): "
                + "; ".join(cycle.describe() for cycle in cycles[:5])
                + (" ..." if len(cycles) > 5 else "")
            )
        return Result.ok(CycleReport(cycles=cycles))

    def detect_nodes(self, nodes: Sequence[Node]) -> Result[CycleReport]:
        """Build the graph, then detect. Build failures propagate unchanged."""
        built = self._builder.build(nodes)
        if built.is_failure:
            return Result.fail(built.error)
        return self.detect(built.value)


__all__ = ["CycleDetector"]
