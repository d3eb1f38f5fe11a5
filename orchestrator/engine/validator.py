# ============================================================================
# WORKFLOW VALIDATION
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Structural validation and integrity repair
# PURPOSE: Report every problem in a node list before anything runs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Workflow Validation

WorkflowValidator collects all problems at once instead of stopping at the
first: broken references, cycles, business rules, then (for acyclic graphs)
depth and complexity warnings.

Business rules:
- Input nodes cannot declare dependencies
- Output nodes cannot depend on other output nodes

IntegrityChecker focuses on broken references and can repair them by
dropping dangling dependencies from copies of the affected nodes.
"""

import logging
from typing import Dict, List, Optional, Sequence

from core.contracts import NodeKind
from core.models.node import Node
from core.models.plan import IntegrityReport, RepairAction, ValidationReport
from core.result import Result
from orchestrator.engine.cycles import CycleDetector
from orchestrator.engine.graph import GraphBuilder
from orchestrator.engine.planner import ExecutionPlanner, PlannerConfig

logger = logging.getLogger(__name__)


def _missing_references(nodes: Sequence[Node]) -> List[tuple]:
    known = {node.node_id for node in nodes}
    return [
        (node.node_id, dep_id)
        for node in nodes
        for dep_id in node.dependencies
        if dep_id not in known
    ]


class WorkflowValidator:
    """Full structural validation of a node list."""

    def __init__(
        self,
        builder: Optional[GraphBuilder] = None,
        detector: Optional[CycleDetector] = None,
        planner: Optional[ExecutionPlanner] = None,
    ):
        self._builder = builder or GraphBuilder()
        self._detector = detector or CycleDetector(self._builder)
        self._planner = planner or ExecutionPlanner()

    def validate(
        self,
        nodes: Sequence[Node],
        config: Optional[PlannerConfig] = None,
    ) -> Result[ValidationReport]:
        report = ValidationReport()
        names: Dict[str, str] = {node.node_id: node.display_name for node in nodes}

        missing = _missing_references(nodes)
        for node_id, dep_id in missing:
            report.errors.append(f"Node '{names[node_id]}' depends on missing node '{dep_id}'")

        # Missing ids are deferred so cycle and rule checks still run
        built = self._builder.build(nodes, deferred={dep_id for _, dep_id in missing})
        if built.is_failure:
            report.errors.extend(getattr(built.error, "errors", [built.error.message]))
            return Result.ok(report)
        graph = built.value

        cycles = self._detector.detect(graph).value
        for cycle in cycles.cycles:
            report.errors.append(f"Circular dependency detected: {cycle.describe(names)}")

        report.errors.extend(self._business_rule_errors(nodes, names))

        if cycles.is_acyclic:
            planned = self._planner.plan(graph, config)
            if planned.is_success:
                report.warnings.extend(planned.value.warnings)
            else:
                report.errors.append(planned.error.message)

        if report.errors:
            logger.info(f"Validation found {len(report.errors)} error(s)")
        return Result.ok(report)

    def _business_rule_errors(self, nodes: Sequence[Node], names: Dict[str, str]) -> List[str]:
        kinds = {node.node_id: node.kind for node in nodes}
        errors = []
        for node in nodes:
            if node.kind == NodeKind.INPUT and node.dependencies:
                errors.append(f"Input node '{node.display_name}' cannot have dependencies")
            if node.kind == NodeKind.OUTPUT:
                for dep_id in node.dependencies:
                    if kinds.get(dep_id) == NodeKind.OUTPUT:
                        errors.append(
                            f"Output node '{node.display_name}' cannot depend on "
                            f"output node '{names[dep_id]}'"
                        )
        return errors


class IntegrityChecker:
    """Broken-reference detection with optional repair."""

    def __init__(
        self,
        builder: Optional[GraphBuilder] = None,
        detector: Optional[CycleDetector] = None,
    ):
        self._builder = builder or GraphBuilder()
        self._detector = detector or CycleDetector(self._builder)

    def validate(self, nodes: Sequence[Node], repair: bool = False) -> Result[IntegrityReport]:
        """
        Check that every dependency resolves.

        With repair=True, repaired_nodes holds a copy of every node with
        dangling dependencies removed; the input nodes are left untouched.
        remaining_issues lists what the repair could not fix (cycles,
        duplicate ids).
        """
        missing = _missing_references(nodes)
        report = IntegrityReport(
            broken_references=[f"{node_id} -> {dep_id}" for node_id, dep_id in missing],
            missing_dependencies=list(dict.fromkeys(dep_id for _, dep_id in missing)),
        )

        if not repair or not missing:
            return Result.ok(report)

        dangling: Dict[str, List[str]] = {}
        for node_id, dep_id in missing:
            dangling.setdefault(node_id, []).append(dep_id)

        repaired: List[Node] = []
        for node in nodes:
            copy = node.model_copy(deep=True)
            for dep_id in dangling.get(node.node_id, []):
                copy.remove_dependency(dep_id)
                report.repair_actions.append(RepairAction(
                    action="remove_dangling_dependency",
                    target=f"{node.node_id} -> {dep_id}",
                    status="applied",
                ))
            repaired.append(copy)
        report.repaired_nodes = repaired

        built = self._builder.build(repaired)
        if built.is_failure:
            report.remaining_issues.append(built.error.message)
        else:
            cycles = self._detector.detect(built.value).value
            report.remaining_issues.extend(
                f"Circular dependency detected: {cycle.describe()}" for cycle in cycles.cycles
            )

        logger.info(
            f"Integrity repair removed {len(report.repair_actions)} dangling dependencies, "
            f"{len(report.remaining_issues)} issue(s) remain"
        )
        return Result.ok(report)


__all__ = ["WorkflowValidator", "IntegrityChecker"]
