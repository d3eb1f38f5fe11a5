# ============================================================================
# FRACTAL EXECUTOR
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Nested model execution
# PURPOSE: Run a whole model inside a container node
# CREATED: 19 OCT 2026
# ============================================================================
"""
Fractal Executor

A container node is bound to a nested model. Executing it:

1. Checks the nesting depth against max_nesting_depth
2. Refuses models already on the active call chain (no recursion)
3. Looks the model up in the ModelService
4. Maps parent context paths into the nested run's inputs
5. Runs the nested model as an independent orchestrator run
6. Extracts nested outputs into the container node's output

The executor does not own an orchestrator; it is handed the coroutine that
starts a run (Orchestrator.run), so nested runs get their own worker pool.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from core.errors import (
    DepthExceededError,
    EngineError,
    FractalCycleError,
    IntegrityError,
)
from core.models.fractal import FractalBinding, FractalResult
from core.models.node import Node
from core.models.report import CompletionReport
from core.models.run import RunConfig
from core.result import Result
from orchestrator.engine.cycles import CycleDetector
from orchestrator.engine.graph import GraphBuilder
from orchestrator.engine.templates import ContextMapper
from services.event_service import EventService
from services.model_service import ModelService

logger = logging.getLogger(__name__)

# (nodes, config, depth, call_chain, parent_token) -> Result[CompletionReport]
RunFunc = Callable[..., Awaitable[Result[CompletionReport]]]


class FractalExecutor:
    """Executes container nodes by running their nested models."""

    def __init__(
        self,
        model_service: ModelService,
        run_func: RunFunc,
        max_nesting_depth: int = 10,
        event_service: Optional[EventService] = None,
    ):
        self.model_service = model_service
        self.run_func = run_func
        self.max_nesting_depth = max_nesting_depth
        self.event_service = event_service

    async def execute(
        self,
        binding: FractalBinding,
        parent_context: Dict[str, Any],
        parent_config: RunConfig,
        depth: int = 0,
        call_chain: Sequence[str] = (),
        parent_token: Any = None,
    ) -> Result[FractalResult]:
        """
        Run the model bound to a container node.

        Args:
            binding: The container's binding
            parent_context: {"inputs", "nodes"} context the container may read
            parent_config: Config of the parent run (scheduling and recovery
                options are inherited by the nested run)
            depth: Nesting depth of the parent run (root run is 0)
            call_chain: Model ids of the active runs, outermost first
            parent_token: Cancellation token of the parent run

        Returns:
            Result with a FractalResult. A nested run that executes but does
            not complete is still a successful Result whose FractalResult
            has a failed status; setup problems are failed Results.
        """
        nested_depth = depth + 1
        model_id = binding.nested_model_id

        if nested_depth > self.max_nesting_depth:
            return Result.fail(DepthExceededError(
                f"Nesting depth {nested_depth} exceeds maximum of {self.max_nesting_depth}",
                depth=nested_depth,
                limit=self.max_nesting_depth,
            ))

        if model_id in call_chain:
            return Result.fail(FractalCycleError(model_id, call_chain))

        model = self.model_service.get(model_id)
        if model is None:
            return Result.fail(IntegrityError(
                f"Nested model not found: {model_id}",
                broken_references=[model_id],
            ))

        try:
            nested_inputs = self._map_context(binding, parent_context)
        except EngineError as e:
            return Result.fail(e)

        nested_config = parent_config.model_copy(update={
            "run_id": f"{parent_config.run_id}/{binding.container_node_id}",
            "model_id": model_id,
            "inputs": nested_inputs,
            "bindings": list(model.bindings),
            "context_rules": list(model.context_rules),
            "flow_policy": model.flow_policy,
        })

        logger.info(
            f"Container {binding.container_node_id} running model {model_id} "
            f"at depth {nested_depth}"
        )
        ran = await self.run_func(
            model.nodes,
            nested_config,
            depth=nested_depth,
            call_chain=tuple(call_chain) + (model_id,),
            parent_token=parent_token,
        )
        if ran.is_failure:
            return Result.fail(ran.error)

        report = ran.value
        outputs: Dict[str, Any] = {}
        if report.success:
            try:
                outputs = self._extract_outputs(binding, report, nested_inputs)
            except EngineError as e:
                return Result.fail(e)

        if self.event_service:
            await self.event_service.emit_fractal_completed(
                run_id=parent_config.run_id,
                container_node_id=binding.container_node_id,
                nested_model_id=model_id,
                depth=nested_depth,
                status=report.status.value,
            )

        return Result.ok(FractalResult(
            container_node_id=binding.container_node_id,
            nested_model_id=model_id,
            depth=nested_depth,
            status=report.status,
            outputs=outputs,
            report=report,
        ))

    # =========================================================================
    # CONTEXT MAPPING
    # =========================================================================

    @staticmethod
    def _map_context(binding: FractalBinding, parent_context: Dict[str, Any]) -> Dict[str, Any]:
        nested_inputs: Dict[str, Any] = {}
        for source, target in binding.context_mapping.items():
            value = ContextMapper.read_path(parent_context, source)
            ContextMapper.write_path(nested_inputs, target, value)
        return nested_inputs

    @staticmethod
    def _extract_outputs(
        binding: FractalBinding,
        report: CompletionReport,
        nested_inputs: Dict[str, Any],
    ) -> Dict[str, Any]:
        if not binding.output_extraction:
            # Without an extraction map the container exposes every nested output
            return dict(report.outputs)

        nested_context = report.to_context(nested_inputs)
        outputs: Dict[str, Any] = {}
        for source, target in binding.output_extraction.items():
            value = ContextMapper.read_path(nested_context, source)
            ContextMapper.write_path(outputs, target, value)
        return outputs

    # =========================================================================
    # STATIC CHECKS
    # =========================================================================

    def validate_bindings(
        self,
        root_model_id: str,
        bindings: Sequence[FractalBinding],
    ) -> Result[List[str]]:
        """
        Detect model-level reference cycles before anything runs.

        Walks every model reachable from the root bindings and checks the
        resulting model graph for cycles. Models that are not registered are
        reported by execute() when reached, not here.

        Returns:
            Result with the reachable nested model ids (sorted)
        """
        references: Dict[str, List[str]] = {
            root_model_id: [b.nested_model_id for b in bindings]
        }
        missing: Set[str] = set()
        pending = list(references[root_model_id])

        while pending:
            model_id = pending.pop()
            if model_id in references or model_id in missing:
                continue
            model = self.model_service.get(model_id)
            if model is None:
                missing.add(model_id)
                continue
            references[model_id] = model.referenced_models()
            pending.extend(references[model_id])

        model_nodes = [
            Node(node_id=model_id, dependencies=refs)
            for model_id, refs in references.items()
        ]
        deferred: Tuple[str, ...] = tuple(sorted(missing))
        built = GraphBuilder().build(model_nodes, deferred=deferred)
        if built.is_failure:
            return Result.fail(built.error)

        detected = CycleDetector().detect(built.value)
        if detected.is_failure:
            return Result.fail(detected.error)

        report = detected.value
        if not report.is_acyclic:
            cycle = report.cycles[0]
            logger.warning(f"Model reference cycle: {' → '.join(cycle.closed_path)}")
            return Result.fail(FractalCycleError(cycle.node_ids[0], cycle.node_ids))

        reachable = sorted((set(references) | missing) - {root_model_id})
        return Result.ok(reachable)


__all__ = ["FractalExecutor", "RunFunc"]
