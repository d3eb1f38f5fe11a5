# ============================================================================
# ORCHESTRATION LOOP
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Level-by-level run driver
# PURPOSE: Execute a dependency graph with bounded parallelism
# CREATED: 29 JAN 2026
# UPDATED: 19 OCT 2026 - In-process level scheduler
# ============================================================================
"""
Orchestration Loop

Drives one run of a node list:

1. Build the dependency graph
2. Reject cycles
3. Plan execution levels
4. For each level, dispatch its nodes to a pool of worker tasks
   (at most parallelism_cap at once, highest priority first) and wait
   for the whole level before starting the next
5. Produce a CompletionReport

Per node:
- Skipped when a dependency it needs did not complete
- Params resolved against the context the node is allowed to read
- Container nodes run their nested model through the FractalExecutor;
  other nodes run their handler; nodes without a handler pass their
  resolved params through as output
- Failures are classified and handed to the RetryCoordinator

A fatal failure (node without allow_failure, continue_on_failure off)
trips the run's cancellation token; nodes already running finish, nothing
new is dispatched.

State for each run lives on the Orchestrator instance, keyed by run_id,
so get_status() and cancel() work while run() is in flight.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from core.config import EngineDefaults
from core.contracts import AccessRight, FailureClass, NodeKind, NodeStatus, RunStatus
from core.errors import ExecutionError, ValidationError
from core.logging import log_checkpoint, log_context
from core.models.fractal import FractalBinding
from core.models.graph import DependencyGraph
from core.models.node import Node, NodeState
from core.models.plan import ExecutionPlan
from core.models.recovery import RecoveryLogEntry, RetryPolicy
from core.models.report import CompletionReport, ExecutionStatus
from core.models.run import RunConfig
from core.result import Result
from handlers.registry import HandlerContext, HandlerRegistry
from orchestrator.engine.context import ContextPropagator
from orchestrator.engine.cycles import CycleDetector
from orchestrator.engine.graph import GraphBuilder
from orchestrator.engine.planner import ExecutionPlanner, PlannerConfig
from orchestrator.engine.retry import RetryCoordinator
from orchestrator.engine.templates import (
    NodeContext,
    TemplateContext,
    TemplateResolutionError,
    TemplateResolver,
)
from orchestrator.fractal import FractalExecutor
from services.event_service import EventService
from services.model_service import ModelService

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _pick(value, default):
    return default if value is None else value


# ============================================================================
# CANCELLATION
# ============================================================================

class CancellationToken:
    """
    Cooperative stop signal, checked before every dispatch.

    A nested run's token follows its parent: cancelling the parent stops
    the child, a failure inside the child does not stop the parent.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._parent = parent
        self._reason: Optional[str] = None
        self._event = asyncio.Event()
        self._children: List["CancellationToken"] = []
        if parent is not None:
            parent._children.append(self)
            if parent.is_cancelled:
                self._event.set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._reason is None:
            self._reason = reason
        self._signal()

    def _signal(self) -> None:
        self._event.set()
        for child in self._children:
            child._signal()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; return early (True) on cancellation."""
        if self.is_cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self.is_cancelled

    @property
    def is_cancelled(self) -> bool:
        if self._reason is not None:
            return True
        return self._parent is not None and self._parent.is_cancelled

    @property
    def reason(self) -> Optional[str]:
        if self._reason is not None:
            return self._reason
        return self._parent.reason if self._parent is not None else None


# ============================================================================
# RUN STATE
# ============================================================================

@dataclass
class _RunState:
    config: RunConfig
    graph: DependencyGraph
    plan: ExecutionPlan
    depth: int
    call_chain: Tuple[str, ...]
    token: CancellationToken
    retry: RetryCoordinator
    fractal: FractalExecutor
    propagator: Optional[ContextPropagator]

    parallelism_cap: int
    node_timeout: float
    stage_timeout: Optional[float]
    continue_on_failure: bool

    node_states: Dict[str, NodeState] = field(default_factory=dict)
    recovery_log: List[RecoveryLogEntry] = field(default_factory=list)
    status: RunStatus = RunStatus.PENDING
    current_level: Optional[int] = None
    current_nodes: Set[str] = field(default_factory=set)
    levels_executed: int = 0
    cancel_requested: bool = False
    resume_gate: asyncio.Event = field(default_factory=asyncio.Event)
    started_at: datetime = field(default_factory=_utc_now)
    started_clock: float = field(default_factory=time.perf_counter)

    @property
    def run_id(self) -> str:
        return self.config.run_id

    def ids_with(self, status: NodeStatus) -> List[str]:
        return [node_id for node_id, state in self.node_states.items() if state.status == status]

    def is_fatal(self, node_id: str) -> bool:
        node = self.graph.get_node(node_id)
        return node is not None and not node.allow_failure


# ============================================================================
# ORCHESTRATOR
# ============================================================================

class Orchestrator:
    """
    Executes node lists level by level.

    Example:
        registry = register_example_handlers(HandlerRegistry())
        orchestrator = Orchestrator(handlers=registry)
        result = await orchestrator.run(nodes, RunConfig(inputs={"x": 1}))
        report = result.unwrap()
    """

    def __init__(
        self,
        handlers: Optional[HandlerRegistry] = None,
        model_service: Optional[ModelService] = None,
        event_service: Optional[EventService] = None,
        defaults: Optional[EngineDefaults] = None,
    ):
        self.handlers = handlers or HandlerRegistry()
        self.model_service = model_service or ModelService()
        self.event_service = event_service
        self.defaults = defaults or EngineDefaults()

        self._builder = GraphBuilder()
        self._detector = CycleDetector(self._builder)
        self._resolver = TemplateResolver()
        self._runs: Dict[str, _RunState] = {}

    # =========================================================================
    # RUN
    # =========================================================================

    async def run(
        self,
        nodes: Sequence[Node],
        config: Optional[RunConfig] = None,
        depth: int = 0,
        call_chain: Optional[Sequence[str]] = None,
        parent_token: Optional[CancellationToken] = None,
    ) -> Result[CompletionReport]:
        """
        Execute nodes to completion.

        Args:
            nodes: Nodes of the workflow
            config: Run options (defaults apply to anything unset)
            depth: Nesting depth, 0 for a top-level run
            call_chain: Model ids of the enclosing runs, outermost first
            parent_token: Cancellation token of the enclosing run

        Returns:
            Result with the CompletionReport. Build, cycle, plan and
            context-rule problems are failed Results; node failures are
            reported inside a successful Result.
        """
        config = config or RunConfig()
        if call_chain is None:
            call_chain = (config.model_id,) if config.model_id else ()

        existing = self._runs.get(config.run_id)
        if existing is not None and not existing.status.is_terminal():
            return Result.fail(ValidationError(f"Run {config.run_id} is already active"))

        with log_context(run_id=config.run_id, model_id=config.model_id, depth=depth, component="orchestrator"):
            prepared = await self._prepare(nodes, config, depth, tuple(call_chain), parent_token)
            if prepared.is_failure:
                logger.error(f"Run {config.run_id} rejected: {prepared.error.message}")
                return Result.fail(prepared.error)

            state = prepared.value
            self._runs.pop(config.run_id, None)
            self._runs[config.run_id] = state
            try:
                report = await self._execute(state)
            except Exception:
                state.status = RunStatus.FAILED
                state.token.cancel("Run crashed")
                logger.exception(f"Run {config.run_id} crashed")
                raise
            finally:
                # Nested runs are only tracked while they execute
                if depth > 0:
                    self._runs.pop(config.run_id, None)
                else:
                    self._evict_finished_runs()
            return Result.ok(report)

    def _evict_finished_runs(self) -> None:
        """Keep only the most recent finished top-level runs."""
        keep = self.defaults.execution.finished_run_history
        finished = [run_id for run_id, state in self._runs.items() if state.status.is_terminal()]
        for run_id in finished[:max(len(finished) - keep, 0)]:
            del self._runs[run_id]

    async def _prepare(
        self,
        nodes: Sequence[Node],
        config: RunConfig,
        depth: int,
        call_chain: Tuple[str, ...],
        parent_token: Optional[CancellationToken],
    ) -> Result[_RunState]:
        built = self._builder.build(nodes)
        if built.is_failure:
            return Result.fail(built.error)
        graph = built.value

        detected = self._detector.detect(graph)
        if detected.is_failure:
            return Result.fail(detected.error)
        cycles = detected.value
        if not cycles.is_acyclic:
            if self.event_service:
                await self.event_service.emit_cycle_detected(
                    [cycle.node_ids for cycle in cycles.cycles], run_id=config.run_id
                )
            return Result.fail(ValidationError(
                f"Graph contains a cycle involving nodes: {cycles.nodes_in_cycles}",
                errors=[f"Circular dependency detected: {cycle.describe()}" for cycle in cycles.cycles],
            ))

        execution = self.defaults.execution
        parallelism_cap = _pick(config.parallelism_cap, execution.parallelism_cap)

        planner_config = PlannerConfig.from_defaults(
            self.defaults.planner,
            warn_depth=config.warn_depth,
            max_depth=config.max_depth,
            parallelism_cap=parallelism_cap,
        )
        planned = ExecutionPlanner(planner_config).plan(graph)
        if planned.is_failure:
            return Result.fail(planned.error)

        propagator = None
        if config.context_rules:
            configured = ContextPropagator.from_rules(
                config.context_rules,
                config.flow_policy,
                _pick(config.max_hierarchy_depth, self.defaults.context.max_hierarchy_depth),
            )
            if configured.is_failure:
                return Result.fail(configured.error)
            propagator = configured.value

        token = CancellationToken(parent=parent_token)
        retry = RetryCoordinator(
            policy=config.retry_policy or RetryPolicy.from_defaults(self.defaults.retry),
            strategies=config.recovery_strategies,
            event_service=self.event_service,
        )
        fractal = FractalExecutor(
            self.model_service,
            self.run,
            max_nesting_depth=_pick(config.max_nesting_depth, self.defaults.fractal.max_nesting_depth),
            event_service=self.event_service,
        )

        state = _RunState(
            config=config,
            graph=graph,
            plan=planned.value,
            depth=depth,
            call_chain=call_chain,
            token=token,
            retry=retry,
            fractal=fractal,
            propagator=propagator,
            parallelism_cap=parallelism_cap,
            node_timeout=_pick(config.node_timeout_seconds, execution.node_timeout_seconds),
            stage_timeout=_pick(config.stage_timeout_seconds, execution.stage_timeout_seconds),
            continue_on_failure=_pick(config.continue_on_failure, execution.continue_on_failure),
            node_states={node.node_id: NodeState(node_id=node.node_id) for node in graph.nodes},
        )
        state.resume_gate.set()
        return Result.ok(state)

    async def _execute(self, state: _RunState) -> CompletionReport:
        state.status = RunStatus.RUNNING
        logger.info(
            f"Run {state.run_id} started: {len(state.graph)} nodes in "
            f"{state.plan.depth} levels (cap {state.parallelism_cap})"
        )
        log_checkpoint("run_started", {"nodes": len(state.graph), "levels": state.plan.depth})
        if self.event_service:
            await self.event_service.emit_orchestration_started(
                state.run_id, state.config.model_id, len(state.graph), state.depth
            )

        for level_index, level_ids in enumerate(state.plan.levels):
            if state.token.is_cancelled:
                logger.warning(
                    f"Run {state.run_id} halted before level {level_index}: {state.token.reason}"
                )
                break

            state.current_level = level_index
            await self._run_level(state, level_ids)
            state.levels_executed += 1
            log_checkpoint("level_completed", {"level": level_index, "nodes": list(level_ids)})

        return await self._finish(state)

    # =========================================================================
    # LEVEL EXECUTION
    # =========================================================================

    async def _run_level(self, state: _RunState, level_ids: Sequence[str]) -> None:
        """Run one level through a bounded worker pool and wait for all of it."""
        queue = deque(level_ids)

        async def worker() -> None:
            while queue:
                await state.resume_gate.wait()
                # Other workers may have drained the queue while paused
                if state.token.is_cancelled or not queue:
                    return
                node_id = queue.popleft()
                state.current_nodes.add(node_id)
                try:
                    await self._run_node(state, state.graph.get_node(node_id))
                finally:
                    state.current_nodes.discard(node_id)

        workers = min(state.parallelism_cap, len(queue))
        tasks = [asyncio.create_task(worker()) for _ in range(workers)]

        if state.stage_timeout is None:
            await asyncio.gather(*tasks)
            return

        done, pending = await asyncio.wait(tasks, timeout=state.stage_timeout)
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            await self._fail_unfinished(state, level_ids)
        for task in done:
            task.result()

    async def _fail_unfinished(self, state: _RunState, level_ids: Sequence[str]) -> None:
        message = f"Stage timed out after {state.stage_timeout}s"
        logger.error(f"Run {state.run_id} level {state.current_level}: {message}")
        for node_id in level_ids:
            node_state = state.node_states[node_id]
            if node_state.status == NodeStatus.RUNNING:
                node_state.mark_failed(message, FailureClass.TIMEOUT)
                await self._node_failed(state, state.graph.get_node(node_id), node_state)
            elif node_state.status == NodeStatus.FAILED and state.is_fatal(node_id):
                # Was waiting for a retry when the stage ran out
                if not state.continue_on_failure:
                    state.token.cancel(f"Node {node_id} failed: {node_state.error_message}")

    # =========================================================================
    # NODE EXECUTION
    # =========================================================================

    async def _run_node(self, state: _RunState, node: Node) -> None:
        node_state = state.node_states[node.node_id]

        blocker = self._blocking_dependency(state, node)
        if blocker is not None:
            node_state.mark_skipped(f"Dependency {blocker} did not complete")
            logger.info(f"Skipping node {node.node_id}: dependency {blocker} did not complete")
            return

        policy = node.retry or state.retry.policy

        with log_context(node_id=node.node_id):
            while True:
                node_state.mark_running()
                try:
                    output = await self._attempt(state, node, node_state.attempts)
                except ExecutionError as e:
                    node_state.mark_failed(e.message, e.failure_class)
                    decision = state.retry.decide(e.failure_class, node_state.attempts, policy)
                    retrying = decision.should_retry and not state.token.is_cancelled
                    if retrying and decision.delay_seconds > 0:
                        retrying = not await state.token.wait(decision.delay_seconds)

                    state.recovery_log.append(RecoveryLogEntry(
                        node_id=node.node_id,
                        attempt=node_state.attempts,
                        failure_class=e.failure_class.value,
                        action=decision.action,
                        retried=retrying,
                        delay_seconds=decision.delay_seconds if retrying else 0.0,
                        error_message=e.message,
                    ))

                    if retrying:
                        await state.retry.record_attempt(state.run_id, node.node_id, decision, e.message)
                        node_state.prepare_retry()
                        continue

                    logger.error(
                        f"Node {node.node_id} failed after {node_state.attempts} attempt(s): "
                        f"{e.message} ({decision.reason})"
                    )
                    await self._node_failed(state, node, node_state)
                    return

                node_state.mark_completed(output)
                logger.info(f"Node {node.node_id} completed (attempt {node_state.attempts})")
                if node_state.attempts > 1:
                    await state.retry.record_success(state.run_id, node.node_id, node_state.attempts)
                if self.event_service:
                    duration = node_state.execution_duration_seconds
                    await self.event_service.emit_node_completed(
                        state.run_id,
                        node.node_id,
                        node_state.attempts,
                        duration_ms=duration * 1000 if duration is not None else None,
                    )
                return

    async def _node_failed(self, state: _RunState, node: Node, node_state: NodeState) -> None:
        if self.event_service:
            await self.event_service.emit_node_failed(
                state.run_id,
                node.node_id,
                node_state.error_message or "",
                node_state.failure_class.value if node_state.failure_class else None,
                node_state.attempts,
            )
        if node.allow_failure:
            logger.warning(f"Node {node.node_id} failed but allows failure; run continues")
            return
        if not state.continue_on_failure:
            state.token.cancel(f"Node {node.node_id} failed: {node_state.error_message}")

    def _blocking_dependency(self, state: _RunState, node: Node) -> Optional[str]:
        """First dependency whose outcome prevents this node from running."""
        for dep_id in state.graph.get_dependencies(node.node_id):
            dep_state = state.node_states[dep_id]
            if dep_state.status == NodeStatus.COMPLETED:
                continue
            if dep_state.status == NodeStatus.FAILED and not state.is_fatal(dep_id):
                continue
            return dep_id
        return None

    async def _attempt(self, state: _RunState, node: Node, attempt: int) -> Any:
        """
        One attempt at a node's action.

        Raises:
            ExecutionError with the failure classified for recovery
        """
        context = self._visible_context(state, node)
        try:
            params = self._resolver.resolve(node.params, context)
        except TemplateResolutionError as e:
            raise ExecutionError(e.message, FailureClass.CONFIGURATION_ERROR, node.node_id)

        binding = state.config.binding_for(node.node_id)
        timeout = node.timeout_seconds or state.node_timeout

        if binding is None and not node.is_container() and not node.handler:
            if not params and node.kind == NodeKind.INPUT:
                return dict(state.config.inputs)
            return params

        try:
            if binding is not None or node.is_container():
                return await asyncio.wait_for(
                    self._run_container(state, node, binding, context), timeout=timeout
                )
            return await asyncio.wait_for(
                self._run_handler(state, node, params, attempt, timeout), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise ExecutionError(
                f"Node {node.node_id} timed out after {timeout}s",
                FailureClass.TIMEOUT,
                node.node_id,
            )

    async def _run_handler(
        self,
        state: _RunState,
        node: Node,
        params: Dict[str, Any],
        attempt: int,
        timeout: float,
    ) -> Any:
        if node.handler not in self.handlers:
            raise ExecutionError(
                f"Handler not found: {node.handler}",
                FailureClass.CONFIGURATION_ERROR,
                node.node_id,
            )

        context = HandlerContext(
            run_id=state.run_id,
            node_id=node.node_id,
            handler=node.handler,
            params=params,
            attempt=attempt,
            depth=state.depth,
            model_id=state.config.model_id,
            inputs=state.config.inputs,
            timeout_seconds=timeout,
        )
        result = await self.handlers.execute(node.handler, context)
        if not result.success:
            raise ExecutionError(
                result.error_message or f"Handler {node.handler} failed",
                result.failure_class,
                node.node_id,
            )
        return result.output

    async def _run_container(
        self,
        state: _RunState,
        node: Node,
        binding: Optional[FractalBinding],
        context: TemplateContext,
    ) -> Any:
        if binding is None:
            raise ExecutionError(
                f"Container node {node.node_id} has no nested model binding",
                FailureClass.CONFIGURATION_ERROR,
                node.node_id,
            )

        executed = await state.fractal.execute(
            binding,
            context.to_dict(),
            state.config,
            depth=state.depth,
            call_chain=state.call_chain,
            parent_token=state.token,
        )
        if executed.is_failure:
            raise ExecutionError(executed.error.message, FailureClass.CONFIGURATION_ERROR, node.node_id)

        result = executed.value
        if not result.success:
            report = result.report
            failure_class = FailureClass.TRANSIENT_FAILURE
            for node_state in report.node_states.values():
                if node_state.status == NodeStatus.FAILED and node_state.failure_class:
                    failure_class = node_state.failure_class
                    break
            raise ExecutionError(
                f"Nested model {binding.nested_model_id} finished {result.status.value}: "
                + "; ".join(report.errors),
                failure_class,
                node.node_id,
            )
        return result.outputs

    def _visible_context(self, state: _RunState, node: Node) -> TemplateContext:
        """Run inputs plus the completed outputs this node may read."""
        nodes: Dict[str, NodeContext] = {}
        for node_id, node_state in state.node_states.items():
            if node_state.status != NodeStatus.COMPLETED:
                continue
            if state.propagator is not None and not state.propagator.can_access(
                node.node_id, node_id, AccessRight.READ
            ):
                continue
            nodes[node_id] = NodeContext(node_state.output, node_state.status.value)
        return TemplateContext(inputs=state.config.inputs, nodes=nodes)

    # =========================================================================
    # COMPLETION
    # =========================================================================

    async def _finish(self, state: _RunState) -> CompletionReport:
        completed = state.ids_with(NodeStatus.COMPLETED)
        failed = state.ids_with(NodeStatus.FAILED)
        skipped = state.ids_with(NodeStatus.SKIPPED)
        pending = state.ids_with(NodeStatus.PENDING)
        fatal = [node_id for node_id in failed if state.is_fatal(node_id)]

        if state.cancel_requested or (state.token.is_cancelled and not fatal):
            status = RunStatus.CANCELLED
        elif fatal or pending or skipped:
            status = RunStatus.FAILED
        else:
            status = RunStatus.COMPLETED
        state.status = status

        errors = [
            f"{node_id}: {state.node_states[node_id].error_message}" for node_id in failed
        ]
        if state.token.is_cancelled:
            errors.append(f"Run halted: {state.token.reason}")

        elapsed_ms = (time.perf_counter() - state.started_clock) * 1000
        report = CompletionReport(
            run_id=state.run_id,
            model_id=state.config.model_id,
            status=status,
            depth=state.depth,
            completed_nodes=completed,
            failed_nodes=failed,
            skipped_nodes=skipped,
            pending_nodes=pending,
            node_states={node_id: s.model_copy() for node_id, s in state.node_states.items()},
            outputs={node_id: state.node_states[node_id].output for node_id in completed},
            recovery_log=list(state.recovery_log),
            warnings=list(state.plan.warnings),
            errors=errors,
            levels_executed=state.levels_executed,
            started_at=state.started_at,
            completed_at=_utc_now(),
            elapsed_ms=elapsed_ms,
        )

        logger.info(
            f"Run {state.run_id} {status.value}: {len(completed)} completed, "
            f"{len(failed)} failed, {len(skipped)} skipped, {len(pending)} pending "
            f"in {elapsed_ms:.1f}ms"
        )
        log_checkpoint("run_finished", {"status": status.value, "elapsed_ms": elapsed_ms})
        if self.event_service:
            await self.event_service.emit_orchestration_completed(
                state.run_id,
                state.config.model_id,
                status.value,
                len(completed),
                len(failed),
                elapsed_ms,
            )
        return report

    # =========================================================================
    # CONTROL
    # =========================================================================

    def get_status(self, run_id: str) -> Optional[ExecutionStatus]:
        state = self._runs.get(run_id)
        if state is None:
            return None
        return ExecutionStatus(
            run_id=run_id,
            model_id=state.config.model_id,
            status=state.status,
            total_nodes=len(state.graph),
            current_level=state.current_level,
            current_nodes=sorted(state.current_nodes),
            completed_nodes=state.ids_with(NodeStatus.COMPLETED),
            failed_nodes=state.ids_with(NodeStatus.FAILED),
            skipped_nodes=state.ids_with(NodeStatus.SKIPPED),
        )

    def cancel(self, run_id: str, reason: str = "Cancelled by request") -> bool:
        """Stop dispatching new nodes. Returns False if the run is not active."""
        state = self._runs.get(run_id)
        if state is None or state.status.is_terminal():
            return False
        state.cancel_requested = True
        state.token.cancel(reason)
        state.resume_gate.set()
        logger.warning(f"Run {run_id} cancellation requested: {reason}")
        return True

    def pause(self, run_id: str) -> bool:
        """Hold dispatch of new nodes; running nodes continue."""
        state = self._runs.get(run_id)
        if state is None or state.status.is_terminal():
            return False
        state.resume_gate.clear()
        logger.info(f"Run {run_id} paused")
        return True

    def resume(self, run_id: str) -> bool:
        state = self._runs.get(run_id)
        if state is None or state.status.is_terminal():
            return False
        state.resume_gate.set()
        logger.info(f"Run {run_id} resumed")
        return True

    def active_runs(self) -> List[str]:
        return [run_id for run_id, state in self._runs.items() if not state.status.is_terminal()]

    def forget(self, run_id: str) -> bool:
        """Drop a finished run's state. Active runs are kept."""
        state = self._runs.get(run_id)
        if state is None or not state.status.is_terminal():
            return False
        del self._runs[run_id]
        return True


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["Orchestrator", "CancellationToken"]
