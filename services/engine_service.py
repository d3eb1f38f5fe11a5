# ============================================================================
# DEPENDENCY ENGINE SERVICE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Engine facade
# PURPOSE: Execute engine commands and wrap every outcome in one envelope
# CREATED: 19 OCT 2026
# ============================================================================
"""
Dependency Engine

Single entry point for callers. Accepts the closed set of commands in
core.models.commands (or the equivalent raw dicts) and returns an
EngineResponse for every one of them:

    engine = DependencyEngine(handlers=register_example_handlers(HandlerRegistry()))
    response = await engine.execute({"operation": "plan_execution", "nodes": [...]})
    if response.success:
        plan = response.artifact

configure_* commands store configuration on the engine instance; later
execute_workflow commands use it for anything their RunConfig leaves unset.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union, get_args

import psutil
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.config import EngineDefaults, get_defaults
from core.contracts import EngineOperation
from core.errors import ConfigurationError, EngineError, ValidationError
from core.logging import log_context
from core.models.commands import (
    BuildGraphCommand,
    ConfigureContextHierarchyCommand,
    ConfigureFractalExecutionCommand,
    ConfigureRecoveryCommand,
    DetectCyclesCommand,
    Diagnostics,
    EngineCommand,
    EngineResponse,
    ExecuteWorkflowCommand,
    FindCriticalPathCommand,
    PlanExecutionCommand,
    ResponseMetadata,
    ValidateIntegrityCommand,
    ValidateWorkflowCommand,
    parse_command,
)
from core.models.context import ContextAccessRule, ContextFlowPolicy
from core.models.fractal import FractalBinding
from core.models.recovery import RecoveryStrategyMap, RetryPolicy
from core.models.report import ExecutionStatus
from core.models.run import RunConfig
from handlers.registry import HandlerRegistry
from orchestrator.engine.context import ContextPropagator
from orchestrator.engine.cycles import CycleDetector
from orchestrator.engine.graph import GraphBuilder
from orchestrator.engine.planner import ExecutionPlanner, PlannerConfig
from orchestrator.engine.validator import IntegrityChecker, WorkflowValidator
from orchestrator.fractal import FractalExecutor
from orchestrator.loop import Orchestrator
from services.event_service import EventService
from services.model_service import ModelService

logger = logging.getLogger(__name__)


@dataclass
class _Outcome:
    """What a command handler produced, before it is wrapped."""
    artifact: Any = None
    success: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    node_count: int = 0


CommandHandler = Callable[[Any], Awaitable[_Outcome]]


def _memory_rss_mb() -> Optional[float]:
    try:
        return round(psutil.Process().memory_info().rss / (1024 * 1024), 2)
    except psutil.Error as e:
        logger.debug(f"Could not read process memory: {e}")
        return None


def _config_error(e: PydanticValidationError) -> ConfigurationError:
    first = e.errors()[0]
    field_name = ".".join(str(p) for p in first.get("loc", ())) or None
    return ConfigurationError(first.get("msg", str(e)), field=field_name, value=first.get("input"))


class DependencyEngine:
    """Facade over graph building, planning, validation and execution."""

    def __init__(
        self,
        handlers: Optional[HandlerRegistry] = None,
        model_service: Optional[ModelService] = None,
        event_service: Optional[EventService] = None,
        defaults: Optional[EngineDefaults] = None,
    ):
        """
        Args:
            handlers: Node actions available to execute_workflow
            model_service: Nested models for container nodes
            event_service: Event emitter (a private bus is created if omitted)
            defaults: Engine defaults (read from the environment if omitted)
        """
        self.defaults = defaults or get_defaults()
        self.handlers = handlers or HandlerRegistry()
        self.model_service = model_service or ModelService()
        self.event_service = event_service or EventService()

        self.builder = GraphBuilder()
        self.detector = CycleDetector(self.builder)
        self.planner = ExecutionPlanner(PlannerConfig.from_defaults(self.defaults.planner))
        self.validator = WorkflowValidator(self.builder, self.detector, self.planner)
        self.integrity = IntegrityChecker(self.builder, self.detector)
        self.orchestrator = Orchestrator(
            handlers=self.handlers,
            model_service=self.model_service,
            event_service=self.event_service,
            defaults=self.defaults,
        )

        # Set by configure_* commands
        self.retry_policy: Optional[RetryPolicy] = None
        self.recovery_strategies: Optional[RecoveryStrategyMap] = None
        self.context_rules: List[ContextAccessRule] = []
        self.flow_policy: Optional[ContextFlowPolicy] = None
        self.max_hierarchy_depth: Optional[int] = None
        self.root_model_id: str = "root"
        self.bindings: List[FractalBinding] = []
        self.max_nesting_depth: Optional[int] = None

        self._dispatch: Dict[Type[BaseModel], CommandHandler] = {
            BuildGraphCommand: self._build_graph,
            DetectCyclesCommand: self._detect_cycles,
            PlanExecutionCommand: self._plan_execution,
            FindCriticalPathCommand: self._find_critical_path,
            ValidateIntegrityCommand: self._validate_integrity,
            ValidateWorkflowCommand: self._validate_workflow,
            ConfigureRecoveryCommand: self._configure_recovery,
            ConfigureContextHierarchyCommand: self._configure_context_hierarchy,
            ConfigureFractalExecutionCommand: self._configure_fractal_execution,
            ExecuteWorkflowCommand: self._execute_workflow,
        }
        self._check_dispatch()

    def _check_dispatch(self) -> None:
        """Every command variant must have a handler."""
        union = get_args(EngineCommand)[0]
        variants = set(get_args(union))
        missing = sorted(v.__name__ for v in variants - set(self._dispatch))
        if missing:
            raise ConfigurationError(f"No handler registered for commands: {missing}")

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def execute(self, command: Union[BaseModel, Dict[str, Any]]) -> EngineResponse:
        """
        Execute one command.

        Never raises for engine failures; they come back as a failed
        EngineResponse with diagnostics.
        """
        start = time.perf_counter()

        if isinstance(command, dict):
            try:
                command = parse_command(command)
            except PydanticValidationError as e:
                operation = command.get("operation")
                known = operation in {op.value for op in EngineOperation}
                return self._respond(
                    start,
                    EngineOperation(operation) if known else None,
                    _Outcome(success=False),
                    ValidationError(f"Invalid command: {e.error_count()} error(s)", errors=[
                        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
                        for err in e.errors()
                    ]),
                )

        handler = self._dispatch.get(type(command))
        if handler is None:
            raise ConfigurationError(f"Unsupported command type: {type(command).__name__}")

        operation = EngineOperation(command.operation)
        with log_context(operation=operation.value, component="engine"):
            try:
                outcome = await handler(command)
            except EngineError as e:
                logger.warning(f"{operation.value} failed: {e.message}")
                return self._respond(start, operation, _Outcome(success=False), e)

            logger.info(
                f"{operation.value} {'succeeded' if outcome.success else 'failed'} "
                f"({outcome.node_count} nodes)"
            )
            return self._respond(start, operation, outcome)

    def _respond(
        self,
        start: float,
        operation: Optional[EngineOperation],
        outcome: _Outcome,
        error: Optional[EngineError] = None,
    ) -> EngineResponse:
        elapsed_ms = (time.perf_counter() - start) * 1000
        target = self.defaults.planner.performance_target_ms

        errors = list(outcome.errors)
        error_type = None
        if error is not None:
            error_type = error.error_type
            detail_errors = getattr(error, "errors", None) or []
            errors = [error.message] + [e for e in detail_errors if e != error.message] + errors
        elif not outcome.success:
            error_type = ValidationError.__name__

        return EngineResponse(
            success=outcome.success and error is None,
            operation=operation,
            artifact=outcome.artifact,
            diagnostics=Diagnostics(errors=errors, warnings=list(outcome.warnings), error_type=error_type),
            metadata=ResponseMetadata(
                node_count=outcome.node_count,
                elapsed_ms=round(elapsed_ms, 3),
                performance_target_ms=target,
                target_met=elapsed_ms <= target,
                memory_rss_mb=_memory_rss_mb(),
            ),
        )

    # =========================================================================
    # GRAPH OPERATIONS
    # =========================================================================

    async def _build_graph(self, command: BuildGraphCommand) -> _Outcome:
        graph = self.builder.build(command.nodes, deferred=command.deferred).unwrap()
        await self.event_service.emit_graph_built(
            len(graph), graph.edge_count, deferred=len(graph.deferred_references)
        )
        return _Outcome(
            artifact={
                "node_ids": graph.node_ids,
                "edges": [list(edge) for edge in graph.edges()],
                "edge_count": graph.edge_count,
                "roots": graph.roots(),
                "terminals": graph.terminals(),
                "deferred_references": [list(ref) for ref in graph.deferred_references],
            },
            node_count=len(graph),
        )

    async def _detect_cycles(self, command: DetectCyclesCommand) -> _Outcome:
        report = self.detector.detect_nodes(command.nodes).unwrap()
        if not report.is_acyclic:
            await self.event_service.emit_cycle_detected([cycle.node_ids for cycle in report.cycles])
        return _Outcome(artifact=report, node_count=len(command.nodes))

    async def _plan_execution(self, command: PlanExecutionCommand) -> _Outcome:
        graph = self.builder.build(command.nodes).unwrap()
        try:
            config = PlannerConfig.from_defaults(
                self.defaults.planner,
                parallelism_cap=command.parallelism_cap,
                max_depth=command.max_depth,
                warn_depth=command.warn_depth,
                durations=command.durations or None,
            )
        except PydanticValidationError as e:
            raise _config_error(e)
        plan = self.planner.plan(graph, config).unwrap()
        await self.event_service.emit_plan_created(
            plan.depth, len(graph), plan.critical_path.node_ids
        )
        return _Outcome(artifact=plan, warnings=list(plan.warnings), node_count=len(graph))

    async def _find_critical_path(self, command: FindCriticalPathCommand) -> _Outcome:
        graph = self.builder.build(command.nodes).unwrap()
        path = self.planner.critical_path(graph, command.durations).unwrap()
        return _Outcome(artifact=path, node_count=len(graph))

    # =========================================================================
    # VALIDATION OPERATIONS
    # =========================================================================

    async def _validate_integrity(self, command: ValidateIntegrityCommand) -> _Outcome:
        report = self.integrity.validate(command.nodes, repair=command.repair).unwrap()
        if report.broken_references:
            await self.event_service.emit_integrity_violation(report.broken_references)

        if report.is_intact:
            success = True
        else:
            success = command.repair and report.all_repairs_successful and not report.remaining_issues

        errors = [] if success else [f"Broken reference: {ref}" for ref in report.broken_references]
        errors += report.remaining_issues
        return _Outcome(
            artifact=report,
            success=success,
            errors=errors,
            node_count=len(command.nodes),
        )

    async def _validate_workflow(self, command: ValidateWorkflowCommand) -> _Outcome:
        config = PlannerConfig.from_defaults(
            self.defaults.planner,
            max_depth=command.max_depth,
            warn_depth=command.warn_depth,
        )
        report = self.validator.validate(command.nodes, config).unwrap()
        return _Outcome(
            artifact=report,
            success=report.is_valid,
            errors=list(report.errors),
            warnings=list(report.warnings),
            node_count=len(command.nodes),
        )

    # =========================================================================
    # CONFIGURATION OPERATIONS
    # =========================================================================

    async def _configure_recovery(self, command: ConfigureRecoveryCommand) -> _Outcome:
        if command.retry_policy is not None:
            policy = RetryPolicy.create(**command.retry_policy).unwrap()
        else:
            policy = self.retry_policy or RetryPolicy.from_defaults(self.defaults.retry)

        current = self.recovery_strategies or RecoveryStrategyMap()
        strategies = dict(current.strategies)
        strategies.update({failure.value: action for failure, action in command.strategies.items()})
        strategy_map = RecoveryStrategyMap(
            strategies=strategies,
            default_action=command.default_action or current.default_action,
        )

        self.retry_policy = policy
        self.recovery_strategies = strategy_map
        logger.info(
            f"Recovery configured: {policy.max_attempts} attempts, {policy.backoff.value} backoff"
        )
        return _Outcome(artifact={"retry_policy": policy, "strategies": strategy_map})

    async def _configure_context_hierarchy(self, command: ConfigureContextHierarchyCommand) -> _Outcome:
        try:
            policy = ContextFlowPolicy(**(command.flow_policy or {}))
        except PydanticValidationError as e:
            raise _config_error(e)

        max_depth = (
            command.max_hierarchy_depth
            if command.max_hierarchy_depth is not None
            else self.defaults.context.max_hierarchy_depth
        )
        propagator = ContextPropagator.from_rules(command.rules, policy, max_depth).unwrap()

        self.context_rules = list(command.rules)
        self.flow_policy = policy
        self.max_hierarchy_depth = max_depth

        summary = propagator.summary()
        await self.event_service.emit_context_hierarchy_processed(len(propagator), summary.max_level)
        return _Outcome(
            artifact={
                "summary": summary,
                "access_map": {
                    rule.node_id: propagator.accessible_contexts(rule.node_id)
                    for rule in command.rules
                },
            },
            node_count=len(propagator),
        )

    async def _configure_fractal_execution(self, command: ConfigureFractalExecutionCommand) -> _Outcome:
        registered = []
        try:
            for model in command.models:
                self.model_service.register(model)
                registered.append(model.model_id)

            max_depth = (
                command.max_nesting_depth
                if command.max_nesting_depth is not None
                else self.defaults.fractal.max_nesting_depth
            )
            checker = FractalExecutor(self.model_service, self.orchestrator.run, max_depth)
            reachable = checker.validate_bindings(command.root_model_id, command.bindings).unwrap()
        except EngineError:
            for model_id in registered:
                self.model_service.unregister(model_id)
            raise

        missing = [model_id for model_id in reachable if model_id not in self.model_service]
        self.root_model_id = command.root_model_id
        self.bindings = list(command.bindings)
        self.max_nesting_depth = max_depth
        return _Outcome(
            artifact={
                "root_model_id": command.root_model_id,
                "bindings": self.bindings,
                "registered_models": registered,
                "reachable_models": reachable,
                "max_nesting_depth": max_depth,
            },
            warnings=[f"Nested model not registered yet: {model_id}" for model_id in missing],
            node_count=len(command.bindings),
        )

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def _execute_workflow(self, command: ExecuteWorkflowCommand) -> _Outcome:
        config = self._with_engine_config(command.config)
        if config.bindings:
            root = config.model_id or self.root_model_id
            FractalExecutor(self.model_service, self.orchestrator.run).validate_bindings(
                root, config.bindings
            ).unwrap()

        report = (await self.orchestrator.run(command.nodes, config)).unwrap()
        return _Outcome(
            artifact=report,
            success=report.success,
            errors=list(report.errors),
            warnings=list(report.warnings),
            node_count=len(command.nodes),
        )

    def _with_engine_config(self, config: RunConfig) -> RunConfig:
        """Fill what the run leaves unset from configure_* commands."""
        update: Dict[str, Any] = {}
        if config.retry_policy is None and self.retry_policy is not None:
            update["retry_policy"] = self.retry_policy
        if config.recovery_strategies is None and self.recovery_strategies is not None:
            update["recovery_strategies"] = self.recovery_strategies
        if not config.context_rules and self.context_rules:
            update["context_rules"] = self.context_rules
            update["flow_policy"] = config.flow_policy or self.flow_policy
            if config.max_hierarchy_depth is None:
                update["max_hierarchy_depth"] = self.max_hierarchy_depth
        if not config.bindings and self.bindings:
            update["bindings"] = self.bindings
        if config.max_nesting_depth is None and self.max_nesting_depth is not None:
            update["max_nesting_depth"] = self.max_nesting_depth
        return config.model_copy(update=update) if update else config

    # =========================================================================
    # RUN CONTROL
    # =========================================================================

    def get_status(self, run_id: str) -> Optional[ExecutionStatus]:
        return self.orchestrator.get_status(run_id)

    def cancel(self, run_id: str) -> bool:
        return self.orchestrator.cancel(run_id)

    def pause(self, run_id: str) -> bool:
        return self.orchestrator.pause(run_id)

    def resume(self, run_id: str) -> bool:
        return self.orchestrator.resume(run_id)

    def forget(self, run_id: str) -> bool:
        """Drop a finished run from the status table."""
        return self.orchestrator.forget(run_id)


__all__ = ["DependencyEngine"]
