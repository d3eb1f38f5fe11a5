# ============================================================================
# DEPENDENCY ENGINE TESTS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Tests - Engine facade
# PURPOSE: Verify every command returns the response envelope it should
# CREATED: 19 OCT 2026
# ============================================================================
"""
Dependency Engine Tests

Every operation goes through DependencyEngine.execute() and comes back as an
EngineResponse; these tests check success flags, artifacts, diagnostics and
metadata rather than re-testing the underlying components.

Run with:
    pytest tests/test_engine_service.py -v
"""

import asyncio
import pytest

from core.config import EngineDefaults
from core.contracts import EngineOperation, RunStatus
from core.models.commands import (
    BuildGraphCommand,
    ConfigureRecoveryCommand,
    DetectCyclesCommand,
    EngineResponse,
    ExecuteWorkflowCommand,
    PlanExecutionCommand,
    parse_command,
)
from core.models.events import EventType
from core.models.node import Node
from core.models.run import RunConfig
from handlers import HandlerRegistry, register_example_handlers
from services.engine_service import DependencyEngine


DIAMOND = [
    {"node_id": "a", "handler": "echo", "params": {"x": "{{ inputs.x }}"}},
    {"node_id": "b", "dependencies": ["a"], "handler": "echo"},
    {"node_id": "c", "dependencies": ["a"], "handler": "echo"},
    {"node_id": "d", "dependencies": ["b", "c"], "handler": "echo"},
]

FAST_RETRY = {"max_attempts": 3, "backoff": "immediate", "initial_delay_seconds": 0}


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def engine():
    return DependencyEngine(
        handlers=register_example_handlers(HandlerRegistry()),
        defaults=EngineDefaults(),
    )


def _execute(engine, command) -> EngineResponse:
    return asyncio.run(engine.execute(command))


# ============================================================================
# COMMAND PARSING
# ============================================================================

class TestCommandParsing:
    def test_parse_command_selects_variant(self):
        command = parse_command({"operation": "detect_cycles", "nodes": [{"node_id": "a"}]})
        assert isinstance(command, DetectCyclesCommand)

    def test_unknown_operation(self, engine):
        response = _execute(engine, {"operation": "launch_rockets"})
        assert not response.success
        assert response.operation is None
        assert response.diagnostics.error_type == "ValidationError"
        assert response.diagnostics.errors[0].startswith("Invalid command:")

    def test_bad_fields_keep_operation(self, engine):
        response = _execute(engine, {"operation": "plan_execution", "nodes": "nope"})
        assert not response.success
        assert response.operation == EngineOperation.PLAN_EXECUTION

    def test_extra_fields_rejected(self, engine):
        response = _execute(engine, {"operation": "detect_cycles", "nodes": [], "surprise": 1})
        assert not response.success


# ============================================================================
# GRAPH OPERATIONS
# ============================================================================

class TestGraphOperations:
    def test_build_graph(self, engine):
        response = _execute(engine, {"operation": "build_graph", "nodes": DIAMOND})
        assert response.success
        assert response.operation == EngineOperation.BUILD_GRAPH
        artifact = response.artifact
        assert artifact["node_ids"] == ["a", "b", "c", "d"]
        assert artifact["edge_count"] == 4
        assert artifact["roots"] == ["a"]
        assert artifact["terminals"] == ["d"]
        assert response.metadata.node_count == 4

    def test_build_graph_deferred(self, engine):
        response = _execute(engine, BuildGraphCommand(
            nodes=[Node(node_id="a", dependencies=["elsewhere"])],
            deferred=["elsewhere"],
        ))
        assert response.success
        assert response.artifact["deferred_references"] == [["a", "elsewhere"]]

    def test_build_graph_broken_reference(self, engine):
        response = _execute(engine, {
            "operation": "build_graph",
            "nodes": [{"node_id": "a", "dependencies": ["ghost"]}],
        })
        assert not response.success
        assert response.diagnostics.error_type == "IntegrityError"

    def test_detect_cycles(self, engine):
        response = _execute(engine, {
            "operation": "detect_cycles",
            "nodes": [
                {"node_id": "a", "dependencies": ["b"]},
                {"node_id": "b", "dependencies": ["a"]},
            ],
        })
        # finding cycles is a successful detection
        assert response.success
        assert not response.artifact.is_acyclic
        assert len(response.artifact.cycles) == 1
        assert engine.event_service.bus.get_history(event_type=EventType.CYCLE_DETECTED)

    def test_plan_execution(self, engine):
        response = _execute(engine, PlanExecutionCommand(
            nodes=[Node(**n) for n in DIAMOND], parallelism_cap=1,
        ))
        assert response.success
        plan = response.artifact
        assert plan.levels == [["a"], ["b", "c"], ["d"]]
        assert plan.parallel_groups == [["a"], ["b"], ["c"], ["d"]]
        assert plan.critical_path.node_ids == ["a", "b", "d"]

    def test_plan_execution_warnings(self, engine):
        response = _execute(engine, {"operation": "plan_execution", "nodes": DIAMOND, "warn_depth": 2})
        assert response.success
        assert response.diagnostics.warnings[0].startswith("Deep dependency chain detected (3 levels)")

    def test_plan_execution_depth_exceeded(self, engine):
        response = _execute(engine, {"operation": "plan_execution", "nodes": DIAMOND, "max_depth": 2})
        assert not response.success
        assert response.diagnostics.error_type == "DepthExceededError"

    def test_plan_execution_bad_durations(self, engine):
        response = _execute(engine, {
            "operation": "plan_execution", "nodes": DIAMOND, "durations": {"a": -5},
        })
        assert not response.success
        assert response.diagnostics.error_type == "ConfigurationError"

    def test_plan_execution_cycle(self, engine):
        response = _execute(engine, {
            "operation": "plan_execution",
            "nodes": [{"node_id": "a", "dependencies": ["a"]}],
        })
        assert not response.success
        assert response.diagnostics.error_type == "ValidationError"

    def test_find_critical_path(self, engine):
        response = _execute(engine, {
            "operation": "find_critical_path", "nodes": DIAMOND, "durations": {"c": 5},
        })
        assert response.artifact.node_ids == ["a", "c", "d"]
        assert response.artifact.total_weight == 7.0


# ============================================================================
# VALIDATION OPERATIONS
# ============================================================================

class TestValidationOperations:
    def test_validate_integrity_intact(self, engine):
        response = _execute(engine, {"operation": "validate_integrity", "nodes": DIAMOND})
        assert response.success
        assert response.artifact.is_intact

    def test_validate_integrity_broken(self, engine):
        response = _execute(engine, {
            "operation": "validate_integrity",
            "nodes": [{"node_id": "a", "dependencies": ["ghost"]}],
        })
        assert not response.success
        assert response.diagnostics.errors == ["Broken reference: a -> ghost"]

    def test_validate_integrity_repaired(self, engine):
        response = _execute(engine, {
            "operation": "validate_integrity",
            "nodes": [{"node_id": "a", "dependencies": ["ghost"]}],
            "repair": True,
        })
        assert response.success
        assert response.artifact.repaired_nodes[0].dependencies == []

    def test_validate_workflow(self, engine):
        response = _execute(engine, {
            "operation": "validate_workflow",
            "nodes": [
                {"node_id": "in", "kind": "input", "dependencies": ["x"]},
                {"node_id": "x"},
            ],
        })
        assert not response.success
        assert response.diagnostics.errors == ["Input node 'in' cannot have dependencies"]
        assert response.artifact.is_valid is False


# ============================================================================
# CONFIGURATION OPERATIONS
# ============================================================================

class TestConfiguration:
    def test_configure_recovery(self, engine):
        response = _execute(engine, ConfigureRecoveryCommand(
            retry_policy={"max_attempts": 5, "backoff": "linear"},
            strategies={"configuration_error": "retry"},
        ))
        assert response.success
        assert engine.retry_policy.max_attempts == 5
        assert engine.recovery_strategies.action_for("configuration_error").value == "retry"
        assert engine.recovery_strategies.action_for("timeout").value == "retry"

    def test_configure_recovery_invalid(self, engine):
        response = _execute(engine, {
            "operation": "configure_recovery",
            "retry_policy": {"max_attempts": 500},
        })
        assert not response.success
        assert response.diagnostics.error_type == "ConfigurationError"
        assert response.diagnostics.errors == ["Max attempts cannot exceed 100"]
        assert engine.retry_policy is None

    def test_configure_context_hierarchy(self, engine):
        response = _execute(engine, {
            "operation": "configure_context_hierarchy",
            "rules": [
                {"node_id": "root"},
                {"node_id": "child", "parent_node_id": "root", "hierarchy_level": 1},
            ],
            "flow_policy": {"child_access": "none"},
        })
        assert response.success
        assert response.artifact["access_map"] == {"root": ["root", "child"], "child": ["child"]}
        assert response.artifact["summary"].max_level == 1
        assert len(engine.context_rules) == 2

    def test_configure_context_hierarchy_bad_policy(self, engine):
        response = _execute(engine, {
            "operation": "configure_context_hierarchy",
            "rules": [],
            "flow_policy": {"sibling_access": "restricted"},
        })
        assert response.diagnostics.error_type == "ConfigurationError"

    def test_configure_context_hierarchy_too_deep(self, engine):
        response = _execute(engine, {
            "operation": "configure_context_hierarchy",
            "rules": [
                {"node_id": "root"},
                {"node_id": "child", "parent_node_id": "root", "hierarchy_level": 1},
            ],
            "max_hierarchy_depth": 0,
        })
        assert response.diagnostics.error_type == "DepthExceededError"

    def test_configure_fractal_execution(self, engine):
        response = _execute(engine, {
            "operation": "configure_fractal_execution",
            "models": [{"model_id": "inner", "nodes": [{"node_id": "x", "handler": "echo"}]}],
            "bindings": [
                {"container_node_id": "box", "nested_model_id": "inner"},
                {"container_node_id": "later", "nested_model_id": "pending_model"},
            ],
        })
        assert response.success
        assert response.artifact["reachable_models"] == ["inner", "pending_model"]
        assert response.diagnostics.warnings == ["Nested model not registered yet: pending_model"]
        assert "inner" in engine.model_service

    def test_configure_fractal_cycle_rolls_back(self, engine):
        response = _execute(engine, {
            "operation": "configure_fractal_execution",
            "models": [
                {"model_id": "ping", "nodes": [{"node_id": "c", "kind": "container"}],
                 "bindings": [{"container_node_id": "c", "nested_model_id": "pong"}]},
                {"model_id": "pong", "nodes": [{"node_id": "c", "kind": "container"}],
                 "bindings": [{"container_node_id": "c", "nested_model_id": "ping"}]},
            ],
            "bindings": [{"container_node_id": "box", "nested_model_id": "ping"}],
        })
        assert not response.success
        assert response.diagnostics.error_type == "FractalCycleError"
        assert "ping" not in engine.model_service
        assert engine.bindings == []


# ============================================================================
# EXECUTION
# ============================================================================

class TestExecuteWorkflow:
    def test_successful_run(self, engine):
        response = _execute(engine, ExecuteWorkflowCommand(
            nodes=[Node(**n) for n in DIAMOND],
            config=RunConfig(run_id="w1", inputs={"x": 1}),
        ))
        assert response.success
        report = response.artifact
        assert report.status == RunStatus.COMPLETED
        assert report.outputs["a"] == {"x": 1}
        assert engine.get_status("w1").status == RunStatus.COMPLETED

    def test_failed_run_is_failed_response(self, engine):
        response = _execute(engine, {
            "operation": "execute_workflow",
            "nodes": [{"node_id": "a", "handler": "fail",
                       "params": {"failure_class": "configuration_error"}}],
        })
        assert not response.success
        assert response.artifact.status == RunStatus.FAILED
        assert response.diagnostics.errors[0].startswith("a: ")

    def test_cycle_rejected(self, engine):
        response = _execute(engine, {
            "operation": "execute_workflow",
            "nodes": [{"node_id": "a", "dependencies": ["a"]}],
        })
        assert not response.success
        assert response.artifact is None
        assert response.diagnostics.error_type == "ValidationError"

    def test_uses_configured_recovery(self, engine):
        _execute(engine, {"operation": "configure_recovery", "retry_policy": FAST_RETRY})
        response = _execute(engine, {
            "operation": "execute_workflow",
            "nodes": [{"node_id": "f", "handler": "flaky_echo", "params": {"fail_times": 2}}],
        })
        assert response.success
        assert response.artifact.node_states["f"].attempts == 3

    def test_uses_configured_fractal_bindings(self, engine):
        _execute(engine, {
            "operation": "configure_fractal_execution",
            "models": [{"model_id": "inner",
                        "nodes": [{"node_id": "x", "handler": "echo", "params": {"v": 3}}]}],
            "bindings": [{"container_node_id": "box", "nested_model_id": "inner",
                          "output_extraction": {"nodes.x.output.v": "v"}}],
        })
        response = _execute(engine, {
            "operation": "execute_workflow",
            "nodes": [{"node_id": "box", "kind": "container"}],
        })
        assert response.success
        assert response.artifact.outputs["box"] == {"v": 3}

    def test_static_fractal_cycle_rejected_before_running(self, engine):
        _execute(engine, {
            "operation": "configure_fractal_execution",
            "models": [{"model_id": "loop", "nodes": [{"node_id": "c", "kind": "container"}],
                        "bindings": [{"container_node_id": "c", "nested_model_id": "loop"}]}],
        })
        response = _execute(engine, {
            "operation": "execute_workflow",
            "nodes": [{"node_id": "box", "kind": "container"}],
            "config": {"bindings": [{"container_node_id": "box", "nested_model_id": "loop"}]},
        })
        assert response.diagnostics.error_type == "FractalCycleError"

    def test_run_control_passes_through(self, engine):
        async def scenario():
            task = asyncio.create_task(engine.execute({
                "operation": "execute_workflow",
                "nodes": [
                    {"node_id": "a", "handler": "sleep", "params": {"duration_seconds": 0.05}},
                    {"node_id": "b", "dependencies": ["a"], "handler": "echo"},
                ],
                "config": {"run_id": "ctl"},
            }))
            await asyncio.sleep(0.01)
            assert engine.pause("ctl") is True
            await asyncio.sleep(0.1)
            held = engine.get_status("ctl").completed_nodes
            assert engine.resume("ctl") is True
            return held, await task

        held, response = asyncio.run(scenario())
        assert held == ["a"]
        assert response.success
        assert engine.pause("ctl") is False
        assert engine.forget("ctl") is True
        assert engine.get_status("ctl") is None
        assert engine.forget("ctl") is False


# ============================================================================
# RESPONSE METADATA
# ============================================================================

class TestMetadata:
    def test_metadata_populated(self, engine):
        response = _execute(engine, {"operation": "build_graph", "nodes": DIAMOND})
        meta = response.metadata
        assert meta.elapsed_ms >= 0
        assert meta.performance_target_ms == 100.0
        assert meta.target_met == (meta.elapsed_ms <= 100.0)
        assert meta.memory_rss_mb is None or meta.memory_rss_mb > 0

    def test_response_serializes(self, engine):
        response = _execute(engine, {"operation": "plan_execution", "nodes": DIAMOND})
        payload = response.model_dump(mode="json")
        assert payload["operation"] == "plan_execution"
        assert payload["artifact"]["levels"] == [["a"], ["b", "c"], ["d"]]
