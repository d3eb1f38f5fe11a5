# ============================================================================
# ORCHESTRATOR TESTS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Tests - Level-by-level run driver
# PURPOSE: Verify dispatch order, failure handling, recovery and run control
# CREATED: 29 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Orchestrator Tests

Covers:
1. Data flow between levels (templates, input nodes, pass-through nodes)
2. Parallelism cap, level barrier and priority order
3. Fatal failures, continue_on_failure and allow_failure
4. Retries, fail-fast classifications and timeouts
5. Cancellation, pause/resume and status snapshots
6. Context isolation between nodes

Run with:
    pytest tests/test_orchestrator.py -v
"""

import asyncio
import time
import pytest
from unittest.mock import AsyncMock, patch

from core.config import EngineDefaults, ExecutionDefaults
from core.contracts import FailureClass, NodeStatus, RunStatus
from core.errors import IntegrityError, ValidationError
from core.models.context import ContextAccessRule
from core.models.events import EventType
from core.models.node import Node
from core.models.recovery import RetryPolicy
from core.models.run import RunConfig
from handlers import HandlerRegistry, HandlerResult, register_example_handlers
from orchestrator import CancellationToken, Orchestrator
from services.event_service import EventService


FAST_RETRY = RetryPolicy(max_attempts=3, backoff="immediate", initial_delay_seconds=0)
NO_RETRY = RetryPolicy(max_attempts=1, backoff="immediate", initial_delay_seconds=0)


# ============================================================================
# FIXTURES
# ============================================================================

class _Tracker:
    """Records handler activity for ordering and concurrency assertions."""

    def __init__(self):
        self.log = []
        self.active = 0
        self.peak = 0


@pytest.fixture
def tracker():
    return _Tracker()


@pytest.fixture
def registry(tracker):
    registry = register_example_handlers(HandlerRegistry())

    @registry.handler("track")
    async def track(ctx):
        tracker.active += 1
        tracker.peak = max(tracker.peak, tracker.active)
        tracker.log.append(("start", ctx.node_id))
        await asyncio.sleep(float(ctx.params.get("duration_seconds", 0.02)))
        tracker.log.append(("end", ctx.node_id))
        tracker.active -= 1
        return HandlerResult.success_result({"node": ctx.node_id})

    return registry


@pytest.fixture
def orchestrator(registry):
    return Orchestrator(handlers=registry)


def _run(orchestrator, nodes, **config):
    config.setdefault("retry_policy", FAST_RETRY)
    return asyncio.run(orchestrator.run(nodes, RunConfig(**config))).unwrap()


# ============================================================================
# DATA FLOW
# ============================================================================

class TestDataFlow:
    def test_outputs_flow_through_templates(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="echo", params={"x": "{{ inputs.x }}"}),
            Node(node_id="b", dependencies=["a"], handler="echo",
                 params={"y": "{{ nodes.a.output.x }}"}),
        ], inputs={"x": 7})

        assert report.status == RunStatus.COMPLETED
        assert report.success
        assert report.completed_nodes == ["a", "b"]
        assert report.outputs["b"] == {"y": 7}
        assert report.levels_executed == 2

    def test_input_node_without_params_outputs_inputs(self, orchestrator):
        report = _run(orchestrator, [Node(node_id="in", kind="input")], inputs={"k": "v"})
        assert report.outputs["in"] == {"k": "v"}

    def test_node_without_handler_passes_params(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="const", params={"rate": 0.2, "who": "{{ inputs.who }}"}),
        ], inputs={"who": "ops"})
        assert report.outputs["const"] == {"rate": 0.2, "who": "ops"}

    def test_sync_handler(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="s", handler="sum", params={"values": [1, 2, 3]}),
        ])
        assert report.outputs["s"] == {"total": 6, "count": 3}

    def test_empty_node_list(self, orchestrator):
        report = _run(orchestrator, [])
        assert report.status == RunStatus.COMPLETED
        assert report.levels_executed == 0

    def test_nodes_not_mutated(self, orchestrator):
        nodes = [Node(node_id="a", handler="echo", params={"x": "{{ inputs.x }}"})]
        _run(orchestrator, nodes, inputs={"x": 1})
        _run(orchestrator, nodes, inputs={"x": 2})
        assert nodes[0].params == {"x": "{{ inputs.x }}"}


# ============================================================================
# SCHEDULING
# ============================================================================

class TestScheduling:
    def test_parallelism_cap(self, orchestrator, tracker):
        nodes = [Node(node_id=f"w{i}", handler="track") for i in range(6)]
        report = _run(orchestrator, nodes, parallelism_cap=2)
        assert report.success
        assert tracker.peak == 2

    def test_level_runs_concurrently(self, orchestrator, tracker):
        nodes = [Node(node_id=f"w{i}", handler="track") for i in range(4)]
        _run(orchestrator, nodes, parallelism_cap=8)
        assert tracker.peak == 4

    def test_level_barrier(self, orchestrator, tracker):
        _run(orchestrator, [
            Node(node_id="fast", handler="track", params={"duration_seconds": 0.01}),
            Node(node_id="slow", handler="track", params={"duration_seconds": 0.05}),
            Node(node_id="next", handler="track", dependencies=["fast"]),
        ])
        # next waits for the whole first level, not just its own dependency
        assert tracker.log.index(("start", "next")) > tracker.log.index(("end", "slow"))

    def test_priority_order_within_level(self, orchestrator, tracker):
        _run(orchestrator, [
            Node(node_id="low", handler="track", priority=1),
            Node(node_id="high", handler="track", priority=9),
        ], parallelism_cap=1)
        starts = [node_id for event, node_id in tracker.log if event == "start"]
        assert starts == ["high", "low"]


# ============================================================================
# FAILURE HANDLING
# ============================================================================

class TestFailures:
    def test_fatal_failure_halts_run(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="fail", params={"failure_class": "configuration_error"}),
            Node(node_id="b", dependencies=["a"], handler="echo"),
        ])
        assert report.status == RunStatus.FAILED
        assert report.failed_nodes == ["a"]
        assert report.pending_nodes == ["b"]
        assert report.levels_executed == 1
        assert report.errors[0].startswith("a: ")
        assert report.errors[-1].startswith("Run halted: Node a failed")

    def test_continue_on_failure_skips_dependents(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="fail", params={"failure_class": "configuration_error"}),
            Node(node_id="b", dependencies=["a"], handler="echo"),
            Node(node_id="c", handler="echo"),
            Node(node_id="d", dependencies=["c"], handler="echo"),
        ], continue_on_failure=True)

        assert report.status == RunStatus.FAILED
        assert report.skipped_nodes == ["b"]
        assert report.node_states["b"].error_message == "Dependency a did not complete"
        assert set(report.completed_nodes) == {"c", "d"}

    def test_allow_failure_is_not_fatal(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="optional", handler="fail", allow_failure=True,
                 params={"failure_class": "configuration_error"}),
            Node(node_id="after", dependencies=["optional"], handler="echo"),
        ])
        assert report.status == RunStatus.COMPLETED
        assert report.failed_nodes == ["optional"]
        assert report.completed_nodes == ["after"]

    def test_cycle_rejected(self, orchestrator):
        result = asyncio.run(orchestrator.run([
            Node(node_id="a", dependencies=["b"]),
            Node(node_id="b", dependencies=["a"]),
        ]))
        assert isinstance(result.error, ValidationError)
        assert result.error.message.startswith("Graph contains a cycle involving nodes")
        assert result.error.errors[0].startswith("Circular dependency detected:")

    def test_broken_reference_rejected(self, orchestrator):
        result = asyncio.run(orchestrator.run([Node(node_id="a", dependencies=["ghost"])]))
        assert isinstance(result.error, IntegrityError)

    def test_bad_context_rules_rejected(self, orchestrator):
        result = asyncio.run(orchestrator.run(
            [Node(node_id="a")],
            RunConfig(context_rules=[ContextAccessRule(node_id="a", parent_node_id="x", hierarchy_level=1)]),
        ))
        assert isinstance(result.error, ValidationError)


# ============================================================================
# RECOVERY
# ============================================================================

class TestRecovery:
    def test_retry_until_success(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 2}),
        ])
        state = report.node_states["flaky"]
        assert state.status == NodeStatus.COMPLETED
        assert state.attempts == 3
        assert report.outputs["flaky"]["attempt"] == 3
        assert [entry.retried for entry in report.recovery_log] == [True, True]

    def test_retries_exhausted(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 10}),
        ])
        assert report.node_states["flaky"].attempts == 3
        assert report.status == RunStatus.FAILED
        assert [entry.retried for entry in report.recovery_log] == [True, True, False]

    def test_node_retry_policy_overrides_run_policy(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 3},
                 retry=RetryPolicy(max_attempts=5, backoff="immediate", initial_delay_seconds=0)),
        ])
        assert report.node_states["flaky"].attempts == 4
        assert report.success

    def test_configuration_error_fails_fast(self, orchestrator):
        report = _run(orchestrator, [Node(node_id="a", handler="nope")])
        state = report.node_states["a"]
        assert state.attempts == 1
        assert state.failure_class == FailureClass.CONFIGURATION_ERROR
        assert state.error_message == "Handler not found: nope"

    def test_unresolvable_template_fails_fast(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="echo", params={"x": "{{ inputs.missing }}"}),
        ])
        state = report.node_states["a"]
        assert state.failure_class == FailureClass.CONFIGURATION_ERROR
        assert state.attempts == 1

    def test_expression_error_fails_node(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="echo", params={"v": "{{ inputs.x + 1 }}"}),
            Node(node_id="b", dependencies=["a"], handler="echo"),
        ], inputs={"x": "s"})
        assert report.status == RunStatus.FAILED
        assert report.failed_nodes == ["a"]
        state = report.node_states["a"]
        assert state.failure_class == FailureClass.CONFIGURATION_ERROR
        assert state.attempts == 1

    def test_cancel_cuts_retry_backoff_short(self, registry):
        events = EventService()
        orchestrator = Orchestrator(handlers=registry, event_service=events)
        slow_retry = RetryPolicy(max_attempts=3, backoff="linear",
                                 initial_delay_seconds=30, max_delay_seconds=60)

        async def scenario():
            task = asyncio.create_task(orchestrator.run([
                Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 5}),
            ], RunConfig(run_id="backoff", retry_policy=slow_retry)))
            await asyncio.sleep(0.05)
            assert orchestrator.cancel("backoff") is True
            return (await task).unwrap()

        started = time.perf_counter()
        report = asyncio.run(scenario())
        assert time.perf_counter() - started < 5

        state = report.node_states["flaky"]
        assert state.status == NodeStatus.FAILED
        assert state.attempts == 1
        assert [entry.retried for entry in report.recovery_log] == [False]
        assert report.recovery_log[0].delay_seconds == 0.0
        history = events.bus.get_history(run_id="backoff")
        assert not [e for e in history if e.event_type == EventType.RECOVERY_ATTEMPTED]

    def test_node_timeout(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="slow", handler="sleep", timeout_seconds=0.05,
                 params={"duration_seconds": 1}),
        ], retry_policy=NO_RETRY)
        state = report.node_states["slow"]
        assert state.failure_class == FailureClass.TIMEOUT
        assert state.error_message == "Node slow timed out after 0.05s"

    def test_stage_timeout(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="slow", handler="sleep", params={"duration_seconds": 1}),
            Node(node_id="after", dependencies=["slow"], handler="echo"),
        ], stage_timeout_seconds=0.05)
        state = report.node_states["slow"]
        assert state.status == NodeStatus.FAILED
        assert state.failure_class == FailureClass.TIMEOUT
        assert state.error_message == "Stage timed out after 0.05s"
        assert report.pending_nodes == ["after"]
        assert report.status == RunStatus.FAILED


# ============================================================================
# RUN CONTROL
# ============================================================================

class TestRunControl:
    def test_cancel_stops_dispatch(self, orchestrator):
        async def scenario():
            task = asyncio.create_task(orchestrator.run([
                Node(node_id="a", handler="sleep", params={"duration_seconds": 0.1}),
                Node(node_id="b", dependencies=["a"], handler="echo"),
            ], RunConfig(run_id="r1")))
            await asyncio.sleep(0.02)
            assert orchestrator.cancel("r1", "operator stop") is True
            return (await task).unwrap()

        report = asyncio.run(scenario())
        assert report.status == RunStatus.CANCELLED
        assert report.completed_nodes == ["a"]
        assert report.pending_nodes == ["b"]
        assert "Run halted: operator stop" in report.errors
        assert orchestrator.cancel("r1") is False

    def test_cancel_unknown_run(self, orchestrator):
        assert orchestrator.cancel("ghost") is False

    def test_status_while_running(self, orchestrator):
        async def scenario():
            task = asyncio.create_task(orchestrator.run([
                Node(node_id="a", handler="sleep", params={"duration_seconds": 0.1}),
                Node(node_id="b", dependencies=["a"], handler="echo"),
            ], RunConfig(run_id="r2")))
            await asyncio.sleep(0.02)
            snapshot = orchestrator.get_status("r2")
            assert orchestrator.active_runs() == ["r2"]
            await task
            return snapshot

        snapshot = asyncio.run(scenario())
        assert snapshot.status == RunStatus.RUNNING
        assert snapshot.current_level == 0
        assert snapshot.current_nodes == ["a"]
        assert snapshot.progress == 0.0

        final = orchestrator.get_status("r2")
        assert final.status == RunStatus.COMPLETED
        assert final.progress == 100.0
        assert orchestrator.active_runs() == []
        assert orchestrator.forget("r2") is True
        assert orchestrator.get_status("r2") is None

    def test_duplicate_active_run_rejected(self, orchestrator):
        async def scenario():
            nodes = [Node(node_id="a", handler="sleep", params={"duration_seconds": 0.05})]
            first = asyncio.create_task(orchestrator.run(nodes, RunConfig(run_id="dup")))
            await asyncio.sleep(0.01)
            second = await orchestrator.run(nodes, RunConfig(run_id="dup"))
            await first
            return second

        second = asyncio.run(scenario())
        assert second.error.message == "Run dup is already active"

    def test_pause_and_resume(self, orchestrator):
        async def scenario():
            task = asyncio.create_task(orchestrator.run([
                Node(node_id="a", handler="sleep", params={"duration_seconds": 0.05}),
                Node(node_id="b", dependencies=["a"], handler="echo"),
            ], RunConfig(run_id="r3")))
            await asyncio.sleep(0.01)
            assert orchestrator.pause("r3") is True
            await asyncio.sleep(0.15)
            paused = orchestrator.get_status("r3")
            assert orchestrator.resume("r3") is True
            return paused, (await task).unwrap()

        paused, report = asyncio.run(scenario())
        assert paused.completed_nodes == ["a"]
        assert "b" not in paused.completed_nodes
        assert report.status == RunStatus.COMPLETED

    def test_resume_with_fewer_nodes_than_workers(self, orchestrator):
        # both workers are parked on the gate, only one node is left
        async def scenario():
            task = asyncio.create_task(orchestrator.run([
                Node(node_id="a", handler="track", params={"duration_seconds": 0.05}),
                Node(node_id="b", handler="track", params={"duration_seconds": 0.05}),
                Node(node_id="c", handler="echo"),
            ], RunConfig(run_id="drain", parallelism_cap=2)))
            await asyncio.sleep(0.01)
            assert orchestrator.pause("drain") is True
            await asyncio.sleep(0.15)
            paused = orchestrator.get_status("drain")
            assert orchestrator.resume("drain") is True
            return paused, (await task).unwrap()

        paused, report = asyncio.run(scenario())
        assert sorted(paused.completed_nodes) == ["a", "b"]
        assert report.status == RunStatus.COMPLETED
        assert sorted(report.completed_nodes) == ["a", "b", "c"]

    def test_crash_marks_run_failed(self, orchestrator):
        nodes = [Node(node_id="a", handler="echo")]
        crash = AsyncMock(side_effect=RuntimeError("boom"))
        with patch.object(orchestrator, "_run_level", crash):
            with pytest.raises(RuntimeError):
                asyncio.run(orchestrator.run(nodes, RunConfig(run_id="crash")))

        assert orchestrator.get_status("crash").status == RunStatus.FAILED
        assert orchestrator.active_runs() == []
        report = asyncio.run(orchestrator.run(nodes, RunConfig(run_id="crash"))).unwrap()
        assert report.status == RunStatus.COMPLETED

    def test_finished_runs_are_evicted(self, registry):
        defaults = EngineDefaults(execution=ExecutionDefaults(finished_run_history=2))
        orchestrator = Orchestrator(handlers=registry, defaults=defaults)
        for i in range(5):
            _run(orchestrator, [Node(node_id="a", handler="echo")], run_id=f"h{i}")
        # re-running an old id makes it the most recent
        _run(orchestrator, [Node(node_id="a", handler="echo")], run_id="h3")

        assert set(orchestrator._runs) == {"h4", "h3"}
        assert orchestrator.get_status("h0") is None
        assert orchestrator.get_status("h3").status == RunStatus.COMPLETED

    def test_cancellation_token_follows_parent(self):
        parent = CancellationToken()
        child = CancellationToken(parent=parent)
        child.cancel("child failed")
        assert child.is_cancelled and not parent.is_cancelled

        sibling = CancellationToken(parent=parent)
        parent.cancel("stop all")
        assert sibling.is_cancelled
        assert sibling.reason == "stop all"
        assert child.reason == "child failed"

    def test_token_wait_wakes_on_parent_cancel(self):
        async def scenario():
            parent = CancellationToken()
            child = CancellationToken(parent=parent)
            assert await child.wait(0.01) is False
            waiter = asyncio.create_task(child.wait(30))
            await asyncio.sleep(0)
            parent.cancel("stop all")
            return await asyncio.wait_for(waiter, 1)

        assert asyncio.run(scenario()) is True


# ============================================================================
# CONTEXT ISOLATION
# ============================================================================

class TestContextIsolation:
    def test_rules_gate_visible_outputs(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="echo", params={"v": 1}),
            Node(node_id="child", dependencies=["a"], handler="echo",
                 params={"seen": "{{ nodes.a.output.v }}"}),
            Node(node_id="stranger", dependencies=["a"], handler="echo",
                 params={"seen": "{{ nodes.a.output.v }}"}),
        ], continue_on_failure=True, context_rules=[
            ContextAccessRule(node_id="a"),
            ContextAccessRule(node_id="child", parent_node_id="a", hierarchy_level=1),
            ContextAccessRule(node_id="stranger"),
        ])

        assert report.outputs["child"] == {"seen": 1}
        stranger = report.node_states["stranger"]
        assert stranger.status == NodeStatus.FAILED
        assert stranger.failure_class == FailureClass.CONFIGURATION_ERROR

    def test_without_rules_everything_visible(self, orchestrator):
        report = _run(orchestrator, [
            Node(node_id="a", handler="echo", params={"v": 1}),
            Node(node_id="b", dependencies=["a"], handler="echo",
                 params={"seen": "{{ nodes.a.output.v }}"}),
        ])
        assert report.outputs["b"] == {"seen": 1}


# ============================================================================
# EVENTS
# ============================================================================

class TestEvents:
    def test_lifecycle_events(self, registry):
        events = EventService()
        orchestrator = Orchestrator(handlers=registry, event_service=events)
        _run(orchestrator, [
            Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 1}),
        ], run_id="ev")

        types = [e.event_type for e in reversed(events.bus.get_history(run_id="ev"))]
        assert types[0] == EventType.ORCHESTRATION_STARTED
        assert EventType.RECOVERY_ATTEMPTED in types
        assert EventType.RECOVERY_SUCCEEDED in types
        assert EventType.NODE_COMPLETED in types
        assert types[-1] == EventType.ORCHESTRATION_COMPLETED

    def test_recovery_event_counts(self, registry):
        events = EventService()
        orchestrator = Orchestrator(handlers=registry, event_service=events)
        report = _run(orchestrator, [
            Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 2}),
        ], run_id="twice")

        history = events.bus.get_history(run_id="twice")
        assert len([e for e in history if e.event_type == EventType.RECOVERY_ATTEMPTED]) == 2
        assert len([e for e in history if e.event_type == EventType.RECOVERY_SUCCEEDED]) == 1
        assert report.node_states["flaky"].attempts == 3

    def test_gives_up_after_max_attempts(self, registry):
        events = EventService()
        orchestrator = Orchestrator(handlers=registry, event_service=events)
        report = _run(orchestrator, [
            Node(node_id="flaky", handler="flaky_echo", params={"fail_times": 4}),
        ], run_id="four")

        state = report.node_states["flaky"]
        assert state.status == NodeStatus.FAILED
        assert state.attempts == 3
        assert report.failed_nodes == ["flaky"]
        history = events.bus.get_history(run_id="four")
        assert not [e for e in history if e.event_type == EventType.RECOVERY_SUCCEEDED]

    def test_cycle_event(self, registry):
        events = EventService()
        orchestrator = Orchestrator(handlers=registry, event_service=events)
        asyncio.run(orchestrator.run([Node(node_id="a", dependencies=["a"])]))
        assert events.bus.get_history(event_type=EventType.CYCLE_DETECTED)
