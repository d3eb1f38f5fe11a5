# ============================================================================
# EVENT SERVICE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Event emission
# PURPOSE: Emit engine lifecycle events onto the event bus
# CREATED: 02 FEB 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Event Service

Provides methods to emit events at key lifecycle points.
Events are fire-and-forget - failures are logged but don't propagate.

This enables:
- Observers reacting to runs without coupling to the orchestrator
- Debugging ("what was the last milestone?")
- Test assertions on recovery and nesting behaviour
"""

import logging
from typing import Any, Dict, List, Optional

from core.models.events import EngineEvent, EventStatus, EventType
from messaging.event_bus import EventBus

logger = logging.getLogger(__name__)


class EventService:
    """Typed emitters over one EventBus."""

    def __init__(self, bus: Optional[EventBus] = None):
        self.bus = bus or EventBus()

    # =========================================================================
    # CORE EMIT METHOD
    # =========================================================================

    async def emit(
        self,
        event_type: EventType,
        run_id: Optional[str] = None,
        node_id: Optional[str] = None,
        model_id: Optional[str] = None,
        status: EventStatus = EventStatus.INFO,
        data: Optional[Dict[str, Any]] = None,
        error_message: Optional[str] = None,
        duration_ms: Optional[float] = None,
    ) -> Optional[EngineEvent]:
        """
        Emit an event. Fire-and-forget - logs errors but doesn't raise.

        Returns:
            The published EngineEvent or None if emission failed
        """
        try:
            event = EngineEvent(
                event_type=event_type,
                event_status=status,
                run_id=run_id,
                node_id=node_id,
                model_id=model_id,
                data=data or {},
                error_message=error_message[:2000] if error_message else None,
                duration_ms=duration_ms,
            )
            await self.bus.publish(event)

            logger.debug(
                f"Event emitted: {event_type.value}"
                + (f" for run={run_id}" if run_id else "")
                + (f", node={node_id}" if node_id else "")
            )
            return event

        except Exception as e:
            # Fire-and-forget - log but don't raise
            logger.warning(f"Failed to emit event {event_type.value}: {e}")
            return None

    # =========================================================================
    # GRAPH EVENTS
    # =========================================================================

    async def emit_graph_built(self, node_count: int, edge_count: int, deferred: int = 0) -> None:
        await self.emit(
            EventType.GRAPH_BUILT,
            status=EventStatus.SUCCESS,
            data={"node_count": node_count, "edge_count": edge_count, "deferred_references": deferred},
        )

    async def emit_cycle_detected(self, cycles: List[List[str]], run_id: Optional[str] = None) -> None:
        await self.emit(
            EventType.CYCLE_DETECTED,
            run_id=run_id,
            status=EventStatus.FAILURE,
            data={"cycle_count": len(cycles), "cycles": cycles},
        )

    async def emit_integrity_violation(self, broken_references: List[str]) -> None:
        await self.emit(
            EventType.INTEGRITY_VIOLATION,
            status=EventStatus.FAILURE,
            data={"broken_references": broken_references},
        )

    async def emit_plan_created(self, depth: int, node_count: int, critical_path: List[str]) -> None:
        await self.emit(
            EventType.PLAN_CREATED,
            status=EventStatus.SUCCESS,
            data={"depth": depth, "node_count": node_count, "critical_path": critical_path},
        )

    # =========================================================================
    # RUN EVENTS
    # =========================================================================

    async def emit_orchestration_started(
        self,
        run_id: str,
        model_id: Optional[str],
        node_count: int,
        depth: int = 0,
    ) -> None:
        await self.emit(
            EventType.ORCHESTRATION_STARTED,
            run_id=run_id,
            model_id=model_id,
            data={"node_count": node_count, "depth": depth},
        )

    async def emit_orchestration_completed(
        self,
        run_id: str,
        model_id: Optional[str],
        status: str,
        completed: int,
        failed: int,
        duration_ms: float,
    ) -> None:
        await self.emit(
            EventType.ORCHESTRATION_COMPLETED,
            run_id=run_id,
            model_id=model_id,
            status=EventStatus.SUCCESS if status == "completed" else EventStatus.FAILURE,
            data={"status": status, "completed_nodes": completed, "failed_nodes": failed},
            duration_ms=duration_ms,
        )

    async def emit_node_completed(
        self,
        run_id: str,
        node_id: str,
        attempts: int,
        duration_ms: Optional[float] = None,
    ) -> None:
        await self.emit(
            EventType.NODE_COMPLETED,
            run_id=run_id,
            node_id=node_id,
            status=EventStatus.SUCCESS,
            data={"attempts": attempts},
            duration_ms=duration_ms,
        )

    async def emit_node_failed(
        self,
        run_id: str,
        node_id: str,
        error_message: str,
        failure_class: Optional[str],
        attempts: int,
    ) -> None:
        await self.emit(
            EventType.NODE_FAILED,
            run_id=run_id,
            node_id=node_id,
            status=EventStatus.FAILURE,
            data={"failure_class": failure_class, "attempts": attempts},
            error_message=error_message,
        )

    # =========================================================================
    # RECOVERY EVENTS
    # =========================================================================

    async def emit_recovery_attempted(
        self,
        run_id: Optional[str],
        node_id: str,
        attempt: int,
        action: str,
        delay_seconds: float,
        error_message: Optional[str] = None,
    ) -> None:
        await self.emit(
            EventType.RECOVERY_ATTEMPTED,
            run_id=run_id,
            node_id=node_id,
            status=EventStatus.WARNING,
            data={"attempt": attempt, "action": action, "delay_seconds": delay_seconds},
            error_message=error_message,
        )

    async def emit_recovery_succeeded(self, run_id: Optional[str], node_id: str, attempts: int) -> None:
        await self.emit(
            EventType.RECOVERY_SUCCEEDED,
            run_id=run_id,
            node_id=node_id,
            status=EventStatus.SUCCESS,
            data={"attempts": attempts},
        )

    # =========================================================================
    # NESTING & CONTEXT EVENTS
    # =========================================================================

    async def emit_fractal_completed(
        self,
        run_id: Optional[str],
        container_node_id: str,
        nested_model_id: str,
        depth: int,
        status: str,
    ) -> None:
        await self.emit(
            EventType.FRACTAL_EXECUTION_COMPLETED,
            run_id=run_id,
            node_id=container_node_id,
            model_id=nested_model_id,
            status=EventStatus.SUCCESS if status == "completed" else EventStatus.FAILURE,
            data={"depth": depth, "status": status},
        )

    async def emit_context_hierarchy_processed(self, node_count: int, max_level: int) -> None:
        await self.emit(
            EventType.CONTEXT_HIERARCHY_PROCESSED,
            status=EventStatus.SUCCESS,
            data={"node_count": node_count, "max_level": max_level},
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["EventService"]
