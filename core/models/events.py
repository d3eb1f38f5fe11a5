# ============================================================================
# ENGINE EVENT MODEL
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Typed engine lifecycle events
# PURPOSE: Milestones published on the event bus for observers
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: EngineEvent, EventType, EventStatus
# DEPENDENCIES: pydantic, enum
# ============================================================================
"""
Engine Event Model

EngineEvent records milestones of graph construction, planning and runs.
Events are published fire-and-forget; observers never slow a run down.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events the engine publishes."""

    # Graph construction
    GRAPH_BUILT = "graph_built"
    CYCLE_DETECTED = "cycle_detected"
    INTEGRITY_VIOLATION = "integrity_violation"
    PLAN_CREATED = "plan_created"

    # Run lifecycle
    ORCHESTRATION_STARTED = "orchestration_started"
    ORCHESTRATION_COMPLETED = "orchestration_completed"
    NODE_COMPLETED = "node_completed"
    NODE_FAILED = "node_failed"

    # Recovery
    RECOVERY_ATTEMPTED = "recovery_attempted"
    RECOVERY_SUCCEEDED = "recovery_succeeded"

    # Nesting and context
    FRACTAL_EXECUTION_COMPLETED = "fractal_execution_completed"
    CONTEXT_HIERARCHY_PROCESSED = "context_hierarchy_processed"


class EventStatus(str, Enum):
    """Status/severity of an event."""
    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"
    INFO = "info"


class EngineEvent(BaseModel):
    """A single published engine event."""
    event_id: str = Field(default_factory=lambda: uuid4().hex)
    event_type: EventType
    event_status: EventStatus = EventStatus.INFO
    run_id: Optional[str] = None
    model_id: Optional[str] = None
    node_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = Field(default=None, max_length=2000)
    duration_ms: Optional[float] = Field(default=None, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["EngineEvent", "EventType", "EventStatus"]
