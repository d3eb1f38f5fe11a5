# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Service layer
# PURPOSE: Events, nested model registry and the engine facade
# CREATED: 29 JAN 2026
# ============================================================================
"""
Services Module

Usage:
    from services.engine_service import DependencyEngine

    engine = DependencyEngine(handlers=registry)
    response = await engine.execute(command)

DependencyEngine is imported from its module rather than re-exported here:
it depends on the orchestrator, which itself uses the services below.
"""

from .event_service import EventService
from .model_service import ModelService

__all__ = [
    "EventService",
    "ModelService",
]
