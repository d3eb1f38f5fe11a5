# ============================================================================
# MESSAGING MODULE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - In-process event delivery
# PURPOSE: Publish engine events to observers
# CREATED: 29 JAN 2026
# ============================================================================
"""
Messaging Module

Usage:
    from messaging import EventBus

    bus = EventBus()
    bus.subscribe([EventType.NODE_FAILED], on_failure)
"""

from .event_bus import EventBus, EventHandler, Subscription

__all__ = [
    "EventBus",
    "EventHandler",
    "Subscription",
]
