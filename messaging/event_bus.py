# ============================================================================
# EVENT BUS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - In-process publish/subscribe channel
# PURPOSE: Deliver engine events to observers without blocking the engine
# CREATED: 19 OCT 2026
# ============================================================================
"""
Event Bus

Async pub/sub channel for EngineEvents.

Features:
- Type-based subscriptions with optional run filter
- Handlers run as background tasks; publish() returns immediately
- Bounded handler concurrency
- Capped event history for debugging and tests

Example:
    bus = EventBus()

    async def on_completed(event: EngineEvent):
        print(f"Run {event.run_id} finished")

    bus.subscribe([EventType.ORCHESTRATION_COMPLETED], on_completed)
    await bus.publish(EngineEvent(event_type=EventType.ORCHESTRATION_COMPLETED, run_id="r1"))
    await bus.drain()
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

from core.models.events import EngineEvent, EventType

logger = logging.getLogger(__name__)

# Type for event handlers
EventHandler = Callable[[EngineEvent], Awaitable[None]]


@dataclass
class Subscription:
    """A subscription to events."""
    id: str
    event_types: Set[EventType]
    handler: EventHandler
    filter_run: Optional[str] = None


class EventBus:
    """Pub/sub channel. One instance per engine; nothing is shared globally."""

    def __init__(self, max_history: int = 1000, max_concurrent_handlers: int = 10):
        self._subscriptions: Dict[str, Subscription] = {}
        self._history: List[EngineEvent] = []
        self._max_history = max_history
        self._max_concurrent_handlers = max_concurrent_handlers
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._pending: Set[asyncio.Task] = set()
        self._subscription_counter = 0

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(
        self,
        event_types: Iterable[EventType],
        handler: EventHandler,
        filter_run: Optional[str] = None,
    ) -> str:
        """
        Subscribe to events.

        Returns:
            Subscription ID (use to unsubscribe)
        """
        self._subscription_counter += 1
        sub_id = f"sub_{self._subscription_counter}"
        self._subscriptions[sub_id] = Subscription(
            id=sub_id,
            event_types=set(event_types),
            handler=handler,
            filter_run=filter_run,
        )
        logger.debug(f"Subscription {sub_id} registered for {sorted(t.value for t in event_types)}")
        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        if subscription_id in self._subscriptions:
            del self._subscriptions[subscription_id]
            logger.debug(f"Subscription {subscription_id} removed")
            return True
        return False

    # =========================================================================
    # PUBLISHING
    # =========================================================================

    async def publish(self, event: EngineEvent) -> None:
        """Record the event and schedule matching handlers in the background."""
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        for subscription in list(self._subscriptions.values()):
            if self._matches(subscription, event):
                task = asyncio.create_task(self._run_handler(subscription, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

    def _matches(self, subscription: Subscription, event: EngineEvent) -> bool:
        if event.event_type not in subscription.event_types:
            return False
        if subscription.filter_run and subscription.filter_run != event.run_id:
            return False
        return True

    async def _run_handler(self, subscription: Subscription, event: EngineEvent) -> None:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrent_handlers)
        async with self._semaphore:
            try:
                await subscription.handler(event)
            except Exception as e:
                logger.error(f"Handler error for {event.event_type.value} ({subscription.id}): {e}")

    async def drain(self) -> None:
        """Wait until every scheduled handler has finished."""
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_history(
        self,
        event_type: Optional[EventType] = None,
        run_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[EngineEvent]:
        """Matching events, most recent first."""
        events = self._history[::-1]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        if run_id:
            events = [e for e in events if e.run_id == run_id]
        return events[:limit]

    def get_stats(self) -> Dict[str, object]:
        type_counts: Dict[str, int] = {}
        for event in self._history:
            type_counts[event.event_type.value] = type_counts.get(event.event_type.value, 0) + 1
        return {
            "total_events": len(self._history),
            "subscriptions": len(self._subscriptions),
            "events_by_type": type_counts,
        }

    async def wait_for(
        self,
        event_type: EventType,
        run_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Optional[EngineEvent]:
        """Wait for the next matching event. Returns None on timeout."""
        result: Optional[EngineEvent] = None
        received = asyncio.Event()

        async def handler(event: EngineEvent) -> None:
            nonlocal result
            result = event
            received.set()

        sub_id = self.subscribe([event_type], handler, filter_run=run_id)
        try:
            if timeout:
                try:
                    await asyncio.wait_for(received.wait(), timeout=timeout)
                except asyncio.TimeoutError:
                    return None
            else:
                await received.wait()
            return result
        finally:
            self.unsubscribe(sub_id)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["EventBus", "EventHandler", "Subscription"]
