# ============================================================================
# HANDLER REGISTRY
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Action registration, lookup and execution
# PURPOSE: Map node handler names to the functions that do the work
# CREATED: 31 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Handler Registry

Registry of node actions. The orchestrator looks up the handler named by a
node and executes it through the registry.

Design:
- One HandlerRegistry per engine (no module-level registry)
- Handlers are registered via decorator or register()
- Fail-fast on duplicate registration
- Supports both sync and async handlers; sync ones run in the executor
- A handler that raises becomes a failure result classified
  transient_failure; handlers can classify explicitly via failure_result
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from core.contracts import FailureClass

logger = logging.getLogger(__name__)


# ============================================================================
# HANDLER TYPES
# ============================================================================

@dataclass
class HandlerContext:
    """
    Context passed to handler functions.

    params are already template-resolved against the context the node is
    allowed to see.
    """
    run_id: str
    node_id: str
    handler: str
    params: Dict[str, Any]
    attempt: int = 1
    depth: int = 0
    model_id: Optional[str] = None
    inputs: Dict[str, Any] = field(default_factory=dict)
    timeout_seconds: Optional[float] = None


@dataclass
class HandlerResult:
    """
    Result returned by handler functions.

    Handlers should return this to indicate success/failure.
    """
    success: bool = True
    output: Any = field(default_factory=dict)
    error_message: Optional[str] = None
    failure_class: FailureClass = FailureClass.TRANSIENT_FAILURE

    @classmethod
    def success_result(cls, output: Any = None) -> "HandlerResult":
        """Create a success result."""
        return cls(success=True, output=output if output is not None else {})

    @classmethod
    def failure_result(
        cls,
        error_message: str,
        failure_class: FailureClass = FailureClass.TRANSIENT_FAILURE,
        output: Any = None,
    ) -> "HandlerResult":
        """Create a failure result."""
        return cls(
            success=False,
            error_message=error_message,
            failure_class=failure_class,
            output=output if output is not None else {},
        )


# Handler function type
HandlerFunc = Callable[[HandlerContext], Union[HandlerResult, Awaitable[HandlerResult]]]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class HandlerError(Exception):
    """Base exception for handler errors."""
    pass


class HandlerNotFoundError(HandlerError):
    """Raised when a handler is not found in the registry."""
    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        super().__init__(f"Handler not found: {handler_name}")


class DuplicateHandlerError(HandlerError):
    """Raised when a handler name is already registered."""
    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        super().__init__(f"Handler already registered: {handler_name}")


# ============================================================================
# REGISTRY
# ============================================================================

class HandlerRegistry:
    """
    Named node actions.

    Example:
        registry = HandlerRegistry()

        @registry.handler("fetch_prices", description="Load price table")
        async def fetch_prices(ctx: HandlerContext) -> HandlerResult:
            return HandlerResult.success_result({"rows": 120})
    """

    def __init__(self):
        self._handlers: Dict[str, HandlerFunc] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        name: str,
        func: HandlerFunc,
        *,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> HandlerFunc:
        if name in self._handlers:
            raise DuplicateHandlerError(name)

        self._handlers[name] = func
        self._metadata[name] = {
            "name": name,
            "description": description,
            "tags": tags or [],
            "function": func.__name__,
            "module": func.__module__,
            "is_async": inspect.iscoroutinefunction(func),
            "registered_at": datetime.now(timezone.utc).isoformat(),
        }
        logger.debug(f"Registered handler: {name} ({func.__module__}.{func.__name__})")
        return func

    def handler(
        self,
        name: str,
        *,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> Callable[[HandlerFunc], HandlerFunc]:
        """Decorator form of register()."""
        def decorator(func: HandlerFunc) -> HandlerFunc:
            return self.register(name, func, description=description, tags=tags)
        return decorator

    def get(self, name: str) -> Optional[HandlerFunc]:
        return self._handlers.get(name)

    def get_or_raise(self, name: str) -> HandlerFunc:
        handler = self._handlers.get(name)
        if handler is None:
            raise HandlerNotFoundError(name)
        return handler

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def list_handlers(self) -> List[Dict[str, Any]]:
        return list(self._metadata.values())

    def get_metadata(self, name: str) -> Optional[Dict[str, Any]]:
        return self._metadata.get(name)

    def missing(self, handler_names: List[str]) -> List[str]:
        """Names from the list that are not registered."""
        return [name for name in handler_names if name not in self._handlers]

    # ========================================================================
    # EXECUTION
    # ========================================================================

    async def execute(self, name: str, context: HandlerContext) -> HandlerResult:
        """
        Execute a handler by name.

        Raises:
            HandlerNotFoundError if the handler is not registered
        """
        handler = self.get_or_raise(name)

        try:
            if inspect.iscoroutinefunction(handler):
                result = await handler(context)
            else:
                # Run sync handler in thread pool
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, handler, context)

        except Exception as e:
            logger.exception(f"Handler {name} failed: {e}")
            return HandlerResult.failure_result(str(e) or type(e).__name__)

        if not isinstance(result, HandlerResult):
            # Plain return values count as success output
            return HandlerResult.success_result(result)
        return result


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "HandlerRegistry",
    "HandlerFunc",
    "HandlerContext",
    "HandlerResult",
    "HandlerError",
    "HandlerNotFoundError",
    "DuplicateHandlerError",
]
