# ============================================================================
# HANDLER REGISTRY
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Handler registration and lookup
# PURPOSE: Register and discover node actions
# CREATED: 31 JAN 2026
# ============================================================================
"""
Handler Registry

Usage:
    from handlers import HandlerRegistry, HandlerContext, HandlerResult

    registry = HandlerRegistry()

    @registry.handler("my_handler")
    async def my_handler(ctx: HandlerContext) -> HandlerResult:
        return HandlerResult.success_result({"key": "value"})

    result = await registry.execute("my_handler", ctx)
"""

from handlers.registry import (
    HandlerRegistry,
    HandlerFunc,
    HandlerContext,
    HandlerResult,
    HandlerError,
    HandlerNotFoundError,
    DuplicateHandlerError,
)
from handlers.examples import register_example_handlers

__all__ = [
    "HandlerRegistry",
    "HandlerFunc",
    "HandlerContext",
    "HandlerResult",
    "HandlerError",
    "HandlerNotFoundError",
    "DuplicateHandlerError",
    "register_example_handlers",
]
