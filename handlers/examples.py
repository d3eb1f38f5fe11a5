# ============================================================================
# EXAMPLE HANDLERS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Examples - Sample handler implementations
# PURPOSE: Handlers for demos, the CLI and tests
# CREATED: 31 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Example Handlers

Sample implementations showing how to write node actions. Call
register_example_handlers(registry) to install them on a registry.
"""

import asyncio
import logging
import random

from core.contracts import FailureClass
from handlers.registry import HandlerContext, HandlerRegistry, HandlerResult

logger = logging.getLogger(__name__)


# ============================================================================
# BASIC HANDLERS
# ============================================================================

async def echo_handler(ctx: HandlerContext) -> HandlerResult:
    """Returns the (resolved) params as output."""
    logger.info(f"Echo handler called with params: {ctx.params}")
    return HandlerResult.success_result(output=dict(ctx.params))


async def sleep_handler(ctx: HandlerContext) -> HandlerResult:
    """
    Sleep handler for testing delays and timeouts.

    Params:
        duration_seconds: How long to sleep (default 1)
    """
    duration = float(ctx.params.get("duration_seconds", 1))
    logger.info(f"Sleeping for {duration} seconds")
    await asyncio.sleep(duration)
    return HandlerResult.success_result(output={"slept_for": duration})


async def fail_handler(ctx: HandlerContext) -> HandlerResult:
    """
    Handler that always fails.

    Params:
        error_message: Message to report
        failure_class: Classification (default transient_failure)
    """
    error_message = ctx.params.get("error_message", "Intentional failure for testing")
    failure_class = FailureClass(ctx.params.get("failure_class", FailureClass.TRANSIENT_FAILURE.value))
    return HandlerResult.failure_result(error_message, failure_class=failure_class)


async def flaky_echo_handler(ctx: HandlerContext) -> HandlerResult:
    """
    Echo handler that fails on early attempts.

    Params:
        fail_times: Fail deterministically on the first N attempts
        failure_rate: Otherwise fail randomly at this rate (default 0.0)
        failure_class: Classification of the failures
    """
    fail_times = int(ctx.params.get("fail_times", 0))
    failure_rate = float(ctx.params.get("failure_rate", 0.0))
    failure_class = FailureClass(ctx.params.get("failure_class", FailureClass.TRANSIENT_FAILURE.value))

    if ctx.attempt <= fail_times or (failure_rate and random.random() < failure_rate):
        logger.warning(f"Flaky echo: failing attempt {ctx.attempt} of node {ctx.node_id}")
        return HandlerResult.failure_result(
            f"Flaky failure on attempt {ctx.attempt}",
            failure_class=failure_class,
        )

    return HandlerResult.success_result(output={**ctx.params, "attempt": ctx.attempt})


def sum_handler(ctx: HandlerContext) -> HandlerResult:
    """
    Sums params["values"]. Synchronous on purpose: runs in the executor.
    """
    values = ctx.params.get("values", [])
    if not isinstance(values, list):
        return HandlerResult.failure_result(
            f"values must be a list, got {type(values).__name__}",
            failure_class=FailureClass.CONFIGURATION_ERROR,
        )
    return HandlerResult.success_result(output={"total": sum(values), "count": len(values)})


# ============================================================================
# REGISTRATION
# ============================================================================

def register_example_handlers(registry: HandlerRegistry) -> HandlerRegistry:
    """Install the example handlers on a registry and return it."""
    registry.register("echo", echo_handler, description="Echoes params back as output")
    registry.register("sleep", sleep_handler, description="Sleeps for duration_seconds")
    registry.register("fail", fail_handler, description="Always fails (for testing error handling)")
    registry.register(
        "flaky_echo",
        flaky_echo_handler,
        description="Echo that fails on its first attempts (for testing retries)",
    )
    registry.register("sum", sum_handler, description="Sums a list of numbers")
    return registry


__all__ = [
    "echo_handler",
    "sleep_handler",
    "fail_handler",
    "flaky_echo_handler",
    "sum_handler",
    "register_example_handlers",
]
