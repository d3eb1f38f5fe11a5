# ============================================================================
# RETRY COORDINATOR
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Failure classification to retry decisions
# PURPOSE: Decide whether and when a failed node runs again
# CREATED: 19 OCT 2026
# ============================================================================
"""
Retry Coordinator

For each failed attempt:

    action = strategies.action_for(failure_class)
    fail_fast             -> stop now
    attempt >= max        -> stop (attempts exhausted)
    retry                 -> wait policy.calculate_delay(attempt)
    wait_and_retry        -> same, but never less than initial_delay_seconds

Every retry emits RECOVERY_ATTEMPTED; a success after at least one retry
emits RECOVERY_SUCCEEDED. Emission is fire-and-forget.
"""

import logging
from typing import Optional

from core.contracts import FailureClass, RecoveryAction
from core.models.recovery import RecoveryDecision, RecoveryStrategyMap, RetryPolicy
from services.event_service import EventService

logger = logging.getLogger(__name__)


class RetryCoordinator:
    """Applies a RetryPolicy and a RecoveryStrategyMap to classified failures."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        strategies: Optional[RecoveryStrategyMap] = None,
        event_service: Optional[EventService] = None,
    ):
        self.policy = policy or RetryPolicy()
        self.strategies = strategies or RecoveryStrategyMap()
        self.event_service = event_service

    def decide(
        self,
        failure_class: FailureClass,
        attempt: int,
        policy: Optional[RetryPolicy] = None,
    ) -> RecoveryDecision:
        """
        Decide what follows failed attempt number `attempt` (1-based).

        Args:
            failure_class: Classification of the failure
            attempt: Attempts made so far, including the one that failed
            policy: Per-node override of the coordinator's policy
        """
        policy = policy or self.policy
        action = self.strategies.action_for(failure_class)
        label = failure_class.value if isinstance(failure_class, FailureClass) else str(failure_class)

        if not policy.enabled:
            return RecoveryDecision(
                should_retry=False, action=action, attempt=attempt,
                reason="retries disabled",
            )
        if action == RecoveryAction.FAIL_FAST:
            return RecoveryDecision(
                should_retry=False, action=action, attempt=attempt,
                reason=f"{label} is not retried",
            )
        if attempt >= policy.max_attempts:
            return RecoveryDecision(
                should_retry=False, action=action, attempt=attempt,
                reason=f"max attempts ({policy.max_attempts}) reached",
            )

        delay = policy.calculate_delay(attempt)
        if action == RecoveryAction.WAIT_AND_RETRY:
            delay = min(max(delay, policy.initial_delay_seconds), policy.max_delay_seconds)

        return RecoveryDecision(
            should_retry=True,
            action=action,
            attempt=attempt,
            delay_seconds=delay,
            reason=f"{label}: {action.value} in {delay:.3f}s",
        )

    async def record_attempt(
        self,
        run_id: Optional[str],
        node_id: str,
        decision: RecoveryDecision,
        error_message: Optional[str] = None,
    ) -> None:
        logger.info(
            f"Retrying node {node_id} after attempt {decision.attempt} "
            f"({decision.action.value}, delay {decision.delay_seconds:.3f}s)"
        )
        if self.event_service:
            await self.event_service.emit_recovery_attempted(
                run_id=run_id,
                node_id=node_id,
                attempt=decision.attempt,
                action=decision.action.value,
                delay_seconds=decision.delay_seconds,
                error_message=error_message,
            )

    async def record_success(self, run_id: Optional[str], node_id: str, attempts: int) -> None:
        logger.info(f"Node {node_id} recovered after {attempts} attempts")
        if self.event_service:
            await self.event_service.emit_recovery_succeeded(run_id, node_id, attempts)


__all__ = ["RetryCoordinator"]
