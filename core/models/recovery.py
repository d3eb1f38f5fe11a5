# ============================================================================
# RECOVERY MODELS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Retry policy and recovery strategies
# PURPOSE: Describe how classified node failures are retried
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: RetryPolicy, RecoveryStrategyMap, RecoveryDecision, RecoveryLogEntry
# DEPENDENCIES: pydantic
# ============================================================================
"""
Recovery Models

RetryPolicy says how often and how fast to retry; RecoveryStrategyMap says
whether a given failure classification is retried at all.

    policy = RetryPolicy(max_attempts=3, backoff="exponential",
                         initial_delay_seconds=1.0, max_delay_seconds=30.0)
    policy.calculate_delay(1)  # 1.0
    policy.calculate_delay(3)  # 4.0
"""

import random
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, model_validator

from core.config.defaults import RetryDefaults
from core.contracts import BackoffKind, FailureClass, RecoveryAction
from core.errors import ConfigurationError
from core.result import Result


class RetryPolicy(BaseModel):
    """Retry configuration for a workflow or a single node."""
    max_attempts: int = Field(default=3, ge=0, le=100)
    backoff: BackoffKind = Field(default=BackoffKind.EXPONENTIAL)
    initial_delay_seconds: float = Field(default=1.0, ge=0)
    max_delay_seconds: float = Field(default=30.0, ge=0)
    multiplier: float = Field(default=2.0, gt=0)
    jitter_seconds: float = Field(default=0.0, ge=0)
    enabled: bool = True

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_delays(self) -> "RetryPolicy":
        if self.max_delay_seconds < self.initial_delay_seconds:
            raise ValueError("Max delay must be greater than or equal to base delay")
        if self.backoff == BackoffKind.EXPONENTIAL and self.multiplier <= 1:
            raise ValueError("Multiplier must be greater than 1 for exponential strategy")
        return self

    @classmethod
    def create(cls, **kwargs: Any) -> Result["RetryPolicy"]:
        """Build a policy, reporting invalid parameters as ConfigurationError."""
        try:
            return Result.ok(cls(**kwargs))
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ())) or None
            message = _describe_policy_error(first)
            return Result.fail(ConfigurationError(message, field=field, value=first.get("input")))

    @classmethod
    def from_defaults(cls, defaults: Optional[RetryDefaults] = None) -> "RetryPolicy":
        defaults = defaults or RetryDefaults()
        return cls(
            max_attempts=defaults.max_attempts,
            backoff=BackoffKind(defaults.backoff),
            initial_delay_seconds=defaults.initial_delay_seconds,
            max_delay_seconds=defaults.max_delay_seconds,
            multiplier=defaults.multiplier,
        )

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay before the retry that follows failed attempt number `attempt`.

        immediate: 0
        linear: initial * attempt
        exponential: initial * multiplier ** (attempt - 1)
        Jitter is added before capping at max_delay_seconds.
        """
        if attempt < 1 or self.backoff == BackoffKind.IMMEDIATE:
            return 0.0

        if self.backoff == BackoffKind.LINEAR:
            delay = self.initial_delay_seconds * attempt
        else:
            delay = self.initial_delay_seconds * (self.multiplier ** (attempt - 1))

        if self.jitter_seconds:
            delay += random.uniform(0, self.jitter_seconds)

        return min(delay, self.max_delay_seconds)


def _describe_policy_error(error: Dict[str, Any]) -> str:
    """Map a pydantic error to the message callers see."""
    loc = error.get("loc", ())
    field = loc[0] if loc else None
    kind = error.get("type", "")
    if field == "max_attempts":
        if kind == "less_than_equal":
            return "Max attempts cannot exceed 100"
        return "Max attempts must be non-negative"
    if field == "initial_delay_seconds":
        return "Base delay must be non-negative"
    if field == "max_delay_seconds":
        return "Max delay must be non-negative"
    if field == "backoff":
        return "Invalid retry strategy"
    message = error.get("msg", "Invalid retry policy")
    return message.removeprefix("Value error, ")


class RecoveryStrategyMap(BaseModel):
    """Failure classification -> recovery action."""
    strategies: Dict[str, RecoveryAction] = Field(
        default_factory=lambda: {
            FailureClass.TRANSIENT_FAILURE.value: RecoveryAction.RETRY,
            FailureClass.RESOURCE_UNAVAILABLE.value: RecoveryAction.WAIT_AND_RETRY,
            FailureClass.CONFIGURATION_ERROR.value: RecoveryAction.FAIL_FAST,
            FailureClass.TIMEOUT.value: RecoveryAction.RETRY,
        }
    )
    default_action: RecoveryAction = RecoveryAction.RETRY

    def action_for(self, failure_class: str) -> RecoveryAction:
        key = failure_class.value if isinstance(failure_class, FailureClass) else failure_class
        return self.strategies.get(key, self.default_action)


class RecoveryDecision(BaseModel):
    """Outcome of RetryCoordinator.decide for one failed attempt."""
    should_retry: bool
    action: RecoveryAction
    attempt: int = Field(..., ge=1)
    delay_seconds: float = Field(default=0.0, ge=0)
    reason: str = ""


class RecoveryLogEntry(BaseModel):
    """One failed attempt and what was done about it."""
    node_id: str
    attempt: int
    failure_class: str
    action: RecoveryAction
    retried: bool
    delay_seconds: float = 0.0
    error_message: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "RetryPolicy",
    "RecoveryStrategyMap",
    "RecoveryDecision",
    "RecoveryLogEntry",
]
