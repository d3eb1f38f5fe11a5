# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for planning, execution, retry and nesting
# CREATED: 31 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the engine components.
These can be overridden via environment variables or per-run configuration.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Passed into components explicitly; nothing reads them implicitly
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


@dataclass(frozen=True)
class PlannerDefaults:
    """
    Defaults for execution planning.

    warn_depth: levels beyond which a deep-chain warning is reported.
    complexity_threshold: dependency/dependent count that flags a node.
    performance_target_ms: facade responses report whether they met it.
    """
    warn_depth: int = 15
    complexity_threshold: int = 10
    performance_target_ms: float = 100.0

    @classmethod
    def from_env(cls) -> "PlannerDefaults":
        """Create from environment variables."""
        return cls(
            warn_depth=int(os.getenv("DAG_WARN_DEPTH", 15)),
            complexity_threshold=int(os.getenv("DAG_COMPLEXITY_THRESHOLD", 10)),
            performance_target_ms=float(os.getenv("DAG_PERFORMANCE_TARGET_MS", 100.0)),
        )


@dataclass(frozen=True)
class ExecutionDefaults:
    """Defaults for the level-by-level orchestrator."""
    parallelism_cap: int = 8
    node_timeout_seconds: float = 3600.0  # 1 hour
    stage_timeout_seconds: Optional[float] = None
    continue_on_failure: bool = False
    finished_run_history: int = 100  # finished top-level runs kept for get_status

    @classmethod
    def from_env(cls) -> "ExecutionDefaults":
        """Create from environment variables."""
        return cls(
            parallelism_cap=int(os.getenv("DAG_PARALLELISM_CAP", 8)),
            node_timeout_seconds=float(os.getenv("DAG_NODE_TIMEOUT_SEC", 3600.0)),
            stage_timeout_seconds=_env_optional_float("DAG_STAGE_TIMEOUT_SEC", None),
            continue_on_failure=_env_bool("DAG_CONTINUE_ON_FAILURE", False),
            finished_run_history=int(os.getenv("DAG_FINISHED_RUN_HISTORY", 100)),
        )


@dataclass(frozen=True)
class RetryDefaults:
    """Defaults for RetryPolicy."""
    max_attempts: int = 3
    backoff: str = "exponential"
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    multiplier: float = 2.0

    @classmethod
    def from_env(cls) -> "RetryDefaults":
        """Create from environment variables."""
        return cls(
            max_attempts=int(os.getenv("DAG_RETRY_MAX_ATTEMPTS", 3)),
            backoff=os.getenv("DAG_RETRY_BACKOFF", "exponential"),
            initial_delay_seconds=float(os.getenv("DAG_RETRY_INITIAL_DELAY_SEC", 1.0)),
            max_delay_seconds=float(os.getenv("DAG_RETRY_MAX_DELAY_SEC", 30.0)),
            multiplier=float(os.getenv("DAG_RETRY_MULTIPLIER", 2.0)),
        )


@dataclass(frozen=True)
class FractalDefaults:
    """Defaults for nested model execution."""
    max_nesting_depth: int = 10

    @classmethod
    def from_env(cls) -> "FractalDefaults":
        """Create from environment variables."""
        return cls(max_nesting_depth=int(os.getenv("DAG_MAX_NESTING_DEPTH", 10)))


@dataclass(frozen=True)
class ContextDefaults:
    """Defaults for context hierarchies."""
    max_hierarchy_depth: int = 10

    @classmethod
    def from_env(cls) -> "ContextDefaults":
        """Create from environment variables."""
        return cls(max_hierarchy_depth=int(os.getenv("DAG_MAX_HIERARCHY_DEPTH", 10)))


# ============================================================================
# AGGREGATE DEFAULTS
# ============================================================================

@dataclass(frozen=True)
class EngineDefaults:
    """Container for all default configurations."""
    planner: PlannerDefaults = field(default_factory=PlannerDefaults)
    execution: ExecutionDefaults = field(default_factory=ExecutionDefaults)
    retry: RetryDefaults = field(default_factory=RetryDefaults)
    fractal: FractalDefaults = field(default_factory=FractalDefaults)
    context: ContextDefaults = field(default_factory=ContextDefaults)

    @classmethod
    def from_env(cls) -> "EngineDefaults":
        """Create all defaults from environment variables."""
        return cls(
            planner=PlannerDefaults.from_env(),
            execution=ExecutionDefaults.from_env(),
            retry=RetryDefaults.from_env(),
            fractal=FractalDefaults.from_env(),
            context=ContextDefaults.from_env(),
        )


def get_defaults() -> EngineDefaults:
    """Read defaults from the current environment (not cached)."""
    return EngineDefaults.from_env()


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "PlannerDefaults",
    "ExecutionDefaults",
    "RetryDefaults",
    "FractalDefaults",
    "ContextDefaults",
    "EngineDefaults",
    "get_defaults",
]
