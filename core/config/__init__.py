# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 31 JAN 2026
# ============================================================================
"""
Configuration Module

Provides centralized defaults for the dependency engine.
"""

from core.config.defaults import (
    PlannerDefaults,
    ExecutionDefaults,
    RetryDefaults,
    FractalDefaults,
    ContextDefaults,
    EngineDefaults,
    get_defaults,
)

__all__ = [
    "PlannerDefaults",
    "ExecutionDefaults",
    "RetryDefaults",
    "FractalDefaults",
    "ContextDefaults",
    "EngineDefaults",
    "get_defaults",
]
