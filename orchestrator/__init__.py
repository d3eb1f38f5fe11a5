# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Run execution
# PURPOSE: Drive runs level by level and expand container nodes
# CREATED: 29 JAN 2026
# ============================================================================
"""
Orchestrator Module

Usage:
    from orchestrator import Orchestrator

    orchestrator = Orchestrator(handlers=registry)
    report = (await orchestrator.run(nodes, RunConfig())).unwrap()
"""

from .loop import Orchestrator, CancellationToken
from .fractal import FractalExecutor

__all__ = ["Orchestrator", "CancellationToken", "FractalExecutor"]
