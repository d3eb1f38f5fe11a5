# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Foundation - Core enums shared by every engine component
# PURPOSE: Status, access and recovery vocabularies for the engine
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: NodeKind, NodeStatus, RunStatus, AccessRight, AccessLevel,
#          ContextRelation, BackoffKind, FailureClass, RecoveryAction,
#          EngineOperation
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the dependency engine.

These vocabularies cross every boundary of the engine:
- Graph construction and planning (NodeKind)
- Execution (NodeStatus, RunStatus)
- Context isolation (AccessRight, AccessLevel, ContextRelation)
- Recovery (BackoffKind, FailureClass, RecoveryAction)
- Facade commands (EngineOperation)
"""

from enum import Enum


# ============================================================================
# NODE ENUMS
# ============================================================================

class NodeKind(str, Enum):
    """
    Role a node plays in a workflow.

    INPUT nodes seed the run and must not declare dependencies.
    OUTPUT nodes collect results and must not depend on other outputs.
    CONTAINER nodes run a nested model through the fractal executor.
    """
    INPUT = "input"
    STAGE = "stage"
    OUTPUT = "output"
    CONTAINER = "container"


class NodeStatus(str, Enum):
    """
    Node lifecycle states within a run.

    State transitions:
        PENDING -> RUNNING -> COMPLETED
                           -> FAILED
        PENDING -> SKIPPED (a fatal dependency did not complete)
        FAILED  -> PENDING (retry)
    """
    PENDING = "pending"          # Waiting for its level
    RUNNING = "running"          # Action executing
    COMPLETED = "completed"      # Finished successfully
    FAILED = "failed"            # Finished with error, retries exhausted
    SKIPPED = "skipped"          # Never attempted

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in (NodeStatus.COMPLETED, NodeStatus.FAILED, NodeStatus.SKIPPED)

    def is_successful(self) -> bool:
        """Check if this represents successful completion."""
        return self == NodeStatus.COMPLETED


class RunStatus(str, Enum):
    """
    Run lifecycle states.

    State transitions:
        PENDING -> RUNNING -> COMPLETED
                           -> FAILED
                           -> CANCELLED
    """
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"      # Every node completed (or failed non-fatally)
    FAILED = "failed"            # At least one fatal failure
    CANCELLED = "cancelled"      # Cancelled by request before finishing

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)


# ============================================================================
# CONTEXT ENUMS
# ============================================================================

class AccessRight(str, Enum):
    """Operations a node may perform against another node's context."""
    READ = "read"
    WRITE = "write"
    EXECUTE = "execute"


class AccessLevel(str, Enum):
    """
    Flow setting for one relation in a ContextFlowPolicy.

    READ_ONLY and RESTRICTED both permit reads and deny writes.
    RESTRICTED is only meaningful for child access.
    """
    NONE = "none"
    READ_ONLY = "read-only"
    RESTRICTED = "restricted"
    FULL = "full"

    def permits(self, operation: "AccessRight") -> bool:
        """Check whether this level allows an operation."""
        if self == AccessLevel.FULL:
            return True
        if self == AccessLevel.NONE:
            return False
        return operation == AccessRight.READ


class ContextRelation(str, Enum):
    """
    Relation of a target context to the requesting node.

    ANCESTOR: target is an ancestor of the requester (child access applies).
    DESCENDANT: target is a descendant of the requester (parent access applies).
    """
    SELF = "self"
    SIBLING = "sibling"
    ANCESTOR = "ancestor"
    DESCENDANT = "descendant"
    UNRELATED = "unrelated"


# ============================================================================
# RECOVERY ENUMS
# ============================================================================

class BackoffKind(str, Enum):
    """Delay growth between retry attempts."""
    IMMEDIATE = "immediate"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class FailureClass(str, Enum):
    """Classification attached to an execution failure."""
    TRANSIENT_FAILURE = "transient_failure"
    RESOURCE_UNAVAILABLE = "resource_unavailable"
    CONFIGURATION_ERROR = "configuration_error"
    TIMEOUT = "timeout"


class RecoveryAction(str, Enum):
    """What the retry coordinator does with a classified failure."""
    RETRY = "retry"
    WAIT_AND_RETRY = "wait_and_retry"
    FAIL_FAST = "fail_fast"


# ============================================================================
# FACADE ENUMS
# ============================================================================

class EngineOperation(str, Enum):
    """Closed set of operations accepted by the engine facade."""
    BUILD_GRAPH = "build_graph"
    DETECT_CYCLES = "detect_cycles"
    PLAN_EXECUTION = "plan_execution"
    FIND_CRITICAL_PATH = "find_critical_path"
    VALIDATE_INTEGRITY = "validate_integrity"
    VALIDATE_WORKFLOW = "validate_workflow"
    CONFIGURE_RECOVERY = "configure_recovery"
    CONFIGURE_CONTEXT_HIERARCHY = "configure_context_hierarchy"
    CONFIGURE_FRACTAL_EXECUTION = "configure_fractal_execution"
    EXECUTE_WORKFLOW = "execute_workflow"


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "NodeKind",
    "NodeStatus",
    "RunStatus",
    "AccessRight",
    "AccessLevel",
    "ContextRelation",
    "BackoffKind",
    "FailureClass",
    "RecoveryAction",
    "EngineOperation",
]
