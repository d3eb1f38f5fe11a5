# ============================================================================
# ENGINE COMMANDS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Facade commands and response envelope
# PURPOSE: Closed set of operations the DependencyEngine accepts
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: EngineCommand, EngineResponse, parse_command, command classes
# DEPENDENCIES: pydantic
# ============================================================================
"""
Engine Commands

Every operation of the DependencyEngine is a command model tagged by its
`operation` field. EngineCommand is the discriminated union of all of them,
so a raw dict can be parsed into exactly one variant:

    command = parse_command({"operation": "detect_cycles", "nodes": [...]})

Every command returns one EngineResponse envelope.

Configuration payloads (retry policy, flow policy) are taken as plain dicts
and validated by the engine, so bad values come back as a failed response
with a ConfigurationError instead of failing command parsing.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from core.contracts import EngineOperation, FailureClass, RecoveryAction
from core.models.context import ContextAccessRule
from core.models.fractal import FractalBinding, NestedModel
from core.models.node import Node
from core.models.run import RunConfig


class _Command(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ============================================================================
# GRAPH COMMANDS
# ============================================================================

class BuildGraphCommand(_Command):
    operation: Literal["build_graph"] = "build_graph"
    nodes: List[Node]
    deferred: List[str] = Field(default_factory=list, description="Ids resolved outside this graph")


class DetectCyclesCommand(_Command):
    operation: Literal["detect_cycles"] = "detect_cycles"
    nodes: List[Node]


class PlanExecutionCommand(_Command):
    operation: Literal["plan_execution"] = "plan_execution"
    nodes: List[Node]
    parallelism_cap: Optional[int] = Field(default=None, ge=1)
    max_depth: Optional[int] = Field(default=None, ge=1)
    warn_depth: Optional[int] = Field(default=None, ge=1)
    durations: Dict[str, float] = Field(default_factory=dict)


class FindCriticalPathCommand(_Command):
    operation: Literal["find_critical_path"] = "find_critical_path"
    nodes: List[Node]
    durations: Dict[str, float] = Field(default_factory=dict)


# ============================================================================
# VALIDATION COMMANDS
# ============================================================================

class ValidateIntegrityCommand(_Command):
    operation: Literal["validate_integrity"] = "validate_integrity"
    nodes: List[Node]
    repair: bool = False


class ValidateWorkflowCommand(_Command):
    operation: Literal["validate_workflow"] = "validate_workflow"
    nodes: List[Node]
    max_depth: Optional[int] = Field(default=None, ge=1)
    warn_depth: Optional[int] = Field(default=None, ge=1)


# ============================================================================
# CONFIGURATION COMMANDS
# ============================================================================

class ConfigureRecoveryCommand(_Command):
    operation: Literal["configure_recovery"] = "configure_recovery"
    retry_policy: Optional[Dict[str, Any]] = Field(
        default=None,
        description="RetryPolicy fields; omitted keeps the current policy"
    )
    strategies: Dict[FailureClass, RecoveryAction] = Field(default_factory=dict)
    default_action: Optional[RecoveryAction] = None


class ConfigureContextHierarchyCommand(_Command):
    operation: Literal["configure_context_hierarchy"] = "configure_context_hierarchy"
    rules: List[ContextAccessRule]
    flow_policy: Optional[Dict[str, Any]] = Field(
        default=None,
        description="ContextFlowPolicy fields; omitted uses the default policy"
    )
    max_hierarchy_depth: Optional[int] = Field(default=None, ge=0)


class ConfigureFractalExecutionCommand(_Command):
    operation: Literal["configure_fractal_execution"] = "configure_fractal_execution"
    root_model_id: str = Field(default="root", min_length=1)
    models: List[NestedModel] = Field(default_factory=list, description="Models to register")
    bindings: List[FractalBinding] = Field(default_factory=list)
    max_nesting_depth: Optional[int] = Field(default=None, ge=0)


# ============================================================================
# EXECUTION COMMANDS
# ============================================================================

class ExecuteWorkflowCommand(_Command):
    operation: Literal["execute_workflow"] = "execute_workflow"
    nodes: List[Node]
    config: RunConfig = Field(default_factory=RunConfig)


EngineCommand = Annotated[
    Union[
        BuildGraphCommand,
        DetectCyclesCommand,
        PlanExecutionCommand,
        FindCriticalPathCommand,
        ValidateIntegrityCommand,
        ValidateWorkflowCommand,
        ConfigureRecoveryCommand,
        ConfigureContextHierarchyCommand,
        ConfigureFractalExecutionCommand,
        ExecuteWorkflowCommand,
    ],
    Field(discriminator="operation"),
]

_command_adapter: TypeAdapter = TypeAdapter(EngineCommand)


def parse_command(data: Dict[str, Any]) -> BaseModel:
    """
    Parse a raw dict into its command variant.

    Raises:
        pydantic.ValidationError for unknown operations or bad fields
    """
    return _command_adapter.validate_python(data)


# ============================================================================
# RESPONSE ENVELOPE
# ============================================================================

class Diagnostics(BaseModel):
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    error_type: Optional[str] = None


class ResponseMetadata(BaseModel):
    node_count: int = 0
    elapsed_ms: float = 0.0
    performance_target_ms: float = 100.0
    target_met: bool = True
    memory_rss_mb: Optional[float] = None


class EngineResponse(BaseModel):
    """
    Single result shape for every engine operation.

    artifact holds the operation's product (graph summary, cycle report,
    plan, completion report...) and may be present on failure when the
    product explains the failure (e.g. an invalid ValidationReport).
    """
    success: bool
    operation: Optional[EngineOperation] = None
    artifact: Optional[Any] = None
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "BuildGraphCommand",
    "DetectCyclesCommand",
    "PlanExecutionCommand",
    "FindCriticalPathCommand",
    "ValidateIntegrityCommand",
    "ValidateWorkflowCommand",
    "ConfigureRecoveryCommand",
    "ConfigureContextHierarchyCommand",
    "ConfigureFractalExecutionCommand",
    "ExecuteWorkflowCommand",
    "EngineCommand",
    "parse_command",
    "Diagnostics",
    "ResponseMetadata",
    "EngineResponse",
]
