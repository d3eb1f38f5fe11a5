# ============================================================================
# FRACTAL MODELS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Nested model definitions and bindings
# PURPOSE: Describe container nodes that run whole models
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: FractalBinding, NestedModel, FractalResult
# DEPENDENCIES: pydantic
# ============================================================================
"""
Fractal Models

A NestedModel is a complete workflow (its own nodes, possibly its own
container bindings). A FractalBinding attaches one to a container node:

    FractalBinding(
        container_node_id="score",
        nested_model_id="risk_model",
        context_mapping={"inputs.customer": "customer"},        # parent -> nested inputs
        output_extraction={"nodes.total.output.value": "risk"}, # nested -> parent output
    )
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.contracts import RunStatus
from core.models.context import ContextAccessRule, ContextFlowPolicy
from core.models.node import Node
from core.models.report import CompletionReport


class FractalBinding(BaseModel):
    """Attachment of a nested model to a container node."""
    container_node_id: str = Field(..., min_length=1)
    nested_model_id: str = Field(..., min_length=1)
    context_mapping: Dict[str, str] = Field(
        default_factory=dict,
        description="Parent context path -> nested inputs path"
    )
    output_extraction: Dict[str, str] = Field(
        default_factory=dict,
        description="Nested context path -> parent output path"
    )

    @field_validator("context_mapping", "output_extraction")
    @classmethod
    def _non_empty_paths(cls, v: Dict[str, str]) -> Dict[str, str]:
        for source, target in v.items():
            if not source or not target:
                raise ValueError("mapping paths must be non-empty")
        return v


class NestedModel(BaseModel):
    """
    A workflow that can run inside a container node.

    Loaded from YAML by ModelService:

        model_id: risk_model
        nodes:
          - node_id: score
            handler: echo
            params: {customer: "{{ inputs.customer }}"}
    """
    model_id: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = None
    description: Optional[str] = None
    nodes: List[Node] = Field(default_factory=list)
    bindings: List[FractalBinding] = Field(default_factory=list)
    context_rules: List[ContextAccessRule] = Field(default_factory=list)
    flow_policy: Optional[ContextFlowPolicy] = None

    def binding_for(self, node_id: str) -> Optional[FractalBinding]:
        for binding in self.bindings:
            if binding.container_node_id == node_id:
                return binding
        return None

    def referenced_models(self) -> List[str]:
        return [binding.nested_model_id for binding in self.bindings]


class FractalResult(BaseModel):
    """Outcome of one nested execution."""
    container_node_id: str
    nested_model_id: str
    depth: int
    status: RunStatus
    outputs: Dict[str, Any] = Field(default_factory=dict)
    report: Optional[CompletionReport] = None

    @property
    def success(self) -> bool:
        return self.status == RunStatus.COMPLETED


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["FractalBinding", "NestedModel", "FractalResult"]
