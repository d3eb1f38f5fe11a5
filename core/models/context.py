# ============================================================================
# CONTEXT HIERARCHY MODELS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core model - Context access rules and flow policy
# PURPOSE: Declare who may read or write which node's context
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: ContextAccessRule, ContextFlowPolicy, ContextAccessDecision
# DEPENDENCIES: pydantic
# ============================================================================
"""
Context Hierarchy Models

A hierarchy is a tree of ContextAccessRules (one per node, linked by
parent_node_id). The ContextFlowPolicy decides what each relation may do:

    sibling_access: none | read-only | full
    parent_access:  none | read-only | full        (parent reading a descendant)
    child_access:   none | restricted | full       (child reading an ancestor)
"""

from typing import List, Optional, Set

from pydantic import BaseModel, Field, field_validator

from core.contracts import AccessLevel, AccessRight, ContextRelation


class ContextAccessRule(BaseModel):
    """Placement of one node in the hierarchy and the rights it holds."""
    node_id: str = Field(..., min_length=1, max_length=128)
    parent_node_id: Optional[str] = Field(default=None, max_length=128)
    hierarchy_level: int = Field(default=0, ge=0)
    access_rights: Set[AccessRight] = Field(
        default_factory=lambda: {AccessRight.READ}
    )

    def grants(self, operation: AccessRight) -> bool:
        return operation in self.access_rights


class ContextFlowPolicy(BaseModel):
    """How context flows along each relation. Unrelated nodes are always denied."""
    sibling_access: AccessLevel = AccessLevel.READ_ONLY
    parent_access: AccessLevel = AccessLevel.READ_ONLY
    child_access: AccessLevel = AccessLevel.RESTRICTED

    model_config = {"frozen": True}

    @field_validator("sibling_access", "parent_access")
    @classmethod
    def _no_restricted(cls, v: AccessLevel) -> AccessLevel:
        if v == AccessLevel.RESTRICTED:
            raise ValueError("restricted is only valid for child_access")
        return v

    @field_validator("child_access")
    @classmethod
    def _no_read_only(cls, v: AccessLevel) -> AccessLevel:
        if v == AccessLevel.READ_ONLY:
            raise ValueError("child_access accepts none, restricted or full")
        return v

    def level_for(self, relation: ContextRelation) -> AccessLevel:
        if relation == ContextRelation.SELF:
            return AccessLevel.FULL
        if relation == ContextRelation.SIBLING:
            return self.sibling_access
        if relation == ContextRelation.DESCENDANT:
            return self.parent_access
        if relation == ContextRelation.ANCESTOR:
            return self.child_access
        return AccessLevel.NONE


class ContextAccessDecision(BaseModel):
    requester_id: str
    target_id: str
    operation: AccessRight
    relation: ContextRelation
    granted: bool
    reason: str = ""


class ContextHierarchySummary(BaseModel):
    """What configure_context_hierarchy reports back."""
    registered_nodes: List[str] = Field(default_factory=list)
    root_nodes: List[str] = Field(default_factory=list)
    max_level: int = 0
    policy: ContextFlowPolicy = Field(default_factory=ContextFlowPolicy)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ContextAccessRule",
    "ContextFlowPolicy",
    "ContextAccessDecision",
    "ContextHierarchySummary",
]
