# ============================================================================
# CONTEXT PROPAGATOR
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Hierarchical context isolation
# PURPOSE: Decide whether one node may read/write/execute another's context
# CREATED: 19 OCT 2026
# ============================================================================
"""
Context Propagator

Holds a hierarchy of ContextAccessRules and answers access questions:

1. Self access is always allowed.
2. The relation of target to requester (sibling, ancestor, descendant)
   selects one setting of the ContextFlowPolicy; unrelated nodes are denied.
3. The setting must permit the operation (read-only/restricted: reads only).
4. The requester's own rule must grant the operation.

Unregistered requesters or targets are denied. Registration enforces a
depth limit, known parents, consistent levels and an acyclic parent chain.

One propagator belongs to one run (or one engine configuration); nothing is
shared between runs.
"""

import logging
from typing import Dict, Iterable, List, Optional

from core.config.defaults import ContextDefaults
from core.contracts import AccessRight, ContextRelation
from core.errors import DepthExceededError, ValidationError
from core.models.context import (
    ContextAccessDecision,
    ContextAccessRule,
    ContextFlowPolicy,
    ContextHierarchySummary,
)
from core.result import Result

logger = logging.getLogger(__name__)


class ContextPropagator:
    """Access decisions over a registered context hierarchy."""

    def __init__(
        self,
        policy: Optional[ContextFlowPolicy] = None,
        max_hierarchy_depth: Optional[int] = None,
    ):
        self.policy = policy or ContextFlowPolicy()
        self.max_hierarchy_depth = (
            max_hierarchy_depth
            if max_hierarchy_depth is not None
            else ContextDefaults().max_hierarchy_depth
        )
        self._rules: Dict[str, ContextAccessRule] = {}

    @classmethod
    def from_rules(
        cls,
        rules: Iterable[ContextAccessRule],
        policy: Optional[ContextFlowPolicy] = None,
        max_hierarchy_depth: Optional[int] = None,
    ) -> Result["ContextPropagator"]:
        """Create a propagator and register rules parents-first."""
        propagator = cls(policy, max_hierarchy_depth)
        ordered = sorted(rules, key=lambda rule: rule.hierarchy_level)
        for rule in ordered:
            registered = propagator.register(rule)
            if registered.is_failure:
                return Result.fail(registered.error)
        return Result.ok(propagator)

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, rule: ContextAccessRule) -> Result[None]:
        """
        Add (or replace) one node's rule.

        Fails with DepthExceededError past max_hierarchy_depth and with
        ValidationError for unknown parents, inconsistent levels or a parent
        chain that loops back to the node.
        """
        if rule.hierarchy_level > self.max_hierarchy_depth:
            return Result.fail(DepthExceededError(
                f"Hierarchy depth limit exceeded: Maximum depth is "
                f"{self.max_hierarchy_depth} levels",
                depth=rule.hierarchy_level,
                limit=self.max_hierarchy_depth,
            ))

        if rule.parent_node_id is None:
            if rule.hierarchy_level != 0:
                return Result.fail(ValidationError(
                    f"Root context '{rule.node_id}' must be at level 0, "
                    f"got {rule.hierarchy_level}"
                ))
        else:
            if rule.parent_node_id == rule.node_id:
                return Result.fail(ValidationError(
                    f"Circular parent reference: '{rule.node_id}' is its own parent"
                ))
            parent = self._rules.get(rule.parent_node_id)
            if parent is None:
                return Result.fail(ValidationError(
                    f"Parent context '{rule.parent_node_id}' of '{rule.node_id}' is not registered"
                ))
            if rule.hierarchy_level != parent.hierarchy_level + 1:
                return Result.fail(ValidationError(
                    f"Context '{rule.node_id}' is at level {rule.hierarchy_level} "
                    f"but its parent '{parent.node_id}' is at level {parent.hierarchy_level}"
                ))
            if rule.node_id in self._ancestors(rule.parent_node_id):
                return Result.fail(ValidationError(
                    f"Circular parent reference involving '{rule.node_id}'"
                ))

        self._rules[rule.node_id] = rule
        logger.debug(
            f"Registered context {rule.node_id} at level {rule.hierarchy_level}"
            + (f" under {rule.parent_node_id}" if rule.parent_node_id else "")
        )
        return Result.ok(None)

    def get_rule(self, node_id: str) -> Optional[ContextAccessRule]:
        return self._rules.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def summary(self) -> ContextHierarchySummary:
        rules = list(self._rules.values())
        return ContextHierarchySummary(
            registered_nodes=[rule.node_id for rule in rules],
            root_nodes=[rule.node_id for rule in rules if rule.parent_node_id is None],
            max_level=max((rule.hierarchy_level for rule in rules), default=0),
            policy=self.policy,
        )

    # =========================================================================
    # RELATIONS
    # =========================================================================

    def _ancestors(self, node_id: str) -> List[str]:
        """Parent chain, nearest first. Bounded by the registered node count."""
        chain: List[str] = []
        current = self._rules.get(node_id)
        while current is not None and current.parent_node_id is not None:
            if len(chain) > len(self._rules):
                break
            chain.append(current.parent_node_id)
            current = self._rules.get(current.parent_node_id)
        return chain

    def relation(self, requester_id: str, target_id: str) -> ContextRelation:
        if requester_id == target_id:
            return ContextRelation.SELF
        if requester_id not in self._rules or target_id not in self._rules:
            return ContextRelation.UNRELATED
        if target_id in self._ancestors(requester_id):
            return ContextRelation.ANCESTOR
        if requester_id in self._ancestors(target_id):
            return ContextRelation.DESCENDANT

        requester_parent = self._rules[requester_id].parent_node_id
        target_parent = self._rules[target_id].parent_node_id
        if requester_parent is not None and requester_parent == target_parent:
            return ContextRelation.SIBLING
        return ContextRelation.UNRELATED

    # =========================================================================
    # DECISIONS
    # =========================================================================

    def decide(
        self,
        requester_id: str,
        target_id: str,
        operation: AccessRight = AccessRight.READ,
    ) -> ContextAccessDecision:
        relation = self.relation(requester_id, target_id)

        def decision(granted: bool, reason: str) -> ContextAccessDecision:
            return ContextAccessDecision(
                requester_id=requester_id,
                target_id=target_id,
                operation=operation,
                relation=relation,
                granted=granted,
                reason=reason,
            )

        if relation == ContextRelation.SELF:
            return decision(True, "self access")

        requester = self._rules.get(requester_id)
        if requester is None:
            return decision(False, f"requester '{requester_id}' is not registered")
        if target_id not in self._rules:
            return decision(False, f"target '{target_id}' is not registered")
        if relation == ContextRelation.UNRELATED:
            return decision(False, "nodes are unrelated in the hierarchy")

        level = self.policy.level_for(relation)
        if not level.permits(operation):
            return decision(False, f"{relation.value} access is {level.value}")
        if not requester.grants(operation):
            return decision(False, f"requester lacks {operation.value} right")
        return decision(True, f"{relation.value} access is {level.value}")

    def can_access(
        self,
        requester_id: str,
        target_id: str,
        operation: AccessRight = AccessRight.READ,
    ) -> bool:
        return self.decide(requester_id, target_id, operation).granted

    def accessible_contexts(
        self,
        requester_id: str,
        operation: AccessRight = AccessRight.READ,
    ) -> List[str]:
        """Registered node ids (including the requester) it may access."""
        if requester_id not in self._rules:
            return []
        return [
            node_id for node_id in self._rules
            if self.can_access(requester_id, node_id, operation)
        ]


__all__ = ["ContextPropagator"]
