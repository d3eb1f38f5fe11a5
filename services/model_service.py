# ============================================================================
# MODEL SERVICE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Nested model registry
# PURPOSE: Load, validate and look up models that container nodes execute
# CREATED: 29 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Model Service

Keeps NestedModel definitions in memory, registered programmatically or
loaded from a directory of YAML files:

    model_id: risk_model
    name: Risk scoring
    nodes:
      - node_id: load
        handler: echo
        params: {customer: "{{ inputs.customer }}"}
      - node_id: score
        dependencies: [load]
        handler: echo

Nodes may also be given as a mapping of node_id -> node fields.
The engine only reads these files; nothing is written back.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from core.errors import IntegrityError, ValidationError
from core.models.fractal import NestedModel
from core.models.node import Node

logger = logging.getLogger(__name__)


def parse_nodes(raw: Any) -> List[Node]:
    """Accept a list of node dicts or a node_id -> fields mapping."""
    if raw is None:
        return []
    if isinstance(raw, dict):
        return [Node(**{**(fields or {}), "node_id": node_id}) for node_id, fields in raw.items()]
    return [Node(**item) for item in raw]


def load_yaml_document(path: Path) -> Dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValidationError(f"{path}: expected a mapping at the top level")
    return data


class ModelService:
    """Registry of nested models. One instance per engine."""

    def __init__(self, models_dir: Optional[str] = None):
        """
        Args:
            models_dir: Directory of model YAML files. Without one, models
                are only available through register().
        """
        self.models_dir = Path(models_dir) if models_dir else None
        self._cache: Dict[str, NestedModel] = {}
        self._loaded = self.models_dir is None

    def load_all(self) -> int:
        """
        Load all model definitions from the models directory.

        Returns:
            Number of models loaded
        """
        self._loaded = True
        if self.models_dir is None:
            return 0
        if not self.models_dir.exists():
            logger.warning(f"Models directory not found: {self.models_dir}")
            return 0

        count = 0
        files = sorted(self.models_dir.glob("*.yaml")) + sorted(self.models_dir.glob("*.yml"))
        for yaml_file in files:
            try:
                model = self._load_yaml(yaml_file)
                self.register(model)
                count += 1
            except (OSError, yaml.YAMLError, ValueError, ValidationError, IntegrityError) as e:
                logger.error(f"Failed to load {yaml_file}: {e}")

        logger.info(f"Loaded {count} models from {self.models_dir}")
        return count

    def get(self, model_id: str) -> Optional[NestedModel]:
        if not self._loaded:
            self.load_all()
        return self._cache.get(model_id)

    def get_or_raise(self, model_id: str) -> NestedModel:
        """
        Raises:
            IntegrityError if the model is not registered
        """
        model = self.get(model_id)
        if model is None:
            raise IntegrityError(f"Nested model not found: {model_id}", broken_references=[model_id])
        return model

    def __contains__(self, model_id: object) -> bool:
        return self.get(model_id) is not None

    def list_all(self) -> List[NestedModel]:
        if not self._loaded:
            self.load_all()
        return list(self._cache.values())

    def register(self, model: NestedModel) -> None:
        """
        Register a model after checking its structure.

        Raises:
            ValidationError / IntegrityError when the node list does not build
            or a binding names a node the model does not have
        """
        # Deferred: the orchestrator package imports this module
        from orchestrator.engine.graph import GraphBuilder

        built = GraphBuilder().build(model.nodes)
        if built.is_failure:
            raise built.error

        graph = built.value
        unknown = [b.container_node_id for b in model.bindings if b.container_node_id not in graph]
        if unknown:
            raise ValidationError(
                f"Model {model.model_id} binds unknown container nodes: {unknown}"
            )

        self._cache[model.model_id] = model
        logger.info(f"Registered model: {model.model_id} ({len(model.nodes)} nodes)")

    def unregister(self, model_id: str) -> bool:
        return self._cache.pop(model_id, None) is not None

    def reload(self) -> int:
        self._cache.clear()
        self._loaded = False
        return self.load_all()

    def _load_yaml(self, path: Path) -> NestedModel:
        data = load_yaml_document(path)
        data["nodes"] = parse_nodes(data.get("nodes"))
        return NestedModel(**data)


__all__ = ["ModelService", "parse_nodes", "load_yaml_document"]
