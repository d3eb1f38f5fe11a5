# ============================================================================
# MODEL SERVICE TESTS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Tests - Nested model registry
# PURPOSE: Verify YAML loading, registration checks and lookups
# CREATED: 19 OCT 2026
# ============================================================================
"""
Model Service Tests

Run with:
    pytest tests/test_model_service.py -v
"""

import pytest

from core.errors import IntegrityError, ValidationError
from core.models.fractal import FractalBinding, NestedModel
from core.models.node import Node
from services.model_service import ModelService, parse_nodes


# ============================================================================
# FIXTURES
# ============================================================================

RISK_MODEL_YAML = """
model_id: risk_model
name: Risk scoring
nodes:
  - node_id: load
    handler: echo
    params:
      customer: "{{ inputs.customer }}"
  - node_id: score
    dependencies: [load]
    handler: echo
"""

MAPPING_MODEL_YAML = """
model_id: mapped
nodes:
  first:
    handler: echo
  second:
    dependencies: [first]
"""


@pytest.fixture
def models_dir(tmp_path):
    (tmp_path / "risk.yaml").write_text(RISK_MODEL_YAML)
    (tmp_path / "mapped.yml").write_text(MAPPING_MODEL_YAML)
    (tmp_path / "broken.yaml").write_text("model_id: broken\nnodes:\n  - node_id: a\n    dependencies: [ghost]\n")
    (tmp_path / "notes.txt").write_text("ignored")
    return tmp_path


# ============================================================================
# LOADING
# ============================================================================

class TestLoading:
    def test_load_all_skips_invalid_files(self, models_dir):
        service = ModelService(str(models_dir))
        assert service.load_all() == 2
        assert {m.model_id for m in service.list_all()} == {"risk_model", "mapped"}

    def test_lazy_load_on_get(self, models_dir):
        service = ModelService(str(models_dir))
        model = service.get("risk_model")
        assert model.name == "Risk scoring"
        assert [n.node_id for n in model.nodes] == ["load", "score"]
        assert model.nodes[1].dependencies == ["load"]

    def test_mapping_form(self, models_dir):
        model = ModelService(str(models_dir)).get("mapped")
        assert [n.node_id for n in model.nodes] == ["first", "second"]

    def test_missing_directory(self, tmp_path):
        service = ModelService(str(tmp_path / "nope"))
        assert service.load_all() == 0
        assert service.get("anything") is None

    def test_reload(self, models_dir):
        service = ModelService(str(models_dir))
        service.load_all()
        (models_dir / "extra.yaml").write_text("model_id: extra\nnodes: []\n")
        assert service.reload() == 3
        assert "extra" in service


# ============================================================================
# REGISTRATION
# ============================================================================

class TestRegistration:
    def test_register_and_get(self):
        service = ModelService()
        service.register(NestedModel(model_id="m", nodes=[Node(node_id="a")]))
        assert service.get("m").model_id == "m"
        assert service.get_or_raise("m").nodes[0].node_id == "a"

    def test_get_or_raise_unknown(self):
        with pytest.raises(IntegrityError) as exc_info:
            ModelService().get_or_raise("ghost")
        assert exc_info.value.message == "Nested model not found: ghost"

    def test_register_rejects_broken_graph(self):
        with pytest.raises(IntegrityError):
            ModelService().register(NestedModel(
                model_id="m", nodes=[Node(node_id="a", dependencies=["ghost"])]
            ))

    def test_register_rejects_unknown_container(self):
        model = NestedModel(
            model_id="m",
            nodes=[Node(node_id="a")],
            bindings=[FractalBinding(container_node_id="box", nested_model_id="other")],
        )
        with pytest.raises(ValidationError):
            ModelService().register(model)

    def test_unregister(self):
        service = ModelService()
        service.register(NestedModel(model_id="m"))
        assert service.unregister("m") is True
        assert service.unregister("m") is False
        assert "m" not in service


class TestParseNodes:
    def test_none(self):
        assert parse_nodes(None) == []

    def test_mapping_with_empty_fields(self):
        nodes = parse_nodes({"a": None, "b": {"dependencies": ["a"]}})
        assert [n.node_id for n in nodes] == ["a", "b"]
