# ============================================================================
# TEMPLATE RESOLUTION TESTS
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Tests - Parameter templates and context paths
# PURPOSE: Verify Jinja2 resolution of node params and ContextMapper paths
# CREATED: 06 FEB 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Template Resolution Tests

Tests:
1. {{ inputs.x }} resolves from run inputs
2. {{ nodes.X.output.Y }} resolves from visible node outputs
3. Single expressions keep their native type
4. Missing values raise TemplateResolutionError
5. ContextMapper reads and writes dotted paths

Run with:
    pytest tests/test_templates.py -v
"""

import pytest

from core.errors import ValidationError
from orchestrator.engine.templates import (
    ContextMapper,
    NodeContext,
    TemplateContext,
    TemplateResolutionError,
    TemplateResolver,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def resolver():
    return TemplateResolver()


@pytest.fixture
def context():
    return TemplateContext(
        inputs={"customer": "c-42", "count": 3, "tags": ["a", "b"]},
        nodes={
            "fetch": NodeContext(output={"rows": [1, 2, 3], "source": "db"}, status="completed"),
        },
    )


# ============================================================================
# RESOLUTION
# ============================================================================

class TestTemplateResolver:
    def test_input_reference(self, resolver, context):
        params = resolver.resolve({"customer": "{{ inputs.customer }}"}, context)
        assert params == {"customer": "c-42"}

    def test_single_expression_keeps_native_type(self, resolver, context):
        params = resolver.resolve(
            {"count": "{{ inputs.count }}", "rows": "{{ nodes.fetch.output.rows }}"},
            context,
        )
        assert params["count"] == 3
        assert params["rows"] == [1, 2, 3]

    def test_mixed_string_renders_text(self, resolver, context):
        params = resolver.resolve({"label": "Rows from {{ nodes.fetch.output.source }}"}, context)
        assert params["label"] == "Rows from db"

    def test_node_status(self, resolver, context):
        params = resolver.resolve({"s": "{{ nodes.fetch.status }}"}, context)
        assert params["s"] == "completed"

    def test_nested_structures(self, resolver, context):
        params = resolver.resolve(
            {"outer": {"inner": ["{{ inputs.customer }}", 5]}, "plain": True},
            context,
        )
        assert params == {"outer": {"inner": ["c-42", 5]}, "plain": True}

    def test_missing_input_raises(self, resolver, context):
        with pytest.raises(TemplateResolutionError):
            resolver.resolve({"x": "{{ inputs.nope }}"}, context)

    def test_invisible_node_raises(self, resolver, context):
        with pytest.raises(TemplateResolutionError) as exc_info:
            resolver.resolve({"x": "{{ nodes.hidden.output.value }}"}, context)
        assert "Failed to resolve" in exc_info.value.message

    def test_missing_value_in_mixed_string_raises(self, resolver, context):
        with pytest.raises(TemplateResolutionError):
            resolver.resolve({"x": "total {{ inputs.nope }}"}, context)

    def test_syntax_error_raises(self, resolver, context):
        with pytest.raises(TemplateResolutionError):
            resolver.resolve({"x": "{{ inputs. }}"}, context)

    def test_bad_operand_types_raise(self, resolver, context):
        with pytest.raises(TemplateResolutionError) as exc_info:
            resolver.resolve({"x": "{{ inputs.customer + 1 }}"}, context)
        assert "TypeError" in exc_info.value.message

    def test_division_by_zero_in_mixed_string_raises(self, resolver, context):
        with pytest.raises(TemplateResolutionError) as exc_info:
            resolver.resolve({"x": "per item {{ inputs.count / 0 }}"}, context)
        assert "ZeroDivisionError" in exc_info.value.message

    def test_resolution_error_is_validation_error(self):
        assert issubclass(TemplateResolutionError, ValidationError)

    def test_has_templates(self, resolver):
        assert resolver.has_templates({"a": ["x", {"b": "{{ inputs.y }}"}]})
        assert not resolver.has_templates({"a": "plain", "b": 1})


# ============================================================================
# CONTEXT PATHS
# ============================================================================

class TestContextMapper:
    def test_read_nested(self):
        data = {"inputs": {"items": [{"id": 7}, {"id": 8}]}}
        assert ContextMapper.read_path(data, "inputs.items.1.id") == 8
        assert ContextMapper.read_path(data, "inputs.items.-1.id") == 8

    def test_read_missing_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            ContextMapper.read_path({"a": {}}, "a.b.c")
        assert exc_info.value.message == "Context path 'a.b.c' not found (missing 'b')"

    def test_read_missing_with_default(self):
        assert ContextMapper.read_path({}, "a.b", default=None) is None

    def test_write_creates_intermediate_dicts(self):
        target = {"keep": 1}
        ContextMapper.write_path(target, "a.b.c", 5)
        assert target == {"keep": 1, "a": {"b": {"c": 5}}}

    def test_write_replaces_non_dict(self):
        target = {"a": 3}
        ContextMapper.write_path(target, "a.b", 4)
        assert target == {"a": {"b": 4}}
