# ============================================================================
# TEMPLATE RESOLUTION ENGINE
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Core - Template resolution with Jinja2
# PURPOSE: Resolve {{ }} expressions in node params, map context paths
# CREATED: 31 JAN 2026
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Template Resolution Engine

Resolves template expressions in node parameters.

Supported patterns:
- {{ inputs.param_name }} - Run input parameters
- {{ nodes.node_id.output.field }} - Output from visible completed nodes
- {{ nodes.node_id.status }} - Status of a visible node

A string that is exactly one expression resolves to the native value
(list, dict, number); mixed strings render as text.

Examples:
    params:
      rows: "{{ nodes.fetch.output.rows }}"
      label: "Total for {{ inputs.customer }}"

ContextMapper reads and writes dotted paths ("inputs.customer.id") in plain
nested dicts; the fractal executor uses it to move values between a parent
run and a nested one.
"""

import logging
import re
from typing import Any, Dict, Optional

from jinja2 import BaseLoader, Environment, StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.runtime import Undefined

from core.errors import ValidationError

logger = logging.getLogger(__name__)

_SINGLE_EXPRESSION = re.compile(r"^\s*\{\{(?P<expr>(?:(?!\{\{|\}\}).)*)\}\}\s*$", re.DOTALL)


class TemplateResolutionError(ValidationError):
    """Raised when a template cannot be resolved."""
    pass


class TemplateResolver:
    """
    Jinja2-based template resolver for node parameters.

    Holds no per-run state; one instance can serve concurrent nodes.
    """

    def __init__(self):
        self._env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            # Keep undefined as undefined for error detection
            undefined=StrictUndefined,
        )
        self._template_pattern = re.compile(r"\{\{.*?\}\}")

    def resolve(self, params: Dict[str, Any], context: "TemplateContext") -> Dict[str, Any]:
        """
        Resolve all template expressions in a params dict.

        Returns:
            New dict with all templates resolved

        Raises:
            TemplateResolutionError: If a template cannot be resolved
        """
        return self._resolve_value(params, context.to_dict())

    def _resolve_value(self, value: Any, context: Dict[str, Any]) -> Any:
        if isinstance(value, str):
            return self._resolve_string(value, context)
        elif isinstance(value, dict):
            return {k: self._resolve_value(v, context) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._resolve_value(item, context) for item in value]
        return value

    def _resolve_string(self, value: str, context: Dict[str, Any]) -> Any:
        if "{{" not in value:
            return value

        single = _SINGLE_EXPRESSION.match(value)
        try:
            if single:
                expression = self._env.compile_expression(single.group("expr"), undefined_to_none=False)
                result = expression(**context)
                if isinstance(result, Undefined):
                    # Force StrictUndefined to raise with its own message
                    str(result)
                return result
            return self._env.from_string(value).render(context)
        except (TemplateSyntaxError, UndefinedError) as e:
            raise TemplateResolutionError(f"Failed to resolve '{value}': {e}")
        except Exception as e:
            # Expression evaluation errors (bad operand types, division by zero)
            raise TemplateResolutionError(
                f"Failed to resolve '{value}': {type(e).__name__}: {e}"
            )

    def has_templates(self, params: Dict[str, Any]) -> bool:
        """Check if params contain any template expressions."""
        return self._check_for_templates(params)

    def _check_for_templates(self, value: Any) -> bool:
        if isinstance(value, str):
            return bool(self._template_pattern.search(value))
        elif isinstance(value, dict):
            return any(self._check_for_templates(v) for v in value.values())
        elif isinstance(value, list):
            return any(self._check_for_templates(item) for item in value)
        return False


class TemplateContext:
    """
    Context for template resolution.

    Provides access to:
    - inputs: Run input parameters
    - nodes: Outputs and status of the nodes the current node may read
    """

    def __init__(
        self,
        inputs: Optional[Dict[str, Any]] = None,
        nodes: Optional[Dict[str, "NodeContext"]] = None,
    ):
        self.inputs = inputs or {}
        self.nodes = nodes or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for Jinja2 rendering and path lookups."""
        return {
            "inputs": self.inputs,
            "nodes": {node_id: ctx.to_dict() for node_id, ctx in self.nodes.items()},
        }


class NodeContext:
    """Context for a single node's output and status."""

    def __init__(self, output: Any = None, status: str = "pending"):
        self.output = output if output is not None else {}
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        return {"output": self.output, "status": self.status}


# ============================================================================
# CONTEXT PATHS
# ============================================================================

_MISSING = object()


class ContextMapper:
    """
    Dotted-path access into nested dicts and lists.

        read_path({"inputs": {"items": [{"id": 7}]}}, "inputs.items.0.id")  # 7
    """

    @staticmethod
    def read_path(data: Any, path: str, default: Any = _MISSING) -> Any:
        """
        Read a value. Raises ValidationError when the path does not exist
        and no default was given.
        """
        value = data
        for part in path.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            elif isinstance(value, (list, tuple)) and part.lstrip("-").isdigit() and -len(value) <= int(part) < len(value):
                value = value[int(part)]
            else:
                if default is not _MISSING:
                    return default
                raise ValidationError(f"Context path '{path}' not found (missing '{part}')")
        return value

    @staticmethod
    def write_path(target: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
        """Set a value, creating intermediate dicts. Returns target."""
        parts = path.split(".")
        cursor = target
        for part in parts[:-1]:
            nxt = cursor.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cursor[part] = nxt
            cursor = nxt
        cursor[parts[-1]] = value
        return target


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "TemplateResolver",
    "TemplateContext",
    "NodeContext",
    "TemplateResolutionError",
    "ContextMapper",
]
