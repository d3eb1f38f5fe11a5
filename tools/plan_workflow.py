#!/usr/bin/env python3
# ============================================================================
# CLI WORKFLOW PLANNING TOOL
# ============================================================================
# EPOCH: 5 - DAG ORCHESTRATION
# STATUS: Tool - Validate, plan and run workflow files locally
# PURPOSE: Exercise the engine facade without writing Python
# CREATED: 19 OCT 2026
# ============================================================================
"""
Run engine operations against a workflow YAML file.

The file has the same shape as a nested model file:

    model_id: pricing
    nodes:
      - node_id: load
        kind: input
      - node_id: price
        dependencies: [load]
        handler: echo
        params: {customer: "{{ inputs.customer }}"}
    bindings: []          # optional container bindings
    context_rules: []     # optional context hierarchy

Usage:
    # Execution plan (levels, critical path, parallel groups)
    python tools/plan_workflow.py plan workflows/pricing.yaml

    # Structural and business-rule validation
    python tools/plan_workflow.py validate workflows/pricing.yaml

    # Cycle report
    python tools/plan_workflow.py cycles workflows/pricing.yaml

    # Execute with the example handlers
    python tools/plan_workflow.py run workflows/pricing.yaml --inputs '{"customer": "c-1"}'

The EngineResponse is printed as JSON on stdout; logs go to stderr.
Exit status is 0 when the response is successful, 1 when it is not, and 2
when the workflow file or inputs cannot be read.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import yaml

from __version__ import __version__
from core.errors import EngineError
from core.logging import configure_logging
from core.models.commands import (
    DetectCyclesCommand,
    EngineResponse,
    ExecuteWorkflowCommand,
    PlanExecutionCommand,
    ValidateIntegrityCommand,
    ValidateWorkflowCommand,
)
from core.models.context import ContextAccessRule
from core.models.fractal import FractalBinding
from core.models.run import RunConfig
from handlers import HandlerRegistry, register_example_handlers
from services.engine_service import DependencyEngine
from services.model_service import ModelService, load_yaml_document, parse_nodes

COMMANDS = ("plan", "validate", "integrity", "cycles", "run")


def build_command(action: str, document: Dict[str, Any], args: argparse.Namespace):
    """Turn a parsed workflow document into the facade command for `action`."""
    nodes = parse_nodes(document.get("nodes"))

    if action == "plan":
        return PlanExecutionCommand(
            nodes=nodes,
            parallelism_cap=args.parallelism,
            max_depth=args.max_depth,
        )
    if action == "validate":
        return ValidateWorkflowCommand(nodes=nodes, max_depth=args.max_depth)
    if action == "integrity":
        return ValidateIntegrityCommand(nodes=nodes, repair=args.repair)
    if action == "cycles":
        return DetectCyclesCommand(nodes=nodes)

    bindings: List[FractalBinding] = [FractalBinding(**b) for b in document.get("bindings") or []]
    rules: List[ContextAccessRule] = [
        ContextAccessRule(**r) for r in document.get("context_rules") or []
    ]
    config = RunConfig(
        model_id=document.get("model_id"),
        inputs=args.inputs,
        parallelism_cap=args.parallelism,
        max_depth=args.max_depth,
        continue_on_failure=args.continue_on_failure or None,
        bindings=bindings,
        context_rules=rules,
    )
    return ExecuteWorkflowCommand(nodes=nodes, config=config)


async def run_action(action: str, document: Dict[str, Any], args: argparse.Namespace) -> EngineResponse:
    registry = register_example_handlers(HandlerRegistry())
    engine = DependencyEngine(
        handlers=registry,
        model_service=ModelService(args.models_dir),
    )
    return await engine.execute(build_command(action, document, args))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Plan, validate or run a workflow file with the dependency engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s plan workflows/pricing.yaml --parallelism 4
  %(prog)s integrity workflows/pricing.yaml --repair
  %(prog)s run workflows/pricing.yaml --inputs '{"customer": "c-1"}'
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("action", choices=COMMANDS, help="Engine operation to perform")
    parser.add_argument("workflow", help="Workflow YAML file")
    parser.add_argument(
        "--inputs", "-i",
        default="{}",
        help="JSON run inputs (run only)",
    )
    parser.add_argument(
        "--models-dir", "-m",
        help="Directory of nested model YAML files (run only)",
    )
    parser.add_argument("--parallelism", "-p", type=int, help="Parallelism cap per level")
    parser.add_argument("--max-depth", type=int, help="Reject plans deeper than this")
    parser.add_argument("--repair", action="store_true", help="Remove dangling dependencies (integrity)")
    parser.add_argument(
        "--continue-on-failure",
        action="store_true",
        help="Keep dispatching after a fatal node failure (run only)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--json-logs", action="store_true", help="Structured JSON logs on stderr")

    args = parser.parse_args(argv)
    configure_logging(level=args.log_level.upper(), json_output=args.json_logs)

    try:
        args.inputs = json.loads(args.inputs)
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid JSON inputs: {e}", file=sys.stderr)
        return 2

    try:
        document = load_yaml_document(Path(args.workflow))
        response = asyncio.run(run_action(args.action, document, args))
    except (OSError, yaml.YAMLError) as e:
        print(f"ERROR: Cannot read {args.workflow}: {e}", file=sys.stderr)
        return 2
    except (ValueError, EngineError) as e:
        # Malformed node or binding definitions
        print(f"ERROR: Invalid workflow {args.workflow}: {e}", file=sys.stderr)
        return 2

    print(response.model_dump_json(indent=2))
    return 0 if response.success else 1


if __name__ == "__main__":
    sys.exit(main())
