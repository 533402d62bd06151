"""Command line entry point.

Usage:
    flowgraph run -c workflow.yaml --input 5
    flowgraph validate -c workflow.yaml
    flowgraph mermaid -c workflow.yaml
    flowgraph providers
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, List, Optional

from . import config
from .engine import ExecutionContext, WorkflowExecutor, build_workflow
from .errors import WorkflowError
from .loader import load_graph_file
from .logging_config import get_engine_logger
from .nodes import default_registry


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="flowgraph", description="Validate and run workflow graphs")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Execute a workflow file")
    run.add_argument("-c", "--config", required=True, help="Path to the workflow file (YAML or .json)")
    run.add_argument(
        "--input", default=None,
        help="Initial input as JSON (plain text is passed as a string)",
    )
    run.add_argument(
        "--timeout", type=float, default=config.RUN_TIMEOUT,
        help=f"Run timeout in seconds, 0 for none (default: {config.RUN_TIMEOUT})",
    )

    validate = sub.add_parser("validate", help="Validate a workflow file without running it")
    validate.add_argument("-c", "--config", required=True, help="Path to the workflow file (YAML or .json)")

    mermaid = sub.add_parser("mermaid", help="Print a workflow file as a Mermaid flowchart")
    mermaid.add_argument("-c", "--config", required=True, help="Path to the workflow file (YAML or .json)")

    sub.add_parser("providers", help="List registered providers and their functions")

    return parser.parse_args(argv)


def _parse_input(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _print_json(data: Any, stream=None) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2, default=str), file=stream or sys.stdout)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = get_engine_logger()
    registry = default_registry()

    try:
        if args.command == "providers":
            _print_json({
                provider.name: [fn.to_dict() for fn in provider.functions()]
                for provider in registry
            })
            return 0

        graph = load_graph_file(args.config)

        if args.command == "mermaid":
            sys.stdout.write(graph.to_mermaid())
            return 0

        if args.command == "validate":
            workflow = build_workflow(graph, registry)
            _print_json({"valid": True, "id": workflow.id, "entry_points": workflow.entry_points})
            return 0

        ctx = ExecutionContext(timeout=args.timeout or None)
        logger.info(f"Running workflow '{graph.id}' from {args.config} (run {ctx.run_id})")
        output = asyncio.run(WorkflowExecutor(registry).execute(graph, _parse_input(args.input), ctx))
        _print_json({"run_id": ctx.run_id, "output": output})
        return 0
    except WorkflowError as e:
        _print_json({"error": e.to_dict()}, sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
