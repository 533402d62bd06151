"""Workflow Engine: value coercion, graph validation/resolution, predicates and execution."""

from .coerce import TypeDescriptor, coerce, is_supported, parse_descriptor
from .context import ExecutionContext
from .graph_builder import (
    Workflow,
    build_workflow,
    detect_cycles,
    detect_entry_points,
    validate_graph,
    validate_workflow,
)
from .executor import ExecutionResult, RunStatus, WorkflowExecutor, resolve_origin
from .predicates import PREDICATES, evaluate

__all__ = [
    "TypeDescriptor",
    "coerce",
    "is_supported",
    "parse_descriptor",
    "ExecutionContext",
    "Workflow",
    "build_workflow",
    "detect_cycles",
    "detect_entry_points",
    "validate_graph",
    "validate_workflow",
    "ExecutionResult",
    "RunStatus",
    "WorkflowExecutor",
    "resolve_origin",
    "PREDICATES",
    "evaluate",
]
