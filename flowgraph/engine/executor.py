"""Workflow Executor

Drives a single run of a workflow graph: resolves the graph into executable
nodes, walks it from its entry nodes, coerces each node's declared inputs,
and follows only the edges whose condition accepts the producing node's
output.

Routing policy:
- Outgoing edges are considered in declaration order.
- A node receives the output carried by the first edge that reaches it
  (first satisfied edge wins) and runs at most once per run.
- A node with no traversed outgoing edge is terminal; the run's result is
  the output of the first terminal node reached.
"""

from __future__ import annotations

import logging
import re
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Deque, Dict, List, Optional

from ..errors import (
    CoercionError,
    NodeExecutionError,
    UnsupportedTypeError,
    WorkflowCancelledError,
    WorkflowError,
)
from ..schema import Graph, NodeInputMapping
from .coerce import coerce
from .context import ExecutionContext
from .graph_builder import Workflow, build_workflow
from .predicates import evaluate

if TYPE_CHECKING:
    from ..nodes.registry import Node, ProviderRegistry

logger = logging.getLogger(__name__)

# "{{input}}", "{{input.a.b}}", "{{node-1}}", "{{node-1.field}}"
_REFERENCE = re.compile(r"^\{\{\s*([^{}\s.]+)((?:\.[^{}\s.]+)*)\s*\}\}$")
INPUT_REFERENCE = "input"


class RunStatus(str, Enum):
    """Lifecycle of a single run."""
    PENDING = "pending"
    VALIDATING = "validating"
    TRAVERSING = "traversing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ExecutionResult:
    """Outcome of a run.

    Attributes:
        status: COMPLETED, FAILED or CANCELLED
        output: Output of the first terminal node reached (None unless COMPLETED)
        error: First error encountered (None when COMPLETED)
        visited: Ids of the nodes that completed, in invocation order (kept on failure)
        terminals: Terminal node ids in the order they were reached
        duration_ms: Wall time of the run
    """

    run_id: str
    workflow_id: str
    status: RunStatus
    output: Any = None
    error: Optional[WorkflowError] = None
    visited: List[str] = field(default_factory=list)
    terminals: List[str] = field(default_factory=list)
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == RunStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "output": self.output,
            "error": self.error.to_dict() if self.error else None,
            "visited": list(self.visited),
            "terminals": list(self.terminals),
            "duration_ms": self.duration_ms,
        }


class _Run:
    """Execution-local state, built fresh for each run and never shared."""

    def __init__(self, ctx: ExecutionContext):
        self.ctx = ctx
        self.workflow: Optional[Workflow] = None
        self.status = RunStatus.PENDING
        self.outputs: Dict[str, Any] = {}
        self.visited: List[str] = []
        self.terminals: List[str] = []


class WorkflowExecutor:
    """Executes schema graphs against a provider registry.

    Usage:
        executor = WorkflowExecutor(default_registry())
        output = await executor.execute(graph, 5)
        result = await executor.run(graph, 5)   # never raises WorkflowError
    """

    def __init__(self, registry: "ProviderRegistry"):
        self._registry = registry

    @property
    def registry(self) -> "ProviderRegistry":
        return self._registry

    async def execute(
        self,
        graph: Optional[Graph],
        initial_input: Any = None,
        ctx: Optional[ExecutionContext] = None,
    ) -> Any:
        """Validate, resolve and execute a graph.

        Args:
            graph: Schema graph
            initial_input: Frontier value handed to every entry node
            ctx: Execution context (cancellation/timeout); a fresh one if omitted

        Returns:
            Output of the first terminal node reached

        Raises:
            WorkflowError: The first error encountered (structural, provider,
                coercion, node failure or cancellation)
        """
        return await self._execute(graph, initial_input, _Run(ctx or ExecutionContext()))

    async def run(
        self,
        graph: Optional[Graph],
        initial_input: Any = None,
        ctx: Optional[ExecutionContext] = None,
    ) -> ExecutionResult:
        """Like execute(), but reports the outcome as an ExecutionResult.

        On failure or cancellation the result still lists the nodes that
        completed before the run stopped.
        """
        state = _Run(ctx or ExecutionContext())
        start_time = time.perf_counter()
        output, error = None, None
        try:
            output = await self._execute(graph, initial_input, state)
        except WorkflowError as e:
            error = e

        return ExecutionResult(
            run_id=state.ctx.run_id,
            workflow_id=graph.id if graph is not None else "",
            status=state.status,
            output=output,
            error=error,
            visited=list(state.visited),
            terminals=list(state.terminals),
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def _execute(self, graph: Optional[Graph], initial_input: Any, state: _Run) -> Any:
        ctx = state.ctx
        state.status = RunStatus.VALIDATING
        logger.info(f"Run {ctx.run_id}: validating graph '{graph.id if graph else None}'")
        try:
            state.workflow = build_workflow(graph, self._registry)
        except WorkflowError as e:
            state.status = RunStatus.FAILED
            logger.error(f"Run {ctx.run_id}: graph rejected: {e}")
            raise

        state.status = RunStatus.TRAVERSING
        try:
            result = await self._traverse(state, initial_input)
        except WorkflowError as e:
            state.status = RunStatus.CANCELLED if isinstance(e, WorkflowCancelledError) else RunStatus.FAILED
            logger.error(f"Run {ctx.run_id}: workflow '{state.workflow.id}' {state.status.value}: {e}")
            raise

        state.status = RunStatus.COMPLETED
        logger.info(
            f"Run {ctx.run_id}: workflow '{state.workflow.id}' completed; "
            f"visited {state.visited}, terminal '{state.terminals[0]}'"
        )
        return result

    async def _traverse(self, state: _Run, initial_input: Any) -> Any:
        workflow, ctx = state.workflow, state.ctx
        ctx.workflow_id = workflow.id

        logger.info(
            f"Run {ctx.run_id}: executing workflow '{workflow.id}' "
            f"with {len(workflow.nodes)} nodes from {workflow.entry_points}"
        )

        # Frontier input per node; first arrival wins
        frontier: Dict[str, Any] = {}
        queue: Deque[str] = deque()
        for entry_id in workflow.entry_points:
            frontier[entry_id] = initial_input
            queue.append(entry_id)

        while queue:
            node_id = queue.popleft()
            output = await self._invoke(state, node_id, frontier[node_id])
            state.outputs[node_id] = output
            state.visited.append(node_id)

            traversed = False
            for edge in workflow.outgoing(node_id):
                if edge.conditional is not None and not evaluate(
                    edge.conditional.name, output, edge.conditional.value, edge.id
                ):
                    logger.info(
                        f"Run {ctx.run_id}: edge {edge.id} ({node_id} -> {edge.to}) not taken "
                        f"({edge.conditional.name} {edge.conditional.value!r} rejected {output!r})"
                    )
                    continue

                traversed = True
                if edge.to in frontier:
                    logger.debug(
                        f"Run {ctx.run_id}: {edge.to} already reached; ignoring input via {edge.id}"
                    )
                    continue
                frontier[edge.to] = output
                queue.append(edge.to)

            if not traversed:
                state.terminals.append(node_id)

        return state.outputs[state.terminals[0]]

    async def _invoke(self, state: _Run, node_id: str, frontier_value: Any) -> Any:
        state.ctx.check(node_id)

        node = state.workflow.nodes[node_id]
        schema_node = state.workflow.graph.get_node(node_id)
        mappings = schema_node.inputs if schema_node else []

        try:
            inputs = self._prepare_inputs(node, mappings, frontier_value, state.outputs)
        except (CoercionError, UnsupportedTypeError) as e:
            raise NodeExecutionError(node_id, e) from e

        logger.debug(f"Run {state.ctx.run_id}: invoking {node_id}")
        try:
            return await node.execute(state.ctx, inputs)
        except WorkflowCancelledError:
            raise
        except Exception as e:
            raise NodeExecutionError(node_id, e) from e

    def _prepare_inputs(
        self,
        node: "Node",
        mappings: List[NodeInputMapping],
        frontier_value: Any,
        outputs: Dict[str, Any],
    ) -> Any:
        """Build the invocation input for a node.

        Without mappings the node receives the frontier value unchanged.
        Otherwise each mapping's origin is resolved, coerced against the type
        the node declares for its source parameter, and written under the
        mapping's target name.
        """
        if not mappings:
            return frontier_value

        schema: Dict[str, str] = getattr(node, "input_schema", {}) or {}
        inputs: Dict[str, Any] = {}
        for mapping in mappings:
            value = resolve_origin(mapping.origin, frontier_value, outputs)
            descriptor = schema.get(mapping.source)
            inputs[mapping.target] = value if descriptor is None else coerce(descriptor, value)
        return inputs


def resolve_origin(origin: Any, frontier_value: Any, outputs: Dict[str, Any]) -> Any:
    """Resolve a mapping origin to a value.

    "{{input}}" and "{{input.path}}" read the node's frontier value;
    "{{node_id}}" and "{{node_id.path}}" read an output produced earlier in
    this run. Anything else is a literal.

    Raises:
        CoercionError: If a reference cannot be resolved
    """
    if not isinstance(origin, str):
        return origin
    match = _REFERENCE.match(origin)
    if not match:
        return origin

    root, path = match.group(1), match.group(2)
    if root == INPUT_REFERENCE:
        value = frontier_value
    elif root in outputs:
        value = outputs[root]
    else:
        raise CoercionError("reference", origin, reason=f"'{root}' has not produced an output")

    for key in filter(None, path.split(".")):
        if isinstance(value, dict) and key in value:
            value = value[key]
        elif isinstance(value, (list, tuple)) and key.lstrip("-").isdigit() and -len(value) <= int(key) < len(value):
            value = value[int(key)]
        else:
            raise CoercionError("reference", origin, reason=f"no field '{key}'")
    return value
