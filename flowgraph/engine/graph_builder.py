"""Workflow Validation and Resolution

This module checks a schema Graph for structural integrity and resolves it,
through a ProviderRegistry, into an executable Workflow.

Key Components:
- validate_graph: Structural checks on the schema graph
- build_workflow: Graph + registry -> validated Workflow
- validate_workflow: Checks on the resolved form (each node's own validation)
- detect_entry_points / detect_cycles: Graph shape analysis

Design Principles:
- Validation before execution, short-circuiting on the first failure
- Validation never mutates its input
- Each failure raises the error kind that names it precisely
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from ..errors import (
    CycleDetectedError,
    DanglingEdgeError,
    InvalidGraphError,
    InvalidNodeError,
    NoEntryPointError,
    ProviderNotFoundError,
    UnknownPredicateError,
    WorkflowError,
)
from ..schema import Edge, Graph
from .predicates import is_known

if TYPE_CHECKING:
    from ..nodes.registry import Node, ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Workflow:
    """Resolved, executable form of a validated graph.

    Attributes:
        id: Graph id
        name: Graph display name
        nodes: Node id -> executable node, in declaration order
        edges: Schema edges, unchanged
        entry_points: Ids of nodes with no incoming edge, in declaration order
        graph: Source schema graph
    """

    id: str
    name: str
    nodes: Dict[str, "Node"]
    edges: List[Edge]
    entry_points: List[str]
    graph: Graph = field(repr=False)

    def outgoing(self, node_id: str) -> List[Edge]:
        """Edges leaving node_id, in declaration order."""
        return [edge for edge in self.edges if edge.from_ == node_id]


def validate_graph(graph: Optional[Graph]) -> None:
    """Validate a schema graph.

    Checks, in order, stopping at the first failure:
    1. Graph is present
    2. Graph id is non-empty
    3. At least one node
    4. Each node is well-formed (id, package registry and function); ids unique
    5. Every edge's from/to names an existing node
    6. Every conditional names a known predicate

    Args:
        graph: Schema graph to validate

    Raises:
        InvalidGraphError: Missing graph, empty id, no nodes, duplicate node ids
        InvalidNodeError: A node failed its own validation
        DanglingEdgeError: An edge references an unknown node id
        UnknownPredicateError: A conditional names no known predicate
    """
    _validate_edges(graph, _validate_nodes(graph))


def _validate_nodes(graph: Optional[Graph]) -> Set[str]:
    """Checks 1-4 of validate_graph; returns the node id set."""
    if graph is None:
        raise InvalidGraphError("graph is missing")
    if not graph.id:
        raise InvalidGraphError("graph id cannot be empty")
    if not graph.nodes:
        raise InvalidGraphError(f"graph '{graph.id}' must have at least one node")

    node_ids: Set[str] = set()
    for index, node in enumerate(graph.nodes):
        errors = _node_schema_errors(node)
        if errors:
            raise InvalidNodeError(node.id or f"#{index}", errors=errors)
        if node.id in node_ids:
            raise InvalidGraphError(f"duplicate node ID found: '{node.id}'")
        node_ids.add(node.id)
    return node_ids


def _validate_edges(graph: Graph, node_ids: Set[str]) -> None:
    for edge in graph.edges:
        if edge.from_ not in node_ids:
            raise DanglingEdgeError(edge.id, edge.from_, "source")
        if edge.to not in node_ids:
            raise DanglingEdgeError(edge.id, edge.to, "target")

    for edge in graph.edges:
        if edge.conditional is not None and not is_known(edge.conditional.name):
            raise UnknownPredicateError(edge.conditional.name, edge.id)


def _node_schema_errors(node) -> List[Dict[str, str]]:
    errors = []
    if not node.id:
        errors.append({"field": "id", "error": "node id cannot be empty"})
    if not node.package.registry:
        errors.append({"field": "package.registry", "error": "package registry cannot be empty"})
    if not node.package.function:
        errors.append({"field": "package.function", "error": "package function cannot be empty"})
    return errors


def validate_workflow(workflow: Workflow) -> None:
    """Validate the resolved form of a workflow.

    Runs each resolved node's own validate_config(), then re-checks edge
    endpoints against the resolved node index.

    Raises:
        InvalidGraphError: Workflow has no id or no nodes
        InvalidNodeError: A node reported configuration errors
        DanglingEdgeError: An edge references an unresolved node
    """
    if not workflow.id:
        raise InvalidGraphError("workflow id cannot be empty")
    if not workflow.nodes:
        raise InvalidGraphError(f"workflow '{workflow.id}' must have at least one node")

    for node_id, node in workflow.nodes.items():
        _check_node_config(node_id, node)

    for edge in workflow.edges:
        if edge.from_ not in workflow.nodes:
            raise DanglingEdgeError(edge.id, edge.from_, "source")
        if edge.to not in workflow.nodes:
            raise DanglingEdgeError(edge.id, edge.to, "target")


def _check_node_config(node_id: str, node: "Node") -> None:
    try:
        errors = node.validate_config()
    except Exception as e:
        raise InvalidNodeError(node_id, e) from e
    if errors:
        raise InvalidNodeError(node_id, errors=errors)


def detect_entry_points(graph: Graph) -> List[str]:
    """Nodes with no incoming edge, in declaration order."""
    targets = {edge.to for edge in graph.edges}
    return [node.id for node in graph.nodes if node.id not in targets]


def detect_cycles(graph: Graph) -> List[List[str]]:
    """Detect cycles using DFS.

    Args:
        graph: Schema graph (edges must reference existing nodes)

    Returns:
        List of cycle paths; each path ends with its first node
    """
    adjacency: Dict[str, List[str]] = defaultdict(list)
    for edge in graph.edges:
        adjacency[edge.from_].append(edge.to)

    cycles: List[List[str]] = []
    found: Set[tuple] = set()  # Deduplicate cycles
    visited: Set[str] = set()
    path: List[str] = []
    path_set: Set[str] = set()

    def dfs(node_id: str) -> None:
        if node_id in path_set:
            start = path.index(node_id)
            cycle = path[start:] + [node_id]
            key = tuple(sorted(cycle[:-1]))
            if key not in found:
                found.add(key)
                cycles.append(cycle)
            return

        if node_id in visited:
            return

        visited.add(node_id)
        path.append(node_id)
        path_set.add(node_id)

        for neighbor in adjacency[node_id]:
            dfs(neighbor)

        path.pop()
        path_set.remove(node_id)

    for node in graph.nodes:
        if node.id not in visited:
            dfs(node.id)

    return cycles


def build_workflow(graph: Graph, registry: "ProviderRegistry") -> Workflow:
    """Resolve a schema graph into an executable Workflow.

    Args:
        graph: Schema graph
        registry: Providers used to create the executable nodes

    Returns:
        Validated Workflow

    Raises:
        WorkflowError: Any validation failure (see validate_graph)
        ProviderNotFoundError: A node's package registry has no provider
        InvalidNodeError: A provider could not create a node, or the node is misconfigured
        NoEntryPointError: Every node has an incoming edge
        CycleDetectedError: The graph contains a cycle

    Example:
        graph = Graph.from_yaml(document)
        workflow = build_workflow(graph, default_registry())
    """
    # Nodes are checked, resolved and configured before any edge is looked at
    node_ids = _validate_nodes(graph)

    nodes: Dict[str, "Node"] = {}
    for schema_node in graph.nodes:
        registry_name = schema_node.package.registry
        provider = registry.resolve(registry_name)
        if provider is None:
            raise ProviderNotFoundError(registry_name)
        try:
            node = provider.create_node(schema_node.provider_config())
        except WorkflowError:
            raise
        except Exception as e:
            raise InvalidNodeError(schema_node.id, e) from e
        if node is None:
            raise InvalidNodeError(schema_node.id, ValueError(f"provider '{registry_name}' returned no node"))
        _check_node_config(schema_node.id, node)
        nodes[schema_node.id] = node

    _validate_edges(graph, node_ids)

    entry_points = detect_entry_points(graph)
    workflow = Workflow(
        id=graph.id,
        name=graph.name,
        nodes=nodes,
        edges=list(graph.edges),
        entry_points=entry_points,
        graph=graph,
    )

    if not entry_points:
        raise NoEntryPointError(graph.id)

    cycles = detect_cycles(graph)
    if cycles:
        raise CycleDetectedError(cycles[0])

    logger.info(
        f"Built workflow '{graph.id}' with {len(nodes)} nodes, "
        f"{len(graph.edges)} edges, entry points {entry_points}"
    )
    return workflow
