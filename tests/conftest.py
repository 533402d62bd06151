"""Root conftest.

Provides:
- A "math" test provider (double, add_one, fail, cancel) next to the built-ins
- Graph builders for the common linear and branching shapes
- FastAPI app + async HTTP client (httpx ASGITransport, no network)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from flowgraph.nodes import BaseNodeImpl, FunctionProvider, ProviderRegistry, builtin_providers
from flowgraph.schema import Graph

# ---------------------------------------------------------------------------
# Test provider
# ---------------------------------------------------------------------------

math_provider = FunctionProvider("math", description="Test arithmetic")


@math_provider.function("double")
class DoubleNode(BaseNodeImpl):
    """Doubles an int."""

    input_schema = {"value": "int"}

    async def execute(self, ctx, inputs: Any) -> int:
        if self.inputs:
            return inputs["value"] * 2
        return inputs * 2


@math_provider.function("add_one")
class AddOneNode(BaseNodeImpl):
    """Adds one to an int."""

    input_schema = {"value": "int"}

    async def execute(self, ctx, inputs: Any) -> int:
        if self.inputs:
            return inputs["value"] + 1
        return inputs + 1


@math_provider.function("echo_inputs")
class EchoInputsNode(BaseNodeImpl):
    """Outputs the prepared inputs as received."""

    input_schema = {
        "count": "int",
        "ratio": "float64",
        "name": "string",
        "flag": "bool",
        "items": "[]int",
        "extra": "map",
    }

    async def execute(self, ctx, inputs: Any) -> Any:
        return inputs


@math_provider.function("fail")
class FailNode(BaseNodeImpl):
    """Always raises."""

    async def execute(self, ctx, inputs: Any) -> Any:
        raise RuntimeError("boom")


@math_provider.function("cancel")
class CancelNode(BaseNodeImpl):
    """Cancels the run it executes in, then passes its input through."""

    async def execute(self, ctx, inputs: Any) -> Any:
        ctx.cancel()
        return inputs


# ---------------------------------------------------------------------------
# Graph builders
# ---------------------------------------------------------------------------


def make_node(node_id: str, function: str = "double", registry: str = "math",
              inputs: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    node: Dict[str, Any] = {"id": node_id, "package": {"registry": registry, "function": function}}
    if inputs is not None:
        node["config"] = {"inputs": inputs}
    return node


def make_edge(edge_id: str, source: str, target: str,
              condition: Optional[str] = None, value: Any = None) -> Dict[str, Any]:
    edge: Dict[str, Any] = {"id": edge_id, "from": source, "to": target}
    if condition is not None:
        edge["conditional"] = {"name": condition, "value": value}
    return edge


def make_graph(nodes: List[Dict[str, Any]], edges: Optional[List[Dict[str, Any]]] = None,
               graph_id: str = "test-graph") -> Graph:
    return Graph.from_dict({"id": graph_id, "name": graph_id, "nodes": nodes, "edges": edges or []})


@pytest.fixture
def registry() -> ProviderRegistry:
    """Registry with the test provider and the built-in providers."""
    return ProviderRegistry([math_provider, *builtin_providers()])


@pytest.fixture
def double_then_add_one() -> Graph:
    """double -> add_one"""
    return make_graph(
        [make_node("double", "double"), make_node("add-one", "add_one")],
        [make_edge("e1", "double", "add-one")],
        graph_id="double-then-add-one",
    )


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------


@pytest.fixture
def app(registry):
    from flowgraph_server.main import create_app

    return create_app(registry)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client for testing FastAPI routes."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
