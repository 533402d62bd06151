"""Tests for the built-in "logic" and "debug" providers."""

import logging

import pytest

from flowgraph.engine import ExecutionContext, WorkflowExecutor
from flowgraph.errors import InvalidNodeError, NodeExecutionError
from flowgraph.nodes import default_registry
from flowgraph.nodes.base import debug, logic
from flowgraph.schema import NodeInputMapping

from tests.conftest import make_edge, make_graph, make_node


@pytest.fixture
def node_log(caplog):
    """caplog attached directly to the built-in nodes logger (the package logger may not propagate)."""
    logger = logging.getLogger("flowgraph.nodes.base")
    logger.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger="flowgraph.nodes.base")
    yield caplog
    logger.removeHandler(caplog.handler)


def _create(provider, function, **origins):
    inputs = [NodeInputMapping(source=name, origin=origin) for name, origin in origins.items()]
    return provider.create_node({"id": f"{function}-1", "function": function, "inputs": inputs})


class TestLogicProvider:
    """Test arithmetic and comparison functions."""

    @pytest.mark.asyncio
    async def test_sum_raw_frontier(self):
        node = _create(logic, "sum")
        assert await node.execute(ExecutionContext(), [1, "2", 3.5]) == 6.5

    @pytest.mark.asyncio
    async def test_sum_mapped(self):
        node = _create(logic, "sum", values=None)
        assert await node.execute(ExecutionContext(), {"values": [1.0, 2.0]}) == 3.0

    @pytest.mark.asyncio
    async def test_add_returns_int_when_integral(self):
        node = _create(logic, "add", amount=1)
        result = await node.execute(ExecutionContext(), {"value": 2.0, "amount": 1.0})
        assert result == 3
        assert isinstance(result, int)

    @pytest.mark.asyncio
    async def test_multiply(self):
        node = _create(logic, "multiply", factor=2)
        assert await node.execute(ExecutionContext(), {"value": 1.25, "factor": 2.0}) == 2.5

    @pytest.mark.asyncio
    async def test_add_missing_value(self):
        node = _create(logic, "add", amount=1)
        with pytest.raises(ValueError, match="missing input 'value'"):
            await node.execute(ExecutionContext(), {"amount": 1.0})

    @pytest.mark.asyncio
    async def test_compare(self):
        node = _create(logic, "compare", operator="gte", operand=3)
        assert await node.execute(ExecutionContext(), {"value": 3.0, "operator": "gte", "operand": 3.0}) is True

    @pytest.mark.asyncio
    async def test_rand_bounds(self):
        node = _create(logic, "rand", min=4, max=4)
        assert await node.execute(ExecutionContext(), {"min": 4, "max": 4}) == 4

    @pytest.mark.asyncio
    async def test_rand_defaults(self):
        node = _create(logic, "rand")
        assert 0 <= await node.execute(ExecutionContext(), None) <= 100

    @pytest.mark.asyncio
    async def test_rand_inverted_bounds(self):
        node = _create(logic, "rand", min=5, max=1)
        with pytest.raises(ValueError, match="greater than max"):
            await node.execute(ExecutionContext(), {"min": 5, "max": 1})

    @pytest.mark.asyncio
    async def test_timer(self):
        node = _create(logic, "timer", seconds=0)
        assert await node.execute(ExecutionContext(), {"seconds": 0.0}) == 0.0

    @pytest.mark.asyncio
    async def test_timer_negative(self):
        node = _create(logic, "timer", seconds=-1)
        with pytest.raises(ValueError):
            await node.execute(ExecutionContext(), {"seconds": -1.0})


class TestDebugProvider:
    """Test logging and no-op functions."""

    @pytest.mark.asyncio
    async def test_log_passes_value_through(self, node_log):
        node = _create(debug, "log")
        assert await node.execute(ExecutionContext(run_id="r1"), {"k": 1}) == {"k": 1}
        assert "[r1] log-1: {'k': 1}" in node_log.text

    @pytest.mark.asyncio
    async def test_log_with_message(self, node_log):
        node = _create(debug, "log", level="warn", message="got", value=None)
        result = await node.execute(ExecutionContext(), {"level": "warn", "message": "got", "value": "7"})
        assert result == "7"
        assert "got '7'" in node_log.text
        assert node_log.records[-1].levelno == logging.WARNING

    def test_log_rejects_unknown_level(self):
        node = _create(debug, "log", level="loud")
        assert node.validate_config() == [{
            "field": "level",
            "error": "level must be one of ['debug', 'error', 'info', 'warn']",
        }]

    @pytest.mark.asyncio
    async def test_nil_and_passthrough(self):
        ctx = ExecutionContext()
        assert await _create(debug, "nil").execute(ctx, 5) is None
        assert await _create(debug, "passthrough").execute(ctx, 5) == 5


class TestBuiltinWorkflows:
    """Built-in providers inside full runs."""

    @pytest.mark.asyncio
    async def test_add_then_multiply(self):
        graph = make_graph(
            [
                make_node("add", "add", registry="logic", inputs=[
                    {"source": "value", "origin": "{{input}}"},
                    {"source": "amount", "origin": "3"},
                ]),
                make_node("times", "multiply", registry="logic", inputs=[
                    {"source": "value", "origin": "{{input}}"},
                    {"source": "factor", "origin": 2},
                ]),
                make_node("log", "log", registry="debug"),
            ],
            [make_edge("e1", "add", "times"), make_edge("e2", "times", "log")],
        )
        assert await WorkflowExecutor(default_registry()).execute(graph, "4") == 14

    @pytest.mark.asyncio
    async def test_sum_then_branch(self):
        graph = make_graph(
            [
                make_node("sum", "sum", registry="logic"),
                make_node("high", "passthrough", registry="debug"),
                make_node("low", "nil", registry="debug"),
            ],
            [
                make_edge("e-high", "sum", "high", condition="gt", value="10"),
                make_edge("e-low", "sum", "low", condition="lte", value="10"),
            ],
        )
        result = await WorkflowExecutor(default_registry()).run(graph, [5, 6])
        assert result.visited == ["sum", "high"]
        assert result.output == 11.0

    @pytest.mark.asyncio
    async def test_unknown_level_rejected_at_build(self):
        graph = make_graph([make_node("log", "log", registry="debug", inputs=[
            {"source": "level", "origin": "loud"},
        ])])
        with pytest.raises(InvalidNodeError):
            await WorkflowExecutor(default_registry()).execute(graph)

    @pytest.mark.asyncio
    async def test_unmapped_value_rejected_at_build(self):
        graph = make_graph([make_node("times", "multiply", registry="logic", inputs=[
            {"source": "factor", "origin": 2},
        ])])
        with pytest.raises(InvalidNodeError) as exc_info:
            await WorkflowExecutor(default_registry()).execute(graph, 3)
        assert exc_info.value.node_id == "times"
        assert exc_info.value.errors == [{"field": "value", "error": "Required input 'value' is missing"}]

    @pytest.mark.asyncio
    async def test_mapped_log_keeps_value_type(self, node_log):
        graph = make_graph(
            [
                make_node("times", "multiply", registry="logic", inputs=[
                    {"source": "value", "origin": "{{input}}"},
                    {"source": "factor", "origin": 2},
                ]),
                make_node("log", "log", registry="debug", inputs=[
                    {"source": "message", "origin": "result:"},
                    {"source": "value", "origin": "{{input}}"},
                ]),
            ],
            [make_edge("e1", "times", "log")],
        )
        result = await WorkflowExecutor(default_registry()).execute(graph, 5)
        assert result == 10
        assert isinstance(result, int)
        assert "result: 10" in node_log.text

    @pytest.mark.asyncio
    async def test_mapped_log_keeps_structured_value(self):
        graph = make_graph([make_node("log", "log", registry="debug", inputs=[
            {"source": "value", "origin": "{{input.payload}}"},
        ])])
        result = await WorkflowExecutor(default_registry()).execute(graph, {"payload": {"n": [1, 2]}})
        assert result == {"n": [1, 2]}

    @pytest.mark.asyncio
    async def test_non_numeric_input_fails_node(self):
        graph = make_graph([make_node("add", "add", registry="logic", inputs=[
            {"source": "value", "origin": "{{input}}"},
            {"source": "amount", "origin": 1},
        ])])
        with pytest.raises(NodeExecutionError) as exc_info:
            await WorkflowExecutor(default_registry()).execute(graph, "four")
        assert exc_info.value.node_id == "add"
