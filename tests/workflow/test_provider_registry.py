"""Unit tests for the Provider Registry

Tests cover:
- Registration (duplicate / None rejection)
- Lookup (resolve / get)
- FunctionProvider node creation
- BaseNodeImpl configuration validation
- Protocol conformance
- Concurrent registration
"""

import threading

import pytest

from flowgraph.errors import DuplicateProviderError, NilProviderError, ProviderNotFoundError
from flowgraph.nodes import (
    BaseNodeImpl,
    FunctionDefinition,
    FunctionProvider,
    Node,
    Provider,
    ProviderRegistry,
    default_registry,
)
from flowgraph.schema import NodeInputMapping

from tests.conftest import DoubleNode, math_provider


class _NamedProvider:
    """Minimal Provider implementation."""

    def __init__(self, name):
        self.name = name

    def create_node(self, config):
        return DoubleNode(config["id"], config["function"])


class TestRegistration:
    """Test registering providers."""

    def test_register_and_get(self):
        registry = ProviderRegistry()
        registry.register(math_provider)

        assert registry.get("math") is math_provider
        assert "math" in registry
        assert len(registry) == 1

    def test_register_via_constructor(self):
        registry = ProviderRegistry([_NamedProvider("a"), _NamedProvider("b")])
        assert registry.names() == ["a", "b"]

    def test_duplicate_rejected(self):
        registry = ProviderRegistry([_NamedProvider("a")])
        original = registry.get("a")

        with pytest.raises(DuplicateProviderError) as exc_info:
            registry.register(_NamedProvider("a"))

        assert exc_info.value.name == "a"
        assert registry.get("a") is original

    def test_none_rejected(self):
        registry = ProviderRegistry()
        with pytest.raises(NilProviderError):
            registry.register(None)
        assert len(registry) == 0

    def test_registries_are_independent(self):
        first = ProviderRegistry([_NamedProvider("a")])
        second = ProviderRegistry()
        assert "a" in first
        assert "a" not in second

    def test_concurrent_registration(self):
        registry = ProviderRegistry()
        errors = []

        def register(name):
            try:
                registry.register(_NamedProvider(name))
            except DuplicateProviderError as e:
                errors.append(e)

        # 20 distinct names, each attempted twice
        threads = [threading.Thread(target=register, args=(f"p{i % 20}",)) for i in range(40)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 20
        assert len(errors) == 20


class TestLookup:
    """Test provider lookup."""

    def test_resolve_missing_returns_none(self):
        assert ProviderRegistry().resolve("nope") is None

    def test_get_missing_raises(self):
        with pytest.raises(ProviderNotFoundError, match="provider 'nope' not found"):
            ProviderRegistry().get("nope")

    def test_create_node(self, registry):
        node = registry.create_node("math", {"id": "n1", "function": "double"})
        assert isinstance(node, DoubleNode)
        assert node.node_id == "n1"

    def test_iteration_order(self):
        registry = ProviderRegistry([_NamedProvider("z"), _NamedProvider("a")])
        assert [p.name for p in registry] == ["z", "a"]

    def test_default_registry_has_builtins(self):
        registry = default_registry()
        assert set(registry.names()) == {"logic", "debug"}


class TestFunctionProvider:
    """Test the function-table provider."""

    def test_unknown_function(self):
        with pytest.raises(ValueError, match="Unknown function: math/triple"):
            math_provider.create_node({"id": "n", "function": "triple"})

    def test_duplicate_function_rejected(self):
        provider = FunctionProvider("tmp")

        @provider.function("f")
        class First(BaseNodeImpl):
            async def execute(self, ctx, inputs):
                return inputs

        with pytest.raises(ValueError, match="already defined"):
            @provider.function("f")
            class Second(BaseNodeImpl):
                async def execute(self, ctx, inputs):
                    return inputs

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="provider name cannot be empty"):
            FunctionProvider("")

    def test_function_definitions(self):
        names = [fn.name for fn in math_provider.functions()]
        assert "double" in names
        definition = next(fn for fn in math_provider.functions() if fn.name == "double")
        assert definition.to_dict() == {
            "name": "double",
            "description": "Doubles an int.",
            "input_schema": {"value": "int"},
        }

    def test_function_definition_empty_name(self):
        with pytest.raises(ValueError, match="function name cannot be empty"):
            FunctionDefinition(name="", node_class=DoubleNode)

    def test_inputs_are_passed_to_node(self):
        mapping = NodeInputMapping(source="value", origin=3)
        node = math_provider.create_node({"id": "n", "function": "double", "inputs": [mapping]})
        assert node.inputs == [mapping]


class TestNodeValidation:
    """Test BaseNodeImpl.validate_config."""

    def _node(self, *mappings, function="add"):
        from flowgraph.nodes.base import logic

        return logic.create_node({"id": "n", "function": function, "inputs": list(mappings)})

    def test_valid_config(self):
        node = self._node(
            NodeInputMapping(source="value", origin="{{input}}"),
            NodeInputMapping(source="amount", origin=1),
        )
        assert node.validate_config() == []

    def test_missing_required_input(self):
        errors = self._node().validate_config()
        assert {"field": "amount", "error": "Required input 'amount' is missing"} in errors

    def test_value_is_required(self):
        errors = self._node(
            NodeInputMapping(source="factor", origin=2), function="multiply"
        ).validate_config()
        assert errors == [{"field": "value", "error": "Required input 'value' is missing"}]

    def test_undeclared_source(self):
        errors = self._node(
            NodeInputMapping(source="value", origin="{{input}}"),
            NodeInputMapping(source="amount", origin=1),
            NodeInputMapping(source="bogus", origin=1),
        ).validate_config()
        assert [e["field"] for e in errors] == ["bogus"]

    def test_empty_source(self):
        errors = self._node(
            NodeInputMapping(source="amount", origin=1),
            NodeInputMapping(source="", origin=1),
        ).validate_config()
        assert errors[0]["field"] == "source"

    def test_unsupported_declared_type(self):
        class Odd(BaseNodeImpl):
            input_schema = {"x": "complex"}

            async def execute(self, ctx, inputs):
                return inputs

        node = Odd("n", "odd", [NodeInputMapping(source="x", origin=1)])
        assert node.validate_config() == [{"field": "x", "error": "unsupported type 'complex'"}]


class TestProtocolConformance:
    """Test runtime protocol checks."""

    def test_node_protocol(self):
        assert isinstance(DoubleNode("n", "double"), Node)

    def test_provider_protocol(self):
        assert isinstance(math_provider, Provider)
        assert isinstance(_NamedProvider("x"), Provider)
