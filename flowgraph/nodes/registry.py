"""Provider Registry for Workflow Nodes

This module provides the protocol-based provider system that turns a node's
declared package (``{registry, function}``) into an executable node.

Key Components:
- Node: Protocol for executable nodes
- Provider: Protocol for node factories
- BaseNodeImpl: Base class with input-schema validation
- FunctionProvider: Provider backed by a table of function name -> node class
- ProviderRegistry: Name-keyed, thread-safe table of providers

Design Principles:
- Explicit registry objects passed by reference (no module-level singleton)
- Append-only registration; a name is never overwritten
- Readers never take a lock
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Type,
    TypeVar,
    runtime_checkable,
)

from ..engine.coerce import is_supported
from ..errors import DuplicateProviderError, NilProviderError, ProviderNotFoundError

if TYPE_CHECKING:
    from ..engine.context import ExecutionContext
    from ..schema import NodeInputMapping

logger = logging.getLogger(__name__)

# Type variable for node classes
T = TypeVar("T", bound="BaseNodeImpl")


@runtime_checkable
class Node(Protocol):
    """Protocol defining the interface for executable workflow nodes.

    Attributes:
        node_id: Id of the schema node this instance was created for
    """

    node_id: str

    async def execute(self, ctx: "ExecutionContext", inputs: Any) -> Any:
        """Execute the node's logic.

        Args:
            ctx: Execution context of the current run
            inputs: Coerced input mapping, or the raw frontier value when the
                node declares no input mappings

        Returns:
            Output value handed to downstream edges
        """
        ...

    def validate_config(self) -> List[Dict[str, str]]:
        """Validate node configuration.

        Returns:
            List of validation errors, each containing:
                - field: Name of the invalid field
                - error: Description of the validation error
            Empty list if validation passes
        """
        ...


@runtime_checkable
class Provider(Protocol):
    """Protocol for node factories registered in a ProviderRegistry."""

    name: str

    def create_node(self, config: Dict[str, Any]) -> Node:
        """Create an executable node from its declared config.

        Args:
            config: Mapping with "id", "function" and "inputs" keys

        Raises:
            ValueError: If the config cannot produce a node
        """
        ...


class BaseNodeImpl(ABC):
    """Abstract base class providing common node functionality.

    Subclasses declare their parameters in ``input_schema`` (parameter name ->
    type descriptor) and list the mandatory ones in ``required_inputs``.
    """

    input_schema: Dict[str, str] = {}
    required_inputs: Sequence[str] = ()

    def __init__(self, node_id: str, function: str, inputs: Optional[List["NodeInputMapping"]] = None):
        """Initialize base node.

        Args:
            node_id: Id of the schema node
            function: Function name within the provider
            inputs: Declared input mappings
        """
        self.node_id = node_id
        self.function = function
        self.inputs = list(inputs or [])

    @abstractmethod
    async def execute(self, ctx: "ExecutionContext", inputs: Any) -> Any:
        """Execute the node's logic. Must be implemented by subclasses."""
        pass

    def validate_config(self) -> List[Dict[str, str]]:
        """Default validation: mappings must target declared, supported parameters."""
        errors = []
        mapped = set()

        for mapping in self.inputs:
            if not mapping.source:
                errors.append({"field": "source", "error": "input mapping has no source"})
                continue
            descriptor = self.input_schema.get(mapping.source)
            if descriptor is None:
                errors.append({
                    "field": mapping.source,
                    "error": f"'{mapping.source}' is not an input of {self.function}",
                })
            elif not is_supported(descriptor):
                errors.append({
                    "field": mapping.source,
                    "error": f"unsupported type '{descriptor}'",
                })
            mapped.add(mapping.source)

        for field_name in self.required_inputs:
            if field_name not in mapped:
                errors.append({
                    "field": field_name,
                    "error": f"Required input '{field_name}' is missing",
                })

        return errors


@dataclass
class FunctionDefinition:
    """Metadata for a function exposed by a provider.

    Attributes:
        name: Function name, unique within its provider
        node_class: Node implementation
        description: Brief description of the function
    """

    name: str
    node_class: Type[BaseNodeImpl]
    description: str = ""
    input_schema: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("function name cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": dict(self.input_schema),
        }


class FunctionProvider:
    """Provider backed by a table of function name -> node class.

    Example:
        logic = FunctionProvider("logic")

        @logic.function("double", description="Doubles its input")
        class DoubleNode(BaseNodeImpl):
            async def execute(self, ctx, inputs):
                return inputs * 2

        registry.register(logic)
    """

    def __init__(self, name: str, description: str = ""):
        if not name:
            raise ValueError("provider name cannot be empty")
        self.name = name
        self.description = description
        self._functions: Dict[str, FunctionDefinition] = {}

    def function(self, name: str, description: str = "") -> Callable[[Type[T]], Type[T]]:
        """Decorator registering a node class under a function name."""

        def decorator(cls: Type[T]) -> Type[T]:
            if name in self._functions:
                raise ValueError(f"function '{name}' already defined in provider '{self.name}'")
            self._functions[name] = FunctionDefinition(
                name=name,
                node_class=cls,
                description=description or (cls.__doc__ or "").strip().split("\n")[0],
                input_schema=dict(cls.input_schema),
            )
            logger.debug(f"Registered function: {self.name}/{name}")
            return cls

        return decorator

    def functions(self) -> List[FunctionDefinition]:
        return list(self._functions.values())

    def create_node(self, config: Dict[str, Any]) -> BaseNodeImpl:
        """Instantiate the node class registered for config["function"].

        Raises:
            ValueError: If the function is unknown
        """
        function = config.get("function", "")
        definition = self._functions.get(function)
        if definition is None:
            raise ValueError(
                f"Unknown function: {self.name}/{function}. "
                f"Available functions: {sorted(self._functions)}"
            )
        node = definition.node_class(
            node_id=config.get("id", ""),
            function=function,
            inputs=config.get("inputs") or [],
        )
        logger.debug(f"Created node: {node.node_id} ({self.name}/{function})")
        return node


class ProviderRegistry:
    """Name-keyed table of providers.

    Safe for concurrent use: registrations are serialized by a lock and
    published by swapping an immutable snapshot, so readers never block and
    never see a partially registered name.

    Usage:
        registry = ProviderRegistry()
        registry.register(my_provider)
        node = registry.create_node("my_provider", {"id": "n1", "function": "f"})
    """

    def __init__(self, providers: Optional[Sequence[Provider]] = None):
        self._lock = threading.Lock()
        self._providers: Mapping[str, Provider] = MappingProxyType({})
        for provider in providers or ():
            self.register(provider)

    def register(self, provider: Optional[Provider]) -> None:
        """Register a provider under its name.

        Raises:
            NilProviderError: If provider is None
            DuplicateProviderError: If the name is already registered
        """
        if provider is None:
            raise NilProviderError()

        name = provider.name
        with self._lock:
            if name in self._providers:
                raise DuplicateProviderError(name)
            updated = dict(self._providers)
            updated[name] = provider
            self._providers = MappingProxyType(updated)

        logger.info(f"Registered provider: {name}")

    def resolve(self, name: str) -> Optional[Provider]:
        """Look up a provider; None when the name has no registration."""
        return self._providers.get(name)

    def get(self, name: str) -> Provider:
        """Look up a provider.

        Raises:
            ProviderNotFoundError: If the name has no registration
        """
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderNotFoundError(name)
        return provider

    def create_node(self, provider_name: str, config: Dict[str, Any]) -> Node:
        """Create a node through the named provider.

        Raises:
            ProviderNotFoundError: If the provider is not registered
        """
        return self.get(provider_name).create_node(config)

    def names(self) -> List[str]:
        return list(self._providers.keys())

    def providers(self) -> List[Provider]:
        return list(self._providers.values())

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[Provider]:
        return iter(list(self._providers.values()))
