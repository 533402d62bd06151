"""Providers and nodes: the registry plus the built-in "logic" and "debug" providers."""

from .registry import (
    BaseNodeImpl,
    FunctionDefinition,
    FunctionProvider,
    Node,
    Provider,
    ProviderRegistry,
)
from .base import builtin_providers


def default_registry() -> ProviderRegistry:
    """Create a fresh registry holding the built-in providers."""
    return ProviderRegistry(builtin_providers())


__all__ = [
    "BaseNodeImpl",
    "FunctionDefinition",
    "FunctionProvider",
    "Node",
    "Provider",
    "ProviderRegistry",
    "builtin_providers",
    "default_registry",
]
