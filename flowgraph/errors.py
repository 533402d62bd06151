"""Error kinds raised by the flowgraph engine.

Every error derives from WorkflowError and keeps the context needed to
reconstruct a failure path (node id, edge id, list index, underlying cause)
without re-running the workflow. Underlying exceptions are chained with
``raise ... from`` and also kept on ``cause``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class WorkflowError(Exception):
    """Base class for all flowgraph errors."""

    kind = "workflow_error"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def context(self) -> Dict[str, Any]:
        """Extra attributes rendered by to_dict(). Subclasses extend."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        data = {"kind": self.kind, "message": self.message}
        data.update(self.context())
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data


# ---------------------------------------------------------------------------
# Structural errors
# ---------------------------------------------------------------------------


class InvalidGraphError(WorkflowError):
    """Graph is missing, has no id, has no nodes or is otherwise malformed."""

    kind = "invalid_graph"


class NoEntryPointError(InvalidGraphError):
    """Every node has at least one incoming edge."""

    kind = "no_entry_point"

    def __init__(self, graph_id: str):
        self.graph_id = graph_id
        super().__init__(f"graph '{graph_id}' has no entry point (every node has an incoming edge)")


class CycleDetectedError(InvalidGraphError):
    """Graph contains a cycle."""

    kind = "cycle_detected"

    def __init__(self, cycle_path: List[str]):
        self.cycle_path = list(cycle_path)
        super().__init__(f"cycle detected: {' -> '.join(self.cycle_path)}")

    def context(self) -> Dict[str, Any]:
        return {"cycle_path": self.cycle_path}


class UnknownPredicateError(InvalidGraphError):
    kind = "unknown_predicate"

    def __init__(self, name: str, edge_id: Optional[str] = None):
        self.name = name
        self.edge_id = edge_id
        where = f"edge '{edge_id}': " if edge_id else ""
        super().__init__(f"{where}unknown condition predicate '{name}'")

    def context(self) -> Dict[str, Any]:
        return {"predicate": self.name, "edge_id": self.edge_id}


class DanglingEdgeError(WorkflowError):
    """Edge references a node id that does not exist in the graph."""

    kind = "dangling_edge"

    def __init__(self, edge_id: str, node_id: str, endpoint: str):
        self.edge_id = edge_id
        self.node_id = node_id
        self.endpoint = endpoint
        super().__init__(f"edge '{edge_id}': {endpoint} node '{node_id}' not found")

    def context(self) -> Dict[str, Any]:
        return {"edge_id": self.edge_id, "node_id": self.node_id, "endpoint": self.endpoint}


class InvalidNodeError(WorkflowError):
    """A node failed its own validation."""

    kind = "invalid_node"

    def __init__(self, node_id: str, cause: Optional[BaseException] = None, errors: Optional[List[Dict[str, str]]] = None):
        self.node_id = node_id
        self.errors = errors or []
        detail = str(cause) if cause is not None else "; ".join(
            f"{e.get('field')}: {e.get('error')}" for e in self.errors
        )
        super().__init__(f"node '{node_id}' is invalid: {detail}", cause)

    def context(self) -> Dict[str, Any]:
        return {"node_id": self.node_id, "errors": self.errors}


# ---------------------------------------------------------------------------
# Provider registry errors
# ---------------------------------------------------------------------------


class ProviderError(WorkflowError):
    kind = "provider_error"


class ProviderNotFoundError(ProviderError):
    kind = "provider_not_found"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"provider '{name}' not found")

    def context(self) -> Dict[str, Any]:
        return {"provider": self.name}


class DuplicateProviderError(ProviderError):
    kind = "duplicate_provider"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"provider '{name}' is already registered")

    def context(self) -> Dict[str, Any]:
        return {"provider": self.name}


class NilProviderError(ProviderError):
    kind = "nil_provider"

    def __init__(self):
        super().__init__("cannot register a missing (None) provider")


# ---------------------------------------------------------------------------
# Coercion errors
# ---------------------------------------------------------------------------


class CoercionError(WorkflowError):
    """A value could not be converted to the requested type.

    For list descriptors ``index`` names the failing element and ``cause`` is
    the element's own error (itself a CoercionError for nested lists).
    """

    kind = "coercion_failure"

    def __init__(
        self,
        descriptor: str,
        value: Any,
        cause: Optional[BaseException] = None,
        index: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.descriptor = descriptor
        self.value = value
        self.index = index
        if index is not None:
            message = f"invalid element at index {index} for '{descriptor}': {cause}"
        else:
            message = f"cannot convert {value!r} to {descriptor}: {reason or cause}"
        super().__init__(message, cause)

    def context(self) -> Dict[str, Any]:
        return {"descriptor": self.descriptor, "index": self.index}


class UnsupportedTypeError(WorkflowError):
    kind = "unsupported_type"

    def __init__(self, descriptor: str):
        self.descriptor = descriptor
        super().__init__(f"unsupported type: {descriptor}")

    def context(self) -> Dict[str, Any]:
        return {"descriptor": self.descriptor}


# ---------------------------------------------------------------------------
# Runtime errors
# ---------------------------------------------------------------------------


class NodeExecutionError(WorkflowError):
    """A node failed while preparing its inputs or executing."""

    kind = "node_execution_failure"

    def __init__(self, node_id: str, cause: BaseException):
        self.node_id = node_id
        super().__init__(f"node '{node_id}' failed: {cause}", cause)

    def context(self) -> Dict[str, Any]:
        return {"node_id": self.node_id}


class ConditionError(WorkflowError):
    """An edge predicate could not be evaluated (not the same as 'not satisfied')."""

    kind = "condition_failure"

    def __init__(self, predicate: str, cause: BaseException, edge_id: Optional[str] = None):
        self.predicate = predicate
        self.edge_id = edge_id
        where = f"edge '{edge_id}': " if edge_id else ""
        super().__init__(f"{where}predicate '{predicate}' failed: {cause}", cause)

    def context(self) -> Dict[str, Any]:
        return {"predicate": self.predicate, "edge_id": self.edge_id}


class WorkflowCancelledError(WorkflowError):
    kind = "cancelled"

    def __init__(self, reason: str = "cancelled", node_id: Optional[str] = None):
        self.reason = reason
        self.node_id = node_id
        where = f" before node '{node_id}'" if node_id else ""
        super().__init__(f"workflow run {reason}{where}")

    def context(self) -> Dict[str, Any]:
        return {"reason": self.reason, "node_id": self.node_id}


# ---------------------------------------------------------------------------
# Decoding / file loading errors
# ---------------------------------------------------------------------------


class SchemaDecodeError(WorkflowError):
    kind = "schema_decode_error"


class WorkflowFileError(WorkflowError):
    kind = "workflow_file_error"


class UnsafePathError(WorkflowFileError):
    kind = "unsafe_path"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"unsafe file path: {path}")

    def context(self) -> Dict[str, Any]:
        return {"path": self.path}
