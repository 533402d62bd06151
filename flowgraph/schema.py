"""Graph Schema Model

Declarative, serialization-shaped representation of a workflow. Pure data:
decoded from JSON or YAML, never mutated afterwards.

Wire format:
    Graph:  { id, name, nodes: [Node], edges: [Edge] }
    Node:   { id, package: { registry, function }, config?: { inputs?: [NodeInputMapping] } }
    NodeInputMapping: { source, origin, mapping }
    Edge:   { id, from, to, conditional?: { name, value } }
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import SchemaDecodeError


class _SchemaModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Package(_SchemaModel):
    """Which provider (registry) and which of its functions implement a node."""

    registry: str = ""
    function: str = ""


class NodeInputMapping(_SchemaModel):
    """Binds a declared node input parameter to a value.

    Attributes:
        source: Name of the declared input parameter (looked up in the node's input schema)
        origin: Literal value, or a reference like "{{input}}" / "{{node-1.field}}"
        mapping: Key the coerced value is written under (defaults to source)
    """

    source: str = ""
    origin: Any = None
    mapping: str = ""

    @property
    def target(self) -> str:
        return self.mapping or self.source


class NodeConfig(_SchemaModel):
    inputs: List[NodeInputMapping] = Field(default_factory=list)


class Node(_SchemaModel):
    id: str = ""
    package: Package = Field(default_factory=Package)
    config: Optional[NodeConfig] = None

    @property
    def inputs(self) -> List[NodeInputMapping]:
        return list(self.config.inputs) if self.config else []

    def provider_config(self) -> Dict[str, Any]:
        """Mapping handed to Provider.create_node()."""
        return {
            "id": self.id,
            "function": self.package.function,
            "inputs": self.inputs,
        }


class Conditional(_SchemaModel):
    """Named predicate plus comparison operand gating an edge."""

    name: str = ""
    value: Any = None


class Edge(_SchemaModel):
    id: str = ""
    from_: str = Field("", alias="from")
    to: str = ""
    conditional: Optional[Conditional] = None


class Graph(_SchemaModel):
    id: str = ""
    name: str = ""
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Any) -> "Graph":
        """Build a Graph from already-decoded data.

        Raises:
            SchemaDecodeError: If the data does not have the graph shape
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SchemaDecodeError(f"graph document must be a mapping, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SchemaDecodeError(f"invalid graph document: {e}", e) from e

    @classmethod
    def from_json(cls, data: Union[bytes, str]) -> "Graph":
        """Decode a Graph from a JSON buffer."""
        try:
            decoded = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SchemaDecodeError(f"failed to parse graph JSON: {e}", e) from e
        return cls.from_dict(decoded)

    @classmethod
    def from_yaml(cls, data: Union[bytes, str]) -> "Graph":
        """Decode a Graph from a YAML buffer."""
        try:
            decoded = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise SchemaDecodeError(f"failed to parse graph YAML: {e}", e) from e
        return cls.from_dict(decoded)

    def to_dict(self) -> Dict[str, Any]:
        """Encode with wire field names."""
        return self.model_dump(by_alias=True)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def outgoing(self, node_id: str) -> List[Edge]:
        """Edges leaving node_id, in declaration order."""
        return [edge for edge in self.edges if edge.from_ == node_id]

    def incoming(self, node_id: str) -> List[Edge]:
        """Edges entering node_id, in declaration order."""
        return [edge for edge in self.edges if edge.to == node_id]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_mermaid(self) -> str:
        """Render the graph as a Mermaid flowchart.

        Nodes are keyed n0, n1, ... in declaration order and labelled with
        their id and provider function. Conditional edges carry the
        predicate name and operand as the link text. Edge endpoints that
        name no node still get a box, labelled with the bare id.

        Example output:
            flowchart TD
                n0["ID: double<br/>Function: logic/multiply"]
                n1["ID: add-one<br/>Function: logic/add"]
                n0 -->|"gte 10"| n1
        """
        keys: Dict[str, str] = {}
        lines = ["flowchart TD"]

        def key_for(node_id: str, label: str) -> str:
            if node_id not in keys:
                keys[node_id] = f"n{len(keys)}"
                lines.append(f'    {keys[node_id]}["{_mermaid_text(label)}"]')
            return keys[node_id]

        for node in self.nodes:
            key_for(node.id, f"ID: {node.id}<br/>Function: {node.package.registry}/{node.package.function}")

        for edge in self.edges:
            source = key_for(edge.from_, edge.from_)
            target = key_for(edge.to, edge.to)
            if edge.conditional is not None:
                operand = edge.conditional.value
                if not isinstance(operand, str):
                    operand = json.dumps(operand)
                text = _mermaid_text(f"{edge.conditional.name} {operand}")
                lines.append(f'    {source} -->|"{text}"| {target}')
            else:
                lines.append(f"    {source} --> {target}")

        return "\n".join(lines) + "\n"


def _mermaid_text(text: str) -> str:
    # double quotes end a Mermaid label
    return text.replace('"', "#quot;")


__all__ = [
    "Conditional",
    "Edge",
    "Graph",
    "Node",
    "NodeConfig",
    "NodeInputMapping",
    "Package",
]
