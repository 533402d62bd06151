"""Pydantic request/response models for the workflow API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from flowgraph.schema import Graph


class ErrorResponse(BaseModel):
    """Error in API response; extra context keys (node_id, edge_id, index...) pass through."""
    model_config = ConfigDict(extra="allow")

    kind: str
    message: str


class FunctionResponse(BaseModel):
    name: str
    description: str = ""
    input_schema: Dict[str, str] = Field(default_factory=dict)


class ProviderResponse(BaseModel):
    name: str
    description: str = ""
    functions: List[FunctionResponse] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    valid: bool
    entry_points: List[str] = Field(default_factory=list)
    error: Optional[ErrorResponse] = None


class ExecuteRequest(BaseModel):
    """Run a stored graph."""
    input: Any = None
    timeout: Optional[float] = Field(None, gt=0, description="Seconds; polled between node invocations")


class InlineExecuteRequest(ExecuteRequest):
    """Run a graph supplied in the request body."""
    graph: Graph


class ExecutionResponse(BaseModel):
    run_id: str
    workflow_id: str
    status: str
    output: Any = None
    error: Optional[ErrorResponse] = None
    visited: List[str] = Field(default_factory=list)
    terminals: List[str] = Field(default_factory=list)
    duration_ms: float = 0


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    providers: int
