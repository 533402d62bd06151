"""Graph validation, storage and execution endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from flowgraph import __version__, config
from flowgraph.engine import ExecutionContext, ExecutionResult, WorkflowExecutor, build_workflow
from flowgraph.errors import WorkflowError
from flowgraph.nodes import ProviderRegistry
from flowgraph.schema import Graph

from ..schemas import (
    ErrorResponse,
    ExecuteRequest,
    ExecutionResponse,
    FunctionResponse,
    HealthResponse,
    InlineExecuteRequest,
    ProviderResponse,
    ValidationResponse,
)
from ..storage import GraphStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["workflows"])


# --- Dependencies ---


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.registry


def get_store(request: Request) -> GraphStore:
    return request.app.state.graph_store


# --- Helper functions ---


def _execution_to_response(result: ExecutionResult) -> ExecutionResponse:
    data = result.to_dict()
    if result.error is not None:
        data["error"] = ErrorResponse(**result.error.to_dict())
    return ExecutionResponse(**data)


async def _run(registry: ProviderRegistry, graph: Graph, payload: ExecuteRequest) -> ExecutionResponse:
    ctx = ExecutionContext(timeout=payload.timeout or config.RUN_TIMEOUT or None)
    result = await WorkflowExecutor(registry).run(graph, payload.input, ctx)
    logger.info(f"Run {result.run_id} of '{graph.id}': {result.status.value} in {result.duration_ms:.1f}ms")
    return _execution_to_response(result)


# --- Endpoints ---


@router.get("/health", response_model=HealthResponse)
def health(registry: ProviderRegistry = Depends(get_registry)):
    return HealthResponse(version=__version__, providers=len(registry))


@router.get("/providers", response_model=List[ProviderResponse])
def list_providers(registry: ProviderRegistry = Depends(get_registry)):
    """List registered providers and the functions they expose."""
    responses = []
    for provider in registry:
        functions = provider.functions() if hasattr(provider, "functions") else []
        responses.append(ProviderResponse(
            name=provider.name,
            description=getattr(provider, "description", ""),
            functions=[FunctionResponse(**fn.to_dict()) for fn in functions],
        ))
    return responses


@router.post("/graphs/validate", response_model=ValidationResponse)
def validate_graph_inline(graph: Graph, registry: ProviderRegistry = Depends(get_registry)):
    """Validate a graph without saving (structure, providers, node configuration)."""
    try:
        workflow = build_workflow(graph, registry)
    except WorkflowError as e:
        return ValidationResponse(valid=False, error=ErrorResponse(**e.to_dict()))
    return ValidationResponse(valid=True, entry_points=workflow.entry_points)


@router.put("/graphs", response_model=Graph)
def upsert_graph(
    graph: Graph,
    registry: ProviderRegistry = Depends(get_registry),
    store: GraphStore = Depends(get_store),
):
    """Validate and store a graph schema under its id."""
    try:
        build_workflow(graph, registry)
    except WorkflowError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())

    replaced = store.upsert(graph)
    logger.info(f"{'Updated' if replaced else 'Stored'} graph '{graph.id}'")
    return graph


@router.get("/graphs", response_model=List[Graph])
def list_graphs(store: GraphStore = Depends(get_store)):
    return store.list()


@router.get("/graphs/{graph_id}", response_model=Graph)
def get_graph(graph_id: str, store: GraphStore = Depends(get_store)):
    graph = store.get(graph_id)
    if graph is None:
        raise HTTPException(status_code=404, detail=f"graph '{graph_id}' not found")
    return graph


@router.post("/graphs/{graph_id}/execute", response_model=ExecutionResponse)
async def execute_stored_graph(
    graph_id: str,
    payload: ExecuteRequest,
    registry: ProviderRegistry = Depends(get_registry),
    store: GraphStore = Depends(get_store),
):
    """Execute a stored graph with the given initial input."""
    graph = store.get(graph_id)
    if graph is None:
        raise HTTPException(status_code=404, detail=f"graph '{graph_id}' not found")
    return await _run(registry, graph, payload)


@router.post("/execute", response_model=ExecutionResponse)
async def execute_inline(payload: InlineExecuteRequest, registry: ProviderRegistry = Depends(get_registry)):
    """Execute a graph supplied in the request body."""
    return await _run(registry, payload.graph, payload)
