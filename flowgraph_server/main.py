"""FastAPI Application Entry Point.

Configures the app, its provider registry and graph store, and includes the
route modules.

Run with:
    uvicorn flowgraph_server.main:app
"""

from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowgraph import __version__
from flowgraph.logging_config import get_api_logger
from flowgraph.nodes import ProviderRegistry, default_registry

from .routes import workflows
from .storage import GraphStore

logger = get_api_logger()

# CORS origins from the CORS_ORIGINS env var (comma-separated)
_default_origins = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",") if o.strip()
]


def create_app(registry: Optional[ProviderRegistry] = None) -> FastAPI:
    """Build the API application.

    Args:
        registry: Providers available to graphs (defaults to the built-in providers)
    """
    app = FastAPI(title="flowgraph API", version=__version__)
    app.state.registry = registry if registry is not None else default_registry()
    app.state.graph_store = GraphStore()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(workflows.router)

    logger.info(f"flowgraph API ready with providers {app.state.registry.names()}")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    from flowgraph import config

    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
