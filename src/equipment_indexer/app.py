"""FastAPI application factory for the health probe server."""

from fastapi import FastAPI

from equipment_indexer import health
from equipment_indexer.orchestrator import IndexLifecycleOrchestrator


def create_app(orchestrator: IndexLifecycleOrchestrator) -> FastAPI:
    """Factory function to create the probe application.

    Args:
        orchestrator: Lifecycle whose phase the readiness probe reports.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Equipment Search Indexer",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.orchestrator = orchestrator
    app.include_router(health.router)
    return app
