"""Health marker and liveness/readiness probes."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from equipment_indexer.orchestrator import IndexLifecycleOrchestrator

logger = structlog.get_logger()

router = APIRouter(prefix="/health", tags=["health"])


class HealthMarker:
    """Process-wide healthy flag, mirrored to a file for liveness probes."""

    def __init__(self, path: str | None) -> None:
        """Initialize marker.

        Args:
            path: File to touch once healthy, or None to skip the file.
        """
        self._path = Path(path) if path else None
        self._healthy = False

    @property
    def is_healthy(self) -> bool:
        """Whether bootstrap has completed."""
        return self._healthy

    def mark_healthy(self) -> None:
        """Record that bootstrap succeeded."""
        if self._path is not None:
            self._path.touch()
        self._healthy = True
        logger.info("service_marked_healthy", path=str(self._path) if self._path else None)


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        phase: Current index lifecycle phase.
        collection: Collection generation owned by this process.
    """

    status: Literal["ready", "not_ready"]
    phase: str
    collection: str


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Ready once the alias points at this process's collection and
    catch-up polling has started. Returns 503 in every other phase.

    Returns:
        Readiness status with the current lifecycle phase.
    """
    orchestrator: IndexLifecycleOrchestrator = request.app.state.orchestrator
    ready = orchestrator.is_ready
    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        phase=orchestrator.phase.value,
        collection=orchestrator.collection_name,
    )
    code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
