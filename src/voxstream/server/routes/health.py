"""Health check e metricas Prometheus."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

import voxstream
from voxstream.server.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health(request: Request) -> HealthResponse:
    """Health check do runtime.

    Retorna status basico (liveness) e, com manager configurado, o numero
    de sessoes ativas e o estado da engine.
    """
    response = HealthResponse(status="ok", version=voxstream.__version__)

    manager = getattr(request.app.state, "session_manager", None)
    if manager is not None:
        response.active_sessions = manager.active_sessions
        response.engine = manager.engine.health()
        if not manager.engine.is_loaded:
            response.status = "degraded"

    return response


@router.get("/metrics")
async def metrics() -> Response:
    """Exposicao das metricas no formato texto do Prometheus."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
