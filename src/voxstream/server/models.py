"""Modelos de resposta da API — Pydantic models para serializacao JSON."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Payload de erro: {"message": "..."}."""

    message: str


class HealthResponse(BaseModel):
    """Resposta de GET /health."""

    status: str
    version: str
    active_sessions: int | None = None
    engine: dict[str, str] | None = None
