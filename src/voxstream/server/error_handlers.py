"""Exception handlers HTTP para o FastAPI.

Mapeia exceptions tipadas do VoxStream para respostas ``{"message": ...}``
com status codes corretos.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

from voxstream.exceptions import (
    EngineNotReadyError,
    ModelError,
    SessionNotFoundError,
    TransportError,
    VoxStreamError,
)
from voxstream.logging import get_logger
from voxstream.server.models import ErrorResponse

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger("server.errors")


def error_response(status_code: int, message: str) -> JSONResponse:
    """Cria resposta de erro no formato {"message": ...}."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )


async def _handle_engine_not_ready(request: Request, exc: EngineNotReadyError) -> JSONResponse:
    logger.error("engine_not_ready", path=request.url.path)
    response = error_response(503, str(exc))
    response.headers["Retry-After"] = "5"
    return response


async def _handle_model_error(request: Request, exc: ModelError) -> JSONResponse:
    logger.error("model_error", path=request.url.path, error=str(exc))
    return error_response(500, str(exc))


async def _handle_session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
    logger.warning("session_not_found", session_id=exc.session_id)
    return error_response(404, str(exc))


async def _handle_transport_error(request: Request, exc: TransportError) -> JSONResponse:
    logger.warning("transport_error", path=request.url.path, error=str(exc))
    return error_response(500, "Error receiving audio stream")


async def _handle_voxstream_error(request: Request, exc: VoxStreamError) -> JSONResponse:
    logger.error(
        "unhandled_voxstream_error",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return error_response(500, str(exc))


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unexpected_error",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Registra todos os exception handlers no FastAPI app."""
    app.add_exception_handler(EngineNotReadyError, _handle_engine_not_ready)  # type: ignore[arg-type]
    app.add_exception_handler(ModelError, _handle_model_error)  # type: ignore[arg-type]
    app.add_exception_handler(SessionNotFoundError, _handle_session_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(TransportError, _handle_transport_error)  # type: ignore[arg-type]
    app.add_exception_handler(VoxStreamError, _handle_voxstream_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
