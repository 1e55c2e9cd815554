"""FastAPI application factory para o VoxStream."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

import voxstream
from voxstream.server.error_handlers import register_error_handlers
from voxstream.server.routes import health, speech_stream

if TYPE_CHECKING:
    from voxstream.session.manager import StreamingSessionManager


def create_app(
    session_manager: StreamingSessionManager | None = None,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Cria a aplicacao FastAPI.

    Args:
        session_manager: Manager de sessoes (opcional, None apenas para testes
            do health endpoint).
        cors_origins: Lista de CORS origins permitidos (opcional).

    Returns:
        FastAPI application configurada.
    """
    app = FastAPI(
        title="VoxStream",
        version=voxstream.__version__,
        description="Reconhecimento de fala em streaming sobre HTTP chunked",
    )

    app.state.session_manager = session_manager

    if cors_origins:
        from fastapi.middleware.cors import CORSMiddleware

        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(speech_stream.router)

    return app
