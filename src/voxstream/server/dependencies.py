"""FastAPI dependencies para injecao do session manager."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request  # noqa: TC002

from voxstream.exceptions import EngineNotReadyError

if TYPE_CHECKING:
    from voxstream.session.manager import StreamingSessionManager


def get_session_manager(request: Request) -> StreamingSessionManager:
    """Retorna o StreamingSessionManager do app state.

    Raises:
        EngineNotReadyError: Se o manager nao foi configurado em create_app().
    """
    manager = request.app.state.session_manager
    if manager is None:
        raise EngineNotReadyError
    return manager  # type: ignore[no-any-return]
