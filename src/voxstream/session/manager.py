"""StreamingSessionManager — registro e ciclo de vida das sessoes de streaming.

Ponto de entrada do transporte: abre sessoes (uma por stream de entrada),
roteia chunks, fim de stream e erros de transporte para a sessao certa, e
desregistra sessoes quando terminam. Sessoes nao compartilham estado
mutavel; o unico recurso comum e o modelo carregado na engine.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

from voxstream._types import SAMPLE_RATE
from voxstream.exceptions import EngineNotReadyError, ServerShuttingDownError, SessionNotFoundError
from voxstream.logging import get_logger
from voxstream.session.streaming import StreamingSession

if TYPE_CHECKING:
    from voxstream.config.settings import Settings
    from voxstream.engine.interface import SpeechEngine

logger = get_logger("session.manager")


def _new_session_id() -> str:
    return f"sess_{uuid.uuid4().hex[:16]}"


class StreamingSessionManager:
    """Gerencia as sessoes de reconhecimento ativas do processo.

    Args:
        engine: Engine com modelo ja carregado.
        max_pending_chunks: Tamanho da fila de entrada de cada sessao.
        idle_timeout_s: Timeout de inatividade por sessao (None desabilita).
        flush_on_end: Emite resultado final pendente no fim normal do stream.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        *,
        max_pending_chunks: int = 64,
        idle_timeout_s: float | None = None,
        flush_on_end: bool = False,
    ) -> None:
        self._engine = engine
        self._max_pending_chunks = max_pending_chunks
        self._idle_timeout_s = idle_timeout_s
        self._flush_on_end = flush_on_end
        self._sessions: dict[str, StreamingSession] = {}

    @classmethod
    def from_settings(cls, engine: SpeechEngine, settings: Settings) -> StreamingSessionManager:
        return cls(
            engine,
            max_pending_chunks=settings.max_pending_chunks,
            idle_timeout_s=settings.idle_timeout,
            flush_on_end=settings.flush_on_end,
        )

    @property
    def engine(self) -> SpeechEngine:
        return self._engine

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> StreamingSession:
        """Retorna a sessao ativa.

        Raises:
            SessionNotFoundError: Se a sessao nao existe ou ja terminou.
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def open_session(self) -> StreamingSession:
        """Aloca uma sessao com recognizer novo e inicia o worker.

        Retorna imediatamente; ingestao e emissao sao assincronas.

        Raises:
            EngineNotReadyError: Se o modelo nao esta carregado.
            ModelLoadError: Se a engine falhar ao criar o recognizer.
        """
        if not self._engine.is_loaded:
            raise EngineNotReadyError

        loop = asyncio.get_running_loop()
        recognizer = await loop.run_in_executor(
            None, self._engine.create_recognizer, SAMPLE_RATE
        )

        session = StreamingSession(
            _new_session_id(),
            recognizer,
            max_pending_chunks=self._max_pending_chunks,
            idle_timeout_s=self._idle_timeout_s,
            flush_on_end=self._flush_on_end,
            on_terminated=self._on_session_terminated,
        )
        self._sessions[session.session_id] = session
        session.start()
        return session

    async def on_chunk(self, session_id: str, chunk: bytes) -> None:
        """Entrega um chunk a sessao (pode esperar por backpressure).

        Raises:
            SessionNotFoundError: Se a sessao nao existe ou ja terminou.
            SessionClosedError: Se o stream ja foi encerrado.
        """
        await self.get(session_id).push_chunk(chunk)

    async def on_end(self, session_id: str) -> None:
        """Fim normal do stream. No-op se a sessao ja terminou."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        await session.end()

    async def on_error(self, session_id: str, cause: BaseException) -> None:
        """Erro de transporte. No-op se a sessao ja terminou."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        logger.info(
            "transport_error",
            session_id=session_id,
            error=str(cause),
            error_type=type(cause).__name__,
        )
        await session.fail(cause)

    async def close_all(self) -> None:
        """Encerra todas as sessoes ativas (shutdown do servidor)."""
        sessions = list(self._sessions.values())
        if not sessions:
            return
        logger.info("closing_all_sessions", count=len(sessions))
        await asyncio.gather(*(s.fail(ServerShuttingDownError()) for s in sessions))
        # fail() e no-op para sessoes que ja estavam encerrando por outro
        # caminho (fim normal com flush, idle timeout); espera todas fecharem.
        await asyncio.gather(*(s.wait_closed() for s in sessions))

    def _on_session_terminated(self, session: StreamingSession) -> None:
        self._sessions.pop(session.session_id, None)
