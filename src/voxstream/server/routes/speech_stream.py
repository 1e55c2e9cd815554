"""POST /speech-to-text-stream — reconhecimento de fala em streaming.

O cliente envia PCM16 mono 16 kHz como corpo chunked; o servidor escreve
cada utterance reconhecida como texto puro assim que o recognizer detecta
o fim de um trecho de fala. A resposta termina quando o corpo da request
termina e todos os chunks foram processados.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, Response
from starlette.requests import ClientDisconnect

from voxstream.exceptions import SessionClosedError, SessionNotFoundError, StreamAbortedError
from voxstream.logging import get_logger
from voxstream.server.dependencies import get_session_manager
from voxstream.server.error_handlers import error_response
from voxstream.server.streaming_response import (
    STREAM_HEADERS,
    TRANSCRIPT_MEDIA_TYPE,
    TranscriptStreamResponse,
)
from voxstream.session.manager import StreamingSessionManager  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from voxstream.session.streaming import StreamingSession

router = APIRouter()

logger = get_logger("server.speech_stream")

STREAM_ERROR_MESSAGE = "Error receiving audio stream"


@router.post("/speech-to-text-stream")
async def speech_to_text_stream(
    request: Request,
    session_manager: StreamingSessionManager = Depends(get_session_manager),  # noqa: B008
) -> Response:
    """Transcreve o audio do corpo da request em streaming.

    Enquanto nada foi escrito na resposta, uma falha vira
    ``500 {"message": "Error receiving audio stream"}``. Depois do primeiro
    texto o status ja foi enviado, entao uma falha apenas encerra o stream.
    """
    session = await session_manager.open_session()
    session_id = session.session_id

    pump = asyncio.create_task(
        _pump_request_body(request, session_manager, session_id),
        name=f"voxstream-ingest-{session_id}",
    )
    results = session.results()

    try:
        first = await anext(results, None)
    except asyncio.CancelledError:
        await _abort(session_manager, session, pump, "request cancelled")
        raise

    if first is None:
        await _finish_pump(pump)
        if session.failure is not None:
            logger.warning(
                "stream_failed_before_output",
                session_id=session_id,
                error=str(session.failure),
            )
            return error_response(500, STREAM_ERROR_MESSAGE)
        return Response(
            content=b"",
            media_type=TRANSCRIPT_MEDIA_TYPE,
            headers=dict(STREAM_HEADERS),
        )

    return TranscriptStreamResponse(
        _stream_body(first, results, session_manager, session, pump),
    )


async def _pump_request_body(
    request: Request,
    session_manager: StreamingSessionManager,
    session_id: str,
) -> None:
    """Le o corpo da request e entrega cada chunk a sessao.

    Fim do corpo vira on_end; desconexao do cliente vira on_error.
    """
    try:
        async for chunk in request.stream():
            if chunk:
                await session_manager.on_chunk(session_id, chunk)
    except ClientDisconnect:
        await session_manager.on_error(
            session_id, StreamAbortedError(session_id, "client disconnected")
        )
        return
    except (SessionNotFoundError, SessionClosedError):
        # Sessao encerrada por outro caminho (idle timeout, shutdown)
        logger.debug("ingest_stopped_session_gone", session_id=session_id)
        return
    except Exception as exc:
        logger.error("request_body_read_error", session_id=session_id, error=str(exc))
        await session_manager.on_error(session_id, StreamAbortedError(session_id, str(exc)))
        return

    await session_manager.on_end(session_id)


async def _stream_body(
    first: str,
    results: AsyncIterator[str],
    session_manager: StreamingSessionManager,
    session: StreamingSession,
    pump: asyncio.Task[None],
) -> AsyncIterator[str]:
    try:
        yield first
        async for text in results:
            yield text
        if session.failure is not None:
            logger.warning(
                "stream_failed_after_output",
                session_id=session.session_id,
                emissions=session.emissions,
                error=str(session.failure),
            )
    finally:
        aclose = getattr(results, "aclose", None)
        if aclose is not None:
            await aclose()
        if not session.is_terminal:
            await session_manager.on_error(
                session.session_id,
                StreamAbortedError(session.session_id, "response stream closed"),
            )
        await _finish_pump(pump)


async def _abort(
    session_manager: StreamingSessionManager,
    session: StreamingSession,
    pump: asyncio.Task[None],
    reason: str,
) -> None:
    await _finish_pump(pump)
    await session_manager.on_error(
        session.session_id, StreamAbortedError(session.session_id, reason)
    )


async def _finish_pump(pump: asyncio.Task[None]) -> None:
    if not pump.done():
        pump.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await pump
