"""Resposta HTTP de streaming para transcripts incrementais."""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.responses import StreamingResponse

from voxstream.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.types import Receive, Scope, Send

logger = get_logger("server.streaming_response")

TRANSCRIPT_MEDIA_TYPE = "text/event-stream"

# Sem cache e sem buffering em proxies: cada texto deve chegar ao cliente
# assim que for escrito.
STREAM_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class TranscriptStreamResponse(StreamingResponse):
    """StreamingResponse que nao consome ``receive``.

    O corpo da request continua sendo lido pela sessao enquanto a resposta
    e transmitida, entao a deteccao de desconexao fica com o leitor do
    corpo (``http.disconnect`` chega por ele). O StreamingResponse padrao
    escuta ``receive`` em paralelo e roubaria as mensagens do corpo.
    """

    def __init__(self, content: AsyncIterator[str], status_code: int = 200) -> None:
        super().__init__(
            content,
            status_code=status_code,
            headers=dict(STREAM_HEADERS),
            media_type=TRANSCRIPT_MEDIA_TYPE,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await self.stream_response(send)
        except OSError as exc:
            logger.info("client_gone_during_response", error=str(exc))
        finally:
            aclose = getattr(self.body_iterator, "aclose", None)
            if aclose is not None:
                await aclose()

        if self.background is not None:
            await self.background()
