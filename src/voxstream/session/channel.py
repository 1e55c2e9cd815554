"""ResultChannel — canal de saida ordenado de uma sessao.

Produtor unico (o worker loop da sessao) e consumidor unico (o corpo da
resposta HTTP). ``send()`` so retorna depois que o consumidor pediu o
proximo item, ou seja, depois que o texto anterior foi escrito no
transporte. Isso garante que cada emissao e entregue antes do proximo
chunk ser processado.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

_CLOSED = object()


class ResultChannel:
    """Canal de textos reconhecidos com confirmacao de entrega."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._error: BaseException | None = None
        self._sent = 0

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> BaseException | None:
        """Causa do encerramento anormal, ou None se fechado normalmente."""
        return self._error

    @property
    def sent(self) -> int:
        """Quantidade de textos enviados ao canal."""
        return self._sent

    async def send(self, text: str) -> None:
        """Enfileira um texto e espera o consumidor confirmar a entrega.

        Raises:
            RuntimeError: Se o canal ja foi fechado.
        """
        if self._closed:
            msg = "ResultChannel ja fechado"
            raise RuntimeError(msg)
        self._sent += 1
        self._queue.put_nowait(text)
        await self._queue.join()

    def close(self, error: BaseException | None = None) -> None:
        """Fecha o canal. Idempotente; a primeira causa registrada prevalece."""
        if self._closed:
            return
        self._closed = True
        self._error = error
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            try:
                if item is _CLOSED:
                    return
                yield item  # type: ignore[misc]
            finally:
                self._queue.task_done()
