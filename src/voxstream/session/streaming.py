"""StreamingSession — ator de reconhecimento de uma unica conexao.

Cada stream de entrada possui uma StreamingSession com:
- um recognizer exclusivo (criado a partir do modelo compartilhado);
- uma fila de chunks de entrada com consumidor unico (o worker loop);
- um ResultChannel de saida consumido pelo transporte.

Maquina de estados: OPEN -> STREAMING -> {CLOSED, FAILED}.

Regras:
- Chunks sao processados estritamente na ordem de chegada; nunca ha duas
  chamadas concorrentes ao mesmo recognizer.
- A chamada ao recognizer roda no executor do loop, para que uma sessao
  lenta nao bloqueie as demais.
- Cada emissao e entregue (flush) antes do proximo chunk ser processado.
- Falha em um chunk e isolada: logada, contada, e a sessao continua.
- end() processa os chunks ja enfileirados e depois libera (CLOSED).
- fail() cancela o worker, descarta chunks pendentes e libera (FAILED).
- O recognizer e liberado exatamente uma vez; o primeiro caminho de
  encerramento a reivindicar o FinalizeGuard vence, os demais sao no-op.
- Uma chamada ao recognizer ja em andamento numa thread nunca e
  interrompida: o release espera ela retornar e descarta o resultado.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

from voxstream._types import SAMPLE_WIDTH_BYTES, RecognizerResult, SessionState, SessionStats
from voxstream.exceptions import SessionClosedError, SessionIdleTimeoutError
from voxstream.logging import get_logger
from voxstream.session import metrics
from voxstream.session.channel import ResultChannel
from voxstream.session.guard import FinalizeGuard
from voxstream.session.state_machine import SessionStateMachine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from voxstream.engine.interface import Recognizer

logger = get_logger("session.streaming")

_END_OF_STREAM = object()


class StreamingSession:
    """Sessao de reconhecimento em streaming.

    Lifecycle tipico:
        1. Criar StreamingSession com o recognizer da sessao
        2. Chamar start() (retorna imediatamente)
        3. Chamar push_chunk() para cada chunk recebido
        4. Consumir results() em paralelo
        5. Chamar end() no fim normal ou fail() em erro de transporte

    Args:
        session_id: Identificador unico da sessao.
        recognizer: Recognizer exclusivo desta sessao.
        max_pending_chunks: Tamanho maximo da fila de entrada. push_chunk()
            espera quando a fila esta cheia (backpressure para o transporte).
        idle_timeout_s: Tempo maximo sem chunks antes de falhar a sessao
            (None desabilita).
        flush_on_end: Se True, emite o resultado final do audio pendente
            quando o stream termina normalmente.
        on_terminated: Callback chamado uma vez apos o release.
        state_machine: SessionStateMachine (opcional, para testes).
    """

    def __init__(
        self,
        session_id: str,
        recognizer: Recognizer,
        *,
        max_pending_chunks: int = 64,
        idle_timeout_s: float | None = None,
        flush_on_end: bool = False,
        on_terminated: Callable[[StreamingSession], None] | None = None,
        state_machine: SessionStateMachine | None = None,
    ) -> None:
        self._session_id = session_id
        self._recognizer: Recognizer | None = recognizer
        self._idle_timeout_s = idle_timeout_s
        self._flush_on_end = flush_on_end
        self._on_terminated = on_terminated
        self._state_machine = state_machine or SessionStateMachine()

        self._inbound: asyncio.Queue[object] = asyncio.Queue(maxsize=max_pending_chunks)
        self._channel = ResultChannel()
        self._guard = FinalizeGuard()
        self._terminated = asyncio.Event()

        self._task: asyncio.Task[None] | None = None
        self._finalizer: asyncio.Future[None] | None = None
        # Future da chamada ao recognizer em andamento no executor
        self._inflight: asyncio.Future[RecognizerResult | None] | None = None

        self._end_requested = False
        self._failure: BaseException | None = None

        # Byte impar do chunk anterior (amostra PCM16 cortada ao meio)
        self._remainder = b""

        self._bytes_consumed = 0
        self._chunks_processed = 0
        self._chunk_faults = 0

        metrics.active_sessions.inc()

    # ------------------------------------------------------------------
    # Propriedades
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> SessionState:
        return self._state_machine.state

    @property
    def is_terminal(self) -> bool:
        """True se a sessao ja foi (ou esta sendo) finalizada."""
        return self._guard.claimed

    @property
    def accepting_chunks(self) -> bool:
        return not self._end_requested and not self._guard.claimed

    @property
    def bytes_consumed(self) -> int:
        return self._bytes_consumed

    @property
    def emissions(self) -> int:
        """Quantidade de textos enviados ao canal de saida."""
        return self._channel.sent

    @property
    def failure(self) -> BaseException | None:
        """Causa do encerramento se a sessao terminou em FAILED."""
        return self._failure

    def stats(self) -> SessionStats:
        return SessionStats(
            session_id=self._session_id,
            state=self.state,
            bytes_consumed=self._bytes_consumed,
            chunks_processed=self._chunks_processed,
            chunk_faults=self._chunk_faults,
            emissions=self._channel.sent,
        )

    # ------------------------------------------------------------------
    # Operacoes
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Inicia o worker loop da sessao. Nao bloqueia."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"voxstream-session-{self._session_id}"
        )
        logger.info("session_opened", session_id=self._session_id)

    async def push_chunk(self, chunk: bytes) -> None:
        """Enfileira um chunk de audio para processamento.

        Espera se a fila de entrada estiver cheia.

        Raises:
            SessionClosedError: Se o stream ja terminou ou a sessao falhou.
        """
        if not self.accepting_chunks:
            raise SessionClosedError(self._session_id)
        if not chunk:
            return
        await self._inbound.put(bytes(chunk))

    async def end(self) -> None:
        """Sinaliza fim normal do stream.

        Chunks ja enfileirados continuam sendo processados; o release
        acontece depois do ultimo. Idempotente.
        """
        if not self.accepting_chunks:
            return
        self._end_requested = True
        logger.debug("session_end_requested", session_id=self._session_id)
        await self._inbound.put(_END_OF_STREAM)

    async def fail(self, cause: BaseException) -> bool:
        """Encerra a sessao abruptamente.

        Cancela o worker loop, descarta chunks pendentes e libera o
        recognizer. No-op se outro caminho ja finalizou a sessao.

        Returns:
            True se esta chamada executou o encerramento.
        """
        if not self._guard.claim("error"):
            return False

        task = self._task
        if task is asyncio.current_task():
            task = None
        # Depois do claim o encerramento precisa terminar mesmo que quem
        # chamou fail() seja cancelado: roda em task propria, sob shield.
        self._finalizer = asyncio.ensure_future(self._shutdown(task, cause))
        await asyncio.shield(self._finalizer)
        return True

    async def _shutdown(self, worker: asyncio.Task[None] | None, cause: BaseException) -> None:
        if worker is not None and not worker.done():
            worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker

        self._drain_inbound()
        await self._release(SessionState.FAILED, cause)

    def results(self) -> AsyncIterator[str]:
        """Iterador dos textos reconhecidos, na ordem de emissao.

        Termina quando a sessao e encerrada (normalmente ou por falha).
        Deve haver um unico consumidor.
        """
        return self._channel.__aiter__()

    async def wait_closed(self) -> None:
        """Espera a sessao atingir um estado terminal."""
        await self._terminated.wait()

    # ------------------------------------------------------------------
    # Worker loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        try:
            while True:
                item = await self._next_item()
                if item is _END_OF_STREAM:
                    break
                await self._process_chunk(item)  # type: ignore[arg-type]
        except SessionIdleTimeoutError as exc:
            logger.info(
                "session_idle_timeout",
                session_id=self._session_id,
                timeout_s=self._idle_timeout_s,
            )
            await self._fail_from_worker("idle_timeout", exc)
            return
        except Exception as exc:
            logger.error(
                "session_worker_error",
                session_id=self._session_id,
                error=str(exc),
                exc_info=True,
            )
            await self._fail_from_worker("worker_error", exc)
            return

        if not self._guard.claim("end"):
            return
        if self._flush_on_end:
            await self._flush_final()
        await self._release(SessionState.CLOSED, None)

    async def _next_item(self) -> object:
        if self._idle_timeout_s is None:
            return await self._inbound.get()
        try:
            return await asyncio.wait_for(self._inbound.get(), timeout=self._idle_timeout_s)
        except asyncio.TimeoutError:
            raise SessionIdleTimeoutError(self._session_id, self._idle_timeout_s) from None

    async def _process_chunk(self, chunk: bytes) -> None:
        self._bytes_consumed += len(chunk)
        metrics.audio_bytes_total.inc(len(chunk))

        aligned = self._align(chunk)
        result = await self._feed(aligned) if aligned else None

        self._state_machine.transition(SessionState.STREAMING)

        if result is not None and not result.is_empty:
            await self._emit(result)

    def _align(self, chunk: bytes) -> bytes:
        """Retorna apenas amostras completas, guardando o byte que sobrar."""
        data = self._remainder + chunk if self._remainder else chunk
        cut = len(data) - (len(data) % SAMPLE_WIDTH_BYTES)
        self._remainder = data[cut:]
        return data[:cut]

    async def _feed(self, chunk: bytes) -> RecognizerResult | None:
        loop = asyncio.get_running_loop()
        self._inflight = loop.run_in_executor(None, self._accept, chunk)
        try:
            result = await asyncio.shield(self._inflight)
        except Exception as exc:
            self._chunk_faults += 1
            metrics.chunk_faults_total.inc()
            logger.warning(
                "chunk_processing_failed",
                session_id=self._session_id,
                chunk_bytes=len(chunk),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            result = None
        self._inflight = None
        self._chunks_processed += 1
        metrics.chunks_processed_total.inc()
        return result

    def _accept(self, chunk: bytes) -> RecognizerResult | None:
        """Executa no executor: alimenta o recognizer e le o resultado."""
        recognizer = self._recognizer
        if recognizer is None:
            raise SessionClosedError(self._session_id)
        if recognizer.accept_waveform(chunk):
            return recognizer.result()
        return None

    async def _emit(self, result: RecognizerResult) -> None:
        logger.debug(
            "utterance_recognized",
            session_id=self._session_id,
            text=result.text,
            is_final=result.is_final,
        )
        metrics.emissions_total.inc()
        await self._channel.send(result.text)

    async def _flush_final(self) -> None:
        recognizer = self._recognizer
        if recognizer is None:
            return
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, recognizer.final_result)
        except Exception as exc:
            logger.warning(
                "final_result_failed",
                session_id=self._session_id,
                error=str(exc),
            )
            return
        if not result.is_empty:
            await self._emit(result)

    async def _fail_from_worker(self, path: str, cause: BaseException) -> None:
        if not self._guard.claim(path):
            return
        self._drain_inbound()
        await self._release(SessionState.FAILED, cause)

    # ------------------------------------------------------------------
    # Encerramento
    # ------------------------------------------------------------------

    def _drain_inbound(self) -> None:
        dropped = 0
        while True:
            try:
                item = self._inbound.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is not _END_OF_STREAM:
                dropped += 1
        if dropped:
            logger.debug("pending_chunks_dropped", session_id=self._session_id, count=dropped)

    async def _release(self, terminal: SessionState, cause: BaseException | None) -> None:
        """Libera o recognizer e fecha o canal. Chamado uma unica vez."""
        inflight, self._inflight = self._inflight, None
        if inflight is not None and not inflight.cancelled():
            try:
                await inflight
            except Exception as exc:
                logger.debug(
                    "inflight_chunk_discarded",
                    session_id=self._session_id,
                    error=str(exc),
                )

        recognizer, self._recognizer = self._recognizer, None
        if recognizer is not None:
            try:
                recognizer.free()
            except Exception as exc:
                metrics.release_failures_total.inc()
                logger.error(
                    "recognizer_release_failed",
                    session_id=self._session_id,
                    error=str(exc),
                    exc_info=True,
                )

        self._failure = cause
        self._state_machine.transition(terminal)
        self._channel.close(cause)

        metrics.active_sessions.dec()
        metrics.sessions_total.labels(outcome=terminal.value).inc()
        metrics.session_duration_seconds.observe(self._state_machine.age_s)

        log = logger.warning if cause is not None else logger.info
        log(
            "session_closed",
            session_id=self._session_id,
            state=terminal.value,
            finalized_by=self._guard.claimed_by,
            reason=str(cause) if cause is not None else None,
            bytes_consumed=self._bytes_consumed,
            chunks_processed=self._chunks_processed,
            chunk_faults=self._chunk_faults,
            emissions=self._channel.sent,
        )

        self._terminated.set()

        if self._on_terminated is not None:
            try:
                self._on_terminated(self)
            except Exception:
                logger.error(
                    "on_terminated_callback_error",
                    session_id=self._session_id,
                    exc_info=True,
                )
