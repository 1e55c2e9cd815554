"""Tipos fundamentais do VoxStream.

Este modulo define enums, dataclasses e constantes de formato de audio
usados por todos os componentes do runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Unico formato de entrada suportado: PCM 16-bit little-endian, mono, 16kHz.
# Nao ha resampling nem negociacao de formato.
SAMPLE_RATE = 16000
SAMPLE_WIDTH_BYTES = 2
CHANNELS = 1


class SessionState(Enum):
    """Estado de uma sessao de streaming.

    Transicoes validas:
        OPEN -> STREAMING (primeiro chunk processado)
        STREAMING -> STREAMING (cada chunk processado)
        OPEN | STREAMING -> CLOSED (fim normal do stream)
        OPEN | STREAMING -> FAILED (erro de transporte, timeout, shutdown)
    CLOSED e FAILED sao terminais.
    """

    OPEN = "open"
    STREAMING = "streaming"
    CLOSED = "closed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.CLOSED, SessionState.FAILED)


@dataclass(frozen=True, slots=True)
class RecognizerResult:
    """Resultado de texto produzido pelo recognizer.

    A ausencia de fronteira de utterance e representada por ``None`` no
    caller; uma instancia com ``text == ""`` significa que a fronteira foi
    atingida mas o transcript ficou vazio. Apenas resultados nao vazios
    sao emitidos ao cliente.
    """

    text: str
    is_final: bool = True

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True, slots=True)
class SessionStats:
    """Snapshot de diagnostico de uma sessao."""

    session_id: str
    state: SessionState
    bytes_consumed: int
    chunks_processed: int
    chunk_faults: int
    emissions: int
