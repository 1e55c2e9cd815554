"""Leitura de arquivos WAV no formato aceito pelo servidor.

O endpoint de streaming aceita apenas PCM16 little-endian, mono, 16 kHz,
sem header. Estas funcoes extraem os frames de um WAV e os cortam em
chunks para envio.
"""

from __future__ import annotations

import wave
from typing import TYPE_CHECKING

from voxstream._types import CHANNELS, SAMPLE_RATE, SAMPLE_WIDTH_BYTES
from voxstream.exceptions import AudioFormatError
from voxstream.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

logger = get_logger("audio")


def read_pcm16_wav(path: Path) -> bytes:
    """Le os frames PCM de um WAV 16 kHz mono 16-bit.

    Raises:
        AudioFormatError: Se o arquivo nao e WAV ou usa outro formato.
    """
    try:
        with wave.open(str(path), "rb") as wf:
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            sample_rate = wf.getframerate()
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as exc:
        raise AudioFormatError(f"WAV invalido: {exc}") from exc

    if sampwidth != SAMPLE_WIDTH_BYTES:
        raise AudioFormatError(f"Esperado PCM 16-bit, recebeu {sampwidth * 8}-bit")
    if n_channels != CHANNELS:
        raise AudioFormatError(f"Esperado audio mono, recebeu {n_channels} canais")
    if sample_rate != SAMPLE_RATE:
        raise AudioFormatError(f"Esperado {SAMPLE_RATE} Hz, recebeu {sample_rate} Hz")

    logger.debug(
        "wav_loaded",
        path=str(path),
        bytes=len(frames),
        duration_s=round(len(frames) / (SAMPLE_RATE * SAMPLE_WIDTH_BYTES), 3),
    )
    return frames


def chunk_bytes_for(chunk_ms: int) -> int:
    """Tamanho em bytes de um chunk de ``chunk_ms`` milissegundos."""
    if chunk_ms <= 0:
        raise AudioFormatError(f"Duracao de chunk invalida: {chunk_ms} ms")
    return SAMPLE_RATE * SAMPLE_WIDTH_BYTES * chunk_ms // 1000


def iter_chunks(pcm: bytes, chunk_size: int) -> Iterator[bytes]:
    """Corta ``pcm`` em fatias de ``chunk_size`` bytes (a ultima pode ser menor)."""
    for offset in range(0, len(pcm), chunk_size):
        yield pcm[offset : offset + chunk_size]
