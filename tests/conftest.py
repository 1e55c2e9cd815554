"""Fixtures compartilhadas para todos os testes."""

from __future__ import annotations

import threading
import time
import wave
from typing import TYPE_CHECKING

import numpy as np
import pytest

from voxstream._types import SAMPLE_RATE, RecognizerResult
from voxstream.engine.interface import Recognizer, SpeechEngine

if TYPE_CHECKING:
    from pathlib import Path


class FakeRecognizer(Recognizer):
    """Recognizer roteirizado: o N-esimo chunk (0-based) fecha uma utterance.

    Args:
        script: Mapa indice do chunk -> texto da utterance fechada nele.
        fail_on: Indices de chunks em que accept_waveform levanta erro.
        final_text: Texto retornado por final_result().
        delay_s: Tempo gasto em cada accept_waveform (simula decodificacao).
        gate: Se definido, accept_waveform espera o evento antes de retornar.
        final_gate: Se definido, final_result espera o evento antes de retornar.
        fail_free: Se True, free() levanta erro.
    """

    def __init__(
        self,
        script: dict[int, str] | None = None,
        *,
        fail_on: set[int] | None = None,
        final_text: str = "",
        delay_s: float = 0.0,
        gate: threading.Event | None = None,
        final_gate: threading.Event | None = None,
        fail_free: bool = False,
    ) -> None:
        self.script = script or {}
        self.fail_on = fail_on or set()
        self.final_text = final_text
        self.delay_s = delay_s
        self.gate = gate
        self.final_gate = final_gate
        self.fail_free = fail_free

        self.chunks: list[bytes] = []
        self.free_calls = 0
        self.max_concurrent = 0
        self._active = 0
        self._lock = threading.Lock()
        self._pending: str | None = None

    def accept_waveform(self, chunk: bytes) -> bool:
        with self._lock:
            self._active += 1
            self.max_concurrent = max(self.max_concurrent, self._active)
        try:
            index = len(self.chunks)
            self.chunks.append(bytes(chunk))
            if self.gate is not None:
                self.gate.wait(timeout=5.0)
            if self.delay_s:
                time.sleep(self.delay_s)
            if index in self.fail_on:
                msg = f"decoder error on chunk {index}"
                raise RuntimeError(msg)
            if index in self.script:
                self._pending = self.script[index]
                return True
            return False
        finally:
            with self._lock:
                self._active -= 1

    def result(self) -> RecognizerResult:
        text, self._pending = self._pending or "", None
        return RecognizerResult(text=text)

    def final_result(self) -> RecognizerResult:
        if self.final_gate is not None:
            self.final_gate.wait(timeout=5.0)
        return RecognizerResult(text=self.final_text)

    def free(self) -> None:
        self.free_calls += 1
        if self.fail_free:
            msg = "native free failed"
            raise RuntimeError(msg)


class FakeEngine(SpeechEngine):
    """Engine em memoria que entrega recognizers de uma fila pre-definida."""

    def __init__(self, recognizers: list[FakeRecognizer] | None = None, *, loaded: bool = True) -> None:
        self._queue = list(recognizers or [])
        self._loaded = loaded
        self.created: list[FakeRecognizer] = []
        self.sample_rates: list[int] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def load(self, model_path: str) -> None:
        self._loaded = True

    def create_recognizer(self, sample_rate: int) -> Recognizer:
        self.sample_rates.append(sample_rate)
        recognizer = self._queue.pop(0) if self._queue else FakeRecognizer()
        self.created.append(recognizer)
        return recognizer

    async def unload(self) -> None:
        self._loaded = False


def make_pcm(duration_s: float = 0.1, frequency: float = 440.0) -> bytes:
    """Gera PCM16 mono 16kHz (tom senoidal)."""
    t = np.arange(int(SAMPLE_RATE * duration_s)) / SAMPLE_RATE
    samples = (0.5 * 32767 * np.sin(2 * np.pi * frequency * t)).astype(np.int16)
    return samples.tobytes()


def write_wav(path: Path, pcm: bytes, *, sample_rate: int = SAMPLE_RATE, channels: int = 1) -> Path:
    """Escreve ``pcm`` como WAV 16-bit."""
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return path


@pytest.fixture
def pcm_chunk() -> bytes:
    """100ms de audio PCM 16-bit, 16kHz, mono."""
    return make_pcm(0.1)


@pytest.fixture
def wav_16khz(tmp_path: Path) -> Path:
    """WAV valido no formato aceito pelo servidor (0.5s)."""
    return write_wav(tmp_path / "sample_16khz.wav", make_pcm(0.5))


@pytest.fixture
def wav_8khz(tmp_path: Path) -> Path:
    """WAV com sample rate nao suportado."""
    return write_wav(tmp_path / "sample_8khz.wav", make_pcm(0.5), sample_rate=8000)
