"""Engine de reconhecimento usando Vosk (Kaldi).

O modelo e carregado uma vez e compartilhado; cada sessao recebe o seu
proprio KaldiRecognizer. Os handles nativos sao liberados pelo binding
quando o ultimo reference ao objeto Python e descartado.
"""

from __future__ import annotations

import asyncio
import json

from voxstream._types import RecognizerResult
from voxstream.engine.interface import Recognizer, SpeechEngine
from voxstream.exceptions import EngineNotReadyError, ModelLoadError, ResourceReleaseError
from voxstream.logging import get_logger

logger = get_logger("engine.vosk")

# Nivel de log do Kaldi: -1 silencia os logs nativos por chunk.
_KALDI_LOG_LEVEL = -1


def _parse_result(raw: str, key: str, *, is_final: bool) -> RecognizerResult:
    """Converte o JSON retornado pelo Vosk em RecognizerResult."""
    try:
        payload = json.loads(raw) if raw else {}
    except json.JSONDecodeError:
        logger.warning("invalid_recognizer_payload", payload=raw[:200])
        payload = {}
    text = payload.get(key) or ""
    return RecognizerResult(text=str(text).strip(), is_final=is_final)


class VoskRecognizer(Recognizer):
    """Adapter de KaldiRecognizer para a interface Recognizer."""

    def __init__(self, kaldi_recognizer: object) -> None:
        self._rec: object | None = kaldi_recognizer

    def _require(self) -> object:
        if self._rec is None:
            msg = "Recognizer ja liberado"
            raise RuntimeError(msg)
        return self._rec

    def accept_waveform(self, chunk: bytes) -> bool:
        return bool(self._require().AcceptWaveform(chunk))  # type: ignore[attr-defined]

    def result(self) -> RecognizerResult:
        return _parse_result(self._require().Result(), "text", is_final=True)  # type: ignore[attr-defined]

    def final_result(self) -> RecognizerResult:
        return _parse_result(self._require().FinalResult(), "text", is_final=True)  # type: ignore[attr-defined]

    def partial_result(self) -> RecognizerResult:
        """Hipotese parcial corrente (nao emitida pelo runtime, util para debug)."""
        return _parse_result(self._require().PartialResult(), "partial", is_final=False)  # type: ignore[attr-defined]

    def free(self) -> None:
        if self._rec is None:
            raise ResourceReleaseError("kaldi_recognizer", "recognizer ja liberado")
        self._rec = None


class VoskEngine(SpeechEngine):
    """Engine Vosk: carrega ``vosk.Model`` e fabrica ``KaldiRecognizer``."""

    def __init__(self, *, words: bool = False) -> None:
        self._model: object | None = None
        self._model_path: str | None = None
        self._words = words

    @property
    def name(self) -> str:
        return "vosk"

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    async def load(self, model_path: str) -> None:
        import vosk

        vosk.SetLogLevel(_KALDI_LOG_LEVEL)

        loop = asyncio.get_running_loop()
        try:
            self._model = await loop.run_in_executor(None, vosk.Model, model_path)
        except Exception as exc:
            raise ModelLoadError(model_path, str(exc)) from exc

        self._model_path = model_path
        logger.info("model_loaded", model_path=model_path)

    def create_recognizer(self, sample_rate: int) -> Recognizer:
        if self._model is None:
            raise EngineNotReadyError

        import vosk

        try:
            kaldi = vosk.KaldiRecognizer(self._model, sample_rate)
            if self._words:
                kaldi.SetWords(True)
        except Exception as exc:
            raise ModelLoadError(self._model_path or "unknown", str(exc)) from exc
        return VoskRecognizer(kaldi)

    async def unload(self) -> None:
        if self._model is None:
            return
        self._model = None
        logger.info("model_unloaded", model_path=self._model_path)

    def health(self) -> dict[str, str]:
        status = super().health()
        if self._model_path is not None:
            status["model_path"] = self._model_path
        return status
