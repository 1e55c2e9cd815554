"""Interface abstrata para engines de reconhecimento de fala.

A engine e tratada como caixa-preta: o runtime so conhece o carregamento
do modelo (uma vez por processo) e a fabrica de recognizers por sessao.
Extracao de features, decodificacao e scoring ficam dentro da engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from voxstream._types import RecognizerResult


class Recognizer(ABC):
    """Recognizer stateful de uma unica sessao.

    Nao e thread-safe e nunca e compartilhado entre sessoes. O runtime
    garante que as chamadas sao serializadas (no maximo uma em andamento)
    e que ``free()`` e chamado exatamente uma vez, sem chamadas concorrentes.
    """

    @abstractmethod
    def accept_waveform(self, chunk: bytes) -> bool:
        """Alimenta o recognizer com audio PCM 16-bit mono.

        Returns:
            True se uma fronteira de utterance foi atingida e ``result()``
            tem o texto finalizado.
        """
        ...

    @abstractmethod
    def result(self) -> RecognizerResult:
        """Texto da utterance finalizada pela ultima fronteira."""
        ...

    @abstractmethod
    def final_result(self) -> RecognizerResult:
        """Forca a finalizacao do audio pendente (fim de stream)."""
        ...

    @abstractmethod
    def free(self) -> None:
        """Libera o estado de decodificacao.

        Raises:
            ResourceReleaseError: Se a liberacao falhar.
        """
        ...


class SpeechEngine(ABC):
    """Contrato que toda engine de reconhecimento deve implementar.

    O modelo carregado e imutavel e compartilhado (somente leitura) por
    todos os recognizers criados a partir dele.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Nome da engine (ex: "vosk")."""
        ...

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """True se o modelo esta carregado e recognizers podem ser criados."""
        ...

    @abstractmethod
    async def load(self, model_path: str) -> None:
        """Carrega o modelo em memoria.

        Raises:
            ModelLoadError: Se o modelo nao puder ser carregado.
        """
        ...

    @abstractmethod
    def create_recognizer(self, sample_rate: int) -> Recognizer:
        """Cria um recognizer novo para uma sessao.

        Raises:
            EngineNotReadyError: Se o modelo nao esta carregado.
            ModelLoadError: Se a engine falhar ao criar o recognizer.
        """
        ...

    @abstractmethod
    async def unload(self) -> None:
        """Descarrega o modelo. Chamado apenas no shutdown do processo."""
        ...

    def health(self) -> dict[str, str]:
        """Status da engine para o endpoint /health."""
        return {"name": self.name, "status": "ok" if self.is_loaded else "not_loaded"}
