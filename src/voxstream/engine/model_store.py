"""ModelStore — verificacao de presenca do bundle do modelo no filesystem.

Executado uma unica vez no startup, antes de qualquer bind de porta.
Nao carrega o modelo; apenas garante que o diretorio configurado existe
e tem conteudo.
"""

from __future__ import annotations

from pathlib import Path

from voxstream.exceptions import ModelNotFoundError
from voxstream.logging import get_logger

logger = get_logger("engine.model_store")

MODEL_DOWNLOAD_URL = "https://alphacephei.com/vosk/models"


class ModelStore:
    """Localiza o bundle do modelo no caminho configurado."""

    def __init__(self, model_path: str | Path) -> None:
        self._model_path = Path(model_path).expanduser()

    @property
    def model_path(self) -> Path:
        return self._model_path

    def exists(self) -> bool:
        """True se o caminho existe e e um diretorio nao vazio."""
        path = self._model_path
        try:
            return path.is_dir() and any(path.iterdir())
        except OSError as exc:
            logger.warning("model_unreadable", model_path=str(path), error=str(exc))
            return False

    def ensure_present(self) -> Path:
        """Garante que o bundle existe.

        Returns:
            Caminho resolvido do modelo.

        Raises:
            ModelNotFoundError: Se o diretorio nao existe, esta vazio ou
                nao pode ser lido.
        """
        if not self.exists():
            logger.error("model_not_found", model_path=str(self._model_path))
            raise ModelNotFoundError(str(self._model_path))

        logger.info("model_found", model_path=str(self._model_path))
        return self._model_path

    def diagnostic(self) -> str:
        """Mensagem para o operador quando o modelo nao foi encontrado."""
        return (
            f"Modelo nao encontrado em '{self._model_path}'. "
            f"Baixe um modelo em {MODEL_DOWNLOAD_URL} e descompacte como "
            f"'{self._model_path}' (ou defina MODEL_PATH)."
        )
