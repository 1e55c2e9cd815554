"""Configuracao do processo VoxStream.

Valores vem de variaveis de ambiente (opcionalmente de um arquivo ``.env``
no diretorio de trabalho). Opcoes de linha de comando tem precedencia e sao
revalidadas sobre os valores do ambiente.

Variaveis reconhecidas:
    MODEL_PATH                    diretorio do bundle do modelo (default "model")
    PORT                          porta HTTP (default 6010)
    HOST                          interface de bind (default 127.0.0.1)
    VOXSTREAM_IDLE_TIMEOUT_S      inatividade maxima por sessao, 0 desabilita (default 30)
    VOXSTREAM_MAX_PENDING_CHUNKS  chunks enfileirados por sessao antes de backpressure (default 64)
    VOXSTREAM_FLUSH_ON_END        emite o resultado final pendente no fim do stream (default false)
    VOXSTREAM_CORS_ORIGINS        origins CORS separados por virgula
    VOXSTREAM_LOG_FORMAT          "console" ou "json"
    VOXSTREAM_LOG_LEVEL           DEBUG, INFO, WARNING, ERROR
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from voxstream.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_MODEL_PATH = "model"
DEFAULT_PORT = 6010
DEFAULT_HOST = "127.0.0.1"

_ENV_KEYS: dict[str, str] = {
    "model_path": "MODEL_PATH",
    "port": "PORT",
    "host": "HOST",
    "idle_timeout_s": "VOXSTREAM_IDLE_TIMEOUT_S",
    "max_pending_chunks": "VOXSTREAM_MAX_PENDING_CHUNKS",
    "flush_on_end": "VOXSTREAM_FLUSH_ON_END",
    "cors_origins": "VOXSTREAM_CORS_ORIGINS",
    "log_format": "VOXSTREAM_LOG_FORMAT",
    "log_level": "VOXSTREAM_LOG_LEVEL",
}


class Settings(BaseModel):
    """Configuracao validada do servidor."""

    model_config = ConfigDict(protected_namespaces=())

    model_path: str = DEFAULT_MODEL_PATH
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    host: str = DEFAULT_HOST
    idle_timeout_s: float = Field(default=30.0, ge=0.0)
    max_pending_chunks: int = Field(default=64, ge=1)
    flush_on_end: bool = False
    cors_origins: list[str] = []
    log_format: str = "console"
    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        if value not in ("console", "json"):
            msg = f"log_format deve ser 'console' ou 'json', recebeu '{value}'"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def idle_timeout(self) -> float | None:
        """Timeout de inatividade em segundos, ou None se desabilitado."""
        return self.idle_timeout_s or None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv: bool = True,
    ) -> Settings:
        """Constroi Settings a partir de variaveis de ambiente.

        Args:
            environ: Mapeamento de variaveis (default: os.environ).
            dotenv: Se True e environ nao foi passado, carrega ``.env`` antes
                de ler o ambiente. Variaveis ja definidas nao sao sobrescritas.

        Raises:
            ConfigError: Se algum valor for invalido.
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True), override=False)
            environ = os.environ

        raw = {field: environ[key] for field, key in _ENV_KEYS.items() if key in environ}
        try:
            return cls(**raw)
        except ValidationError as exc:
            raise ConfigError(f"Configuracao invalida: {exc}") from exc
