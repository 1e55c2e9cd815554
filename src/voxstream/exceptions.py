"""Exceptions tipadas do VoxStream.

Hierarquia:
    VoxStreamError (base)
    +-- ConfigError
    +-- ModelError
    |   +-- ModelNotFoundError
    |   +-- ModelLoadError
    |   +-- EngineNotReadyError
    +-- AudioError
    |   +-- AudioFormatError
    +-- SessionError
    |   +-- SessionNotFoundError
    |   +-- SessionClosedError
    |   +-- InvalidTransitionError
    |   +-- SessionIdleTimeoutError
    +-- TransportError
    |   +-- StreamAbortedError
    |   +-- ServerShuttingDownError
    +-- ResourceReleaseError
"""

from __future__ import annotations


class VoxStreamError(Exception):
    """Base para todas as exceptions do VoxStream."""


# --- Configuracao ---


class ConfigError(VoxStreamError):
    """Erro de configuracao do runtime."""


# --- Modelo / engine ---


class ModelError(VoxStreamError):
    """Erro relacionado ao modelo acustico/linguistico."""


class ModelNotFoundError(ModelError):
    """Bundle do modelo nao encontrado no caminho configurado."""

    def __init__(self, model_path: str) -> None:
        self.model_path = model_path
        super().__init__(f"Modelo nao encontrado em '{model_path}'")


class ModelLoadError(ModelError):
    """Falha ao carregar o modelo ou criar um recognizer."""

    def __init__(self, model_path: str, reason: str) -> None:
        self.model_path = model_path
        self.reason = reason
        super().__init__(f"Falha ao carregar modelo '{model_path}': {reason}")


class EngineNotReadyError(ModelError):
    """Engine sem modelo carregado."""

    def __init__(self) -> None:
        super().__init__("Engine de reconhecimento nao esta pronta")


# --- Audio ---


class AudioError(VoxStreamError):
    """Erro relacionado a audio."""


class AudioFormatError(AudioError):
    """Formato de audio nao suportado ou invalido."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Formato de audio invalido: {detail}")


# --- Sessao ---


class SessionError(VoxStreamError):
    """Erro relacionado a sessoes de streaming."""


class SessionNotFoundError(SessionError):
    """Sessao nao encontrada."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Sessao '{session_id}' nao encontrada")


class SessionClosedError(SessionError):
    """Operacao tentada em sessao ja encerrada."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Sessao '{session_id}' ja esta encerrada")


class InvalidTransitionError(SessionError):
    """Transicao de estado invalida na maquina de estados da sessao."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Transicao invalida: {from_state} -> {to_state}")


class SessionIdleTimeoutError(SessionError):
    """Nenhum chunk recebido dentro do timeout de inatividade."""

    def __init__(self, session_id: str, timeout_s: float) -> None:
        self.session_id = session_id
        self.timeout_s = timeout_s
        super().__init__(f"Sessao '{session_id}' inativa por mais de {timeout_s}s")


# --- Transporte ---


class TransportError(VoxStreamError):
    """Falha no canal de transporte do stream."""


class StreamAbortedError(TransportError):
    """Stream de entrada abortado (desconexao do cliente, erro de leitura)."""

    def __init__(self, session_id: str, reason: str) -> None:
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Stream da sessao '{session_id}' abortado: {reason}")


class ServerShuttingDownError(TransportError):
    """Sessao encerrada porque o servidor esta desligando."""

    def __init__(self) -> None:
        super().__init__("Servidor em shutdown")


# --- Recursos ---


class ResourceReleaseError(VoxStreamError):
    """Falha ao liberar recognizer ou recursos derivados do modelo."""

    def __init__(self, resource: str, reason: str) -> None:
        self.resource = resource
        self.reason = reason
        super().__init__(f"Falha ao liberar '{resource}': {reason}")
