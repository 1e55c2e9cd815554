"""SessionStateMachine — maquina de estados da sessao de streaming.

Componente puro e sincrono: nao conhece asyncio, HTTP ou a engine. O caller
(StreamingSession) e responsavel por chamar transition() nos momentos certos.

Estados:
    OPEN -> STREAMING -> {CLOSED, FAILED}

Regras:
- STREAMING -> STREAMING e valida (self-loop a cada chunk processado).
- OPEN pode terminar direto (stream vazio ou erro antes do primeiro chunk).
- CLOSED e FAILED sao terminais: nenhuma transicao e aceita.
- Transicoes invalidas levantam InvalidTransitionError.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from voxstream._types import SessionState
from voxstream.exceptions import InvalidTransitionError

if TYPE_CHECKING:
    from collections.abc import Callable

# Transicoes validas: {estado_atual: {estados_alvo_permitidos}}
_VALID_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.OPEN: frozenset(
        {SessionState.STREAMING, SessionState.CLOSED, SessionState.FAILED}
    ),
    SessionState.STREAMING: frozenset(
        {SessionState.STREAMING, SessionState.CLOSED, SessionState.FAILED}
    ),
    SessionState.CLOSED: frozenset(),
    SessionState.FAILED: frozenset(),
}


class SessionStateMachine:
    """Maquina de estados de uma sessao de streaming.

    Args:
        on_enter: Callbacks chamados ao ENTRAR em um estado. Nao sao chamados
            no self-loop STREAMING -> STREAMING.
        clock: Funcao que retorna timestamp monotonic (para testes deterministicos).
    """

    def __init__(
        self,
        on_enter: dict[SessionState, Callable[[], None]] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._state = SessionState.OPEN
        self._on_enter = on_enter or {}
        self._clock = clock or time.monotonic
        self._created_at = self._clock()
        self._state_entered_at = self._created_at

    @property
    def state(self) -> SessionState:
        """Estado atual da sessao."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    @property
    def elapsed_in_state_ms(self) -> int:
        """Tempo (em milissegundos) que a sessao esta no estado atual."""
        return int((self._clock() - self._state_entered_at) * 1000)

    @property
    def age_s(self) -> float:
        """Tempo (em segundos) desde a criacao da sessao."""
        return self._clock() - self._created_at

    def can_transition(self, target: SessionState) -> bool:
        return target in _VALID_TRANSITIONS[self._state]

    def transition(self, target: SessionState) -> None:
        """Transita para o estado alvo.

        Raises:
            InvalidTransitionError: Se a transicao e invalida.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self._state.value, target.value)

        if target == self._state:
            return

        self._state = target
        self._state_entered_at = self._clock()

        enter_cb = self._on_enter.get(target)
        if enter_cb is not None:
            enter_cb()
