"""Testes unitarios para SessionStateMachine.

Cobre: transicoes validas, transicoes invalidas, estados terminais,
callbacks on_enter, clock injetavel e elapsed_in_state_ms.
"""

from __future__ import annotations

import pytest

from voxstream._types import SessionState
from voxstream.exceptions import InvalidTransitionError
from voxstream.session.state_machine import SessionStateMachine

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Clock deterministico para testes."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


# ---------------------------------------------------------------------------
# Estado inicial
# ---------------------------------------------------------------------------


class TestInitialState:
    def test_initial_state_is_open(self) -> None:
        sm = SessionStateMachine()
        assert sm.state == SessionState.OPEN
        assert sm.is_terminal is False


# ---------------------------------------------------------------------------
# Transicoes validas
# ---------------------------------------------------------------------------


class TestValidTransitions:
    def test_open_to_streaming(self) -> None:
        sm = SessionStateMachine()
        sm.transition(SessionState.STREAMING)
        assert sm.state == SessionState.STREAMING

    def test_streaming_self_loop(self) -> None:
        sm = SessionStateMachine()
        sm.transition(SessionState.STREAMING)
        sm.transition(SessionState.STREAMING)
        assert sm.state == SessionState.STREAMING

    @pytest.mark.parametrize("terminal", [SessionState.CLOSED, SessionState.FAILED])
    def test_open_can_terminate_directly(self, terminal: SessionState) -> None:
        sm = SessionStateMachine()
        sm.transition(terminal)
        assert sm.state == terminal
        assert sm.is_terminal

    @pytest.mark.parametrize("terminal", [SessionState.CLOSED, SessionState.FAILED])
    def test_streaming_to_terminal(self, terminal: SessionState) -> None:
        sm = SessionStateMachine()
        sm.transition(SessionState.STREAMING)
        sm.transition(terminal)
        assert sm.state == terminal


# ---------------------------------------------------------------------------
# Transicoes invalidas
# ---------------------------------------------------------------------------


class TestInvalidTransitions:
    @pytest.mark.parametrize("terminal", [SessionState.CLOSED, SessionState.FAILED])
    @pytest.mark.parametrize("target", list(SessionState))
    def test_terminal_states_accept_nothing(
        self, terminal: SessionState, target: SessionState
    ) -> None:
        sm = SessionStateMachine()
        sm.transition(terminal)
        assert sm.can_transition(target) is False
        with pytest.raises(InvalidTransitionError):
            sm.transition(target)
        assert sm.state == terminal

    def test_cannot_go_back_to_open(self) -> None:
        sm = SessionStateMachine()
        sm.transition(SessionState.STREAMING)
        with pytest.raises(InvalidTransitionError, match="streaming -> open"):
            sm.transition(SessionState.OPEN)


# ---------------------------------------------------------------------------
# Callbacks e tempo
# ---------------------------------------------------------------------------


class TestCallbacks:
    def test_on_enter_called_once_per_state(self) -> None:
        entered: list[SessionState] = []
        sm = SessionStateMachine(
            on_enter={
                SessionState.STREAMING: lambda: entered.append(SessionState.STREAMING),
                SessionState.CLOSED: lambda: entered.append(SessionState.CLOSED),
            }
        )
        sm.transition(SessionState.STREAMING)
        sm.transition(SessionState.STREAMING)
        sm.transition(SessionState.CLOSED)
        assert entered == [SessionState.STREAMING, SessionState.CLOSED]


class TestTiming:
    def test_elapsed_in_state_resets_on_transition(self) -> None:
        clock = FakeClock()
        sm = SessionStateMachine(clock=clock)
        clock.advance(1.5)
        assert sm.elapsed_in_state_ms == 1500

        sm.transition(SessionState.STREAMING)
        clock.advance(0.25)
        assert sm.elapsed_in_state_ms == 250

    def test_self_loop_does_not_reset_elapsed(self) -> None:
        clock = FakeClock()
        sm = SessionStateMachine(clock=clock)
        sm.transition(SessionState.STREAMING)
        clock.advance(1.0)
        sm.transition(SessionState.STREAMING)
        assert sm.elapsed_in_state_ms == 1000

    def test_age_counts_from_creation(self) -> None:
        clock = FakeClock(start=10.0)
        sm = SessionStateMachine(clock=clock)
        sm.transition(SessionState.STREAMING)
        clock.advance(3.0)
        sm.transition(SessionState.CLOSED)
        assert sm.age_s == pytest.approx(3.0)
