"""Testes dos tipos fundamentais."""

from __future__ import annotations

import pytest

from voxstream._types import (
    CHANNELS,
    SAMPLE_RATE,
    SAMPLE_WIDTH_BYTES,
    RecognizerResult,
    SessionState,
)


def test_audio_format_constants() -> None:
    assert SAMPLE_RATE == 16000
    assert SAMPLE_WIDTH_BYTES == 2
    assert CHANNELS == 1


@pytest.mark.parametrize(
    ("state", "terminal"),
    [
        (SessionState.OPEN, False),
        (SessionState.STREAMING, False),
        (SessionState.CLOSED, True),
        (SessionState.FAILED, True),
    ],
)
def test_session_state_is_terminal(state: SessionState, terminal: bool) -> None:
    assert state.is_terminal is terminal


class TestRecognizerResult:
    def test_empty_text_is_empty(self) -> None:
        assert RecognizerResult(text="").is_empty
        assert RecognizerResult(text="   ").is_empty

    def test_text_is_not_empty(self) -> None:
        result = RecognizerResult(text="hello world")
        assert not result.is_empty
        assert result.is_final is True

    def test_is_frozen(self) -> None:
        result = RecognizerResult(text="a")
        with pytest.raises(AttributeError):
            result.text = "b"  # type: ignore[misc]
