"""Testes da leitura de WAV e do corte em chunks."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.conftest import make_pcm, write_wav
from voxstream.audio import chunk_bytes_for, iter_chunks, read_pcm16_wav
from voxstream.exceptions import AudioFormatError


class TestReadPcm16Wav:
    def test_reads_frames(self, wav_16khz: Path) -> None:
        pcm = read_pcm16_wav(wav_16khz)
        assert len(pcm) == 16000  # 0.5s * 16000 * 2 bytes

    def test_rejects_wrong_sample_rate(self, wav_8khz: Path) -> None:
        with pytest.raises(AudioFormatError, match="16000 Hz"):
            read_pcm16_wav(wav_8khz)

    def test_rejects_stereo(self, tmp_path: Path) -> None:
        path = write_wav(tmp_path / "stereo.wav", make_pcm(0.1) * 2, channels=2)
        with pytest.raises(AudioFormatError, match="mono"):
            read_pcm16_wav(path)

    def test_rejects_non_wav(self, tmp_path: Path) -> None:
        path = tmp_path / "audio.wav"
        path.write_bytes(b"definitely not a wav file")
        with pytest.raises(AudioFormatError):
            read_pcm16_wav(path)


class TestChunks:
    def test_chunk_bytes_for(self) -> None:
        assert chunk_bytes_for(100) == 3200
        assert chunk_bytes_for(20) == 640

    def test_invalid_chunk_duration(self) -> None:
        with pytest.raises(AudioFormatError):
            chunk_bytes_for(0)

    def test_iter_chunks_keeps_remainder(self) -> None:
        chunks = list(iter_chunks(b"abcdefg", 3))
        assert chunks == [b"abc", b"def", b"g"]
