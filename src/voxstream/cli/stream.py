"""Comando `voxstream stream` — thin client HTTP para o endpoint de streaming."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

import click

from voxstream.audio import chunk_bytes_for, iter_chunks, read_pcm16_wav
from voxstream.cli.main import cli
from voxstream.exceptions import AudioFormatError

if TYPE_CHECKING:
    from collections.abc import Iterator

DEFAULT_SERVER_URL = "http://localhost:6010"
STREAM_ENDPOINT = "/speech-to-text-stream"


def _paced(chunks: Iterator[bytes], delay_s: float) -> Iterator[bytes]:
    """Reemite os chunks esperando ``delay_s`` entre eles (tempo real)."""
    for chunk in chunks:
        yield chunk
        time.sleep(delay_s)


def _stream_audio(server_url: str, pcm: bytes, chunk_ms: int, realtime: bool) -> None:
    """Envia o audio como corpo chunked e imprime cada texto recebido."""
    import httpx

    chunks = iter_chunks(pcm, chunk_bytes_for(chunk_ms))
    body = _paced(chunks, chunk_ms / 1000) if realtime else chunks

    url = f"{server_url.rstrip('/')}{STREAM_ENDPOINT}"
    try:
        with httpx.stream(
            "POST",
            url,
            content=body,
            headers={"Content-Type": "application/octet-stream"},
            timeout=None,
        ) as response:
            if response.status_code != 200:
                response.read()
                try:
                    msg = response.json().get("message", response.text)
                except ValueError:
                    msg = response.text
                click.echo(f"Erro ({response.status_code}): {msg}", err=True)
                sys.exit(1)

            for text in response.iter_text():
                if text:
                    click.echo(text)
    except httpx.ConnectError:
        click.echo(
            f"Erro: servidor nao disponivel em {server_url}. Execute 'voxstream serve' primeiro.",
            err=True,
        )
        sys.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=False))
@click.option(
    "--server",
    "server_url",
    default=DEFAULT_SERVER_URL,
    show_default=True,
    help="URL do servidor VoxStream.",
)
@click.option(
    "--chunk-ms",
    default=100,
    type=int,
    show_default=True,
    help="Duracao de cada chunk enviado.",
)
@click.option(
    "--realtime",
    is_flag=True,
    default=False,
    help="Envia os chunks no ritmo do audio em vez de o mais rapido possivel.",
)
def stream(file: str, server_url: str, chunk_ms: int, realtime: bool) -> None:
    """Transcreve um WAV (16 kHz, mono, 16-bit) via streaming HTTP."""
    file_path = Path(file)
    if not file_path.exists():
        click.echo(f"Erro: arquivo nao encontrado: {file_path}", err=True)
        sys.exit(1)

    try:
        pcm = read_pcm16_wav(file_path)
        chunk_bytes_for(chunk_ms)
    except AudioFormatError as exc:
        click.echo(f"Erro: {exc}", err=True)
        sys.exit(1)

    _stream_audio(server_url, pcm, chunk_ms, realtime)
