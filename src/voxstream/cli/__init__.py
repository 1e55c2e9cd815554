"""CLI do VoxStream.

Registra todos os comandos no grupo principal.
"""

from voxstream.cli.main import cli
from voxstream.cli.serve import serve
from voxstream.cli.stream import stream

__all__ = [
    "cli",
    "serve",
    "stream",
]
