"""Grupo principal de comandos CLI do VoxStream."""

from __future__ import annotations

import click

import voxstream


@click.group()
@click.version_option(version=voxstream.__version__, prog_name="voxstream")
def cli() -> None:
    """VoxStream — reconhecimento de fala em streaming sobre HTTP."""
