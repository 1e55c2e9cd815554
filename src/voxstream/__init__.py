"""VoxStream — servidor de reconhecimento de fala em streaming."""

__version__ = "0.1.0"
