from voxstream.config.settings import Settings

__all__ = ["Settings"]
