from .source import BaseSource

__all__ = ("BaseSource",)
