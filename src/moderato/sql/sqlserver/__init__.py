from .source import SQLServerSource

__all__ = ("SQLServerSource",)
