from .source import SQLiteSource

__all__ = ("SQLiteSource",)
