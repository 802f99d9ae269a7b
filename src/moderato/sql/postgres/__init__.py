from .source import PostgresSource

__all__ = ("PostgresSource",)
