from typing import Optional
from unittest.mock import Mock

import pytest

from moderato import TransactionSource
from moderato.base.source import BaseSource
from moderato.registry import SourceRegistry
from moderato.sql.postgres import source as postgres_source


class ConnectionMock:
    def __init__(self, autocommit: bool = True):
        self.autocommit = autocommit
        self.row_factory = None
        self.commit = Mock()
        self.rollback = Mock()
        self.close = Mock()
        self.execute = Mock(side_effect=lambda query, *args: query)


class SourceMock(BaseSource):
    scheme = "mock"

    def __init__(self, *connections: ConnectionMock):
        self.connections = list(connections)
        self.acquired = []
        self.released = []
        super().__init__(dsn="mock://user@localhost/test")

    def _setup_pool(self): ...

    def open(self): ...

    def close(self): ...

    def acquire(self, timeout: Optional[float] = None):
        if self.connections:
            connection = self.connections.pop(0)
        else:
            connection = ConnectionMock()
        self.acquired.append(connection)
        return connection

    def release(self, connection):
        self.released.append(connection)


@pytest.fixture(autouse=True)
def reset_registry():
    SourceRegistry.reset()


@pytest.fixture
def connection():
    return ConnectionMock()


@pytest.fixture
def source(connection):
    return SourceMock(connection)


@pytest.fixture
def transaction_source(source):
    return TransactionSource(source=source)


@pytest.fixture
def mock_postgres_pool(monkeypatch):
    pool = Mock()
    pool_class = Mock(return_value=pool)
    monkeypatch.setattr(postgres_source, "POSTGRES_ENABLED", True)
    monkeypatch.setattr(
        postgres_source, "ConnectionPool", pool_class, raising=False
    )
    return pool_class


@pytest.fixture
def make_connection():
    return ConnectionMock


@pytest.fixture
def make_source():
    return SourceMock
