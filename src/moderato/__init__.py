from importlib.metadata import version

from .base.source import BaseSource
from .datasource import TransactionSource
from .decorator import transactional
from .exception import (
    ConfigurationError,
    InvalidState,
    ModeratoError,
    ThreadAffinityViolation,
    TransactionError,
    UnsupportedOperation,
)
from .identity import current_owner, owner_scope
from .sql.postgres.source import PostgresSource
from .sql.sqlite.source import SQLiteSource
from .sql.sqlserver.source import SQLServerSource
from .transaction import ConnectionGuard, Moderator, Transaction

__version__ = version("moderato")

__all__ = (
    "current_owner",
    "owner_scope",
    "transactional",
    "BaseSource",
    "ConfigurationError",
    "ConnectionGuard",
    "InvalidState",
    "ModeratoError",
    "Moderator",
    "PostgresSource",
    "SQLiteSource",
    "SQLServerSource",
    "ThreadAffinityViolation",
    "Transaction",
    "TransactionError",
    "TransactionSource",
    "UnsupportedOperation",
)
