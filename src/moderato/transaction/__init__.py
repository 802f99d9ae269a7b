"""
Nested transactions over a single database connection.

Every scope opened by the same owner shares one connection. Only the
outermost commit is sent to the database, and a rollback at any depth rolls
back the whole tree. No savepoints are used.
"""

from .guard import ConnectionGuard
from .handle import Transaction
from .moderator import Moderator

__all__ = [
    "ConnectionGuard",
    "Moderator",
    "Transaction",
]
