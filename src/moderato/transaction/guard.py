from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, FrozenSet, NoReturn

from moderato.exception import UnsupportedOperation

if TYPE_CHECKING:
    from .moderator import Moderator

logger = logging.getLogger(__name__)


class ConnectionGuard:
    """
    A connection owned by a nested transaction.

    Everything is forwarded to the wrapped connection except the operations
    that would end or reconfigure the transaction behind the moderator's
    back. Those raise `UnsupportedOperation`. `close()` does nothing, so
    code that closes connections it did not open stays harmless.
    """

    _read_only_attributes: FrozenSet[str] = frozenset(
        ("autocommit", "isolation_level")
    )

    def __init__(self, connection: Any, moderator: Moderator):
        object.__setattr__(self, "_connection", connection)
        object.__setattr__(self, "_moderator", moderator)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self._connection!r}>"

    def __getattr__(self, name: str) -> Any:
        return getattr(self._moderator.raw_connection(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._read_only_attributes:
            raise UnsupportedOperation(f"setting {name}")
        setattr(self._moderator.raw_connection(), name, value)

    def __delattr__(self, name: str) -> None:
        if name in self._read_only_attributes:
            raise UnsupportedOperation(f"deleting {name}")
        delattr(self._moderator.raw_connection(), name)

    def __enter__(self) -> ConnectionGuard:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        logger.debug("Ignored close() of %r", self)

    def commit(self) -> NoReturn:
        raise UnsupportedOperation("commit")

    def rollback(self, savepoint: Any = None) -> NoReturn:
        if savepoint is not None:
            raise UnsupportedOperation("rollback to savepoint")
        raise UnsupportedOperation("rollback")

    def set_autocommit(self, value: bool) -> NoReturn:
        raise UnsupportedOperation("set_autocommit")

    def set_isolation_level(self, level: Any) -> NoReturn:
        raise UnsupportedOperation("set_isolation_level")

    def savepoint(self, name: Any = None) -> NoReturn:
        raise UnsupportedOperation("savepoint")

    def release_savepoint(self, savepoint: Any) -> NoReturn:
        raise UnsupportedOperation("release_savepoint")

    def rollback_to_savepoint(self, savepoint: Any) -> NoReturn:
        raise UnsupportedOperation("rollback_to_savepoint")

    def transaction(self, *args, **kwargs) -> NoReturn:
        raise UnsupportedOperation("transaction")

    def tpc_begin(self, xid: Any) -> NoReturn:
        raise UnsupportedOperation("tpc_begin")

    def tpc_prepare(self) -> NoReturn:
        raise UnsupportedOperation("tpc_prepare")

    def tpc_commit(self, xid: Any = None) -> NoReturn:
        raise UnsupportedOperation("tpc_commit")

    def tpc_rollback(self, xid: Any = None) -> NoReturn:
        raise UnsupportedOperation("tpc_rollback")
