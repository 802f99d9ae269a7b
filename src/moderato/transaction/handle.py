from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from moderato.exception import InvalidState

if TYPE_CHECKING:
    from .guard import ConnectionGuard
    from .moderator import Moderator

logger = logging.getLogger(__name__)


class Transaction:
    """One scope of a nested transaction.

    Every `begin_transaction()` call returns a new handle. A handle must end
    either with `commit()` or with `close()`. Closing a handle that was not
    committed rolls back the entire transaction, including every enclosing
    scope. Used as a context manager, leaving the block closes the handle.

    Example:

    ```python
    with source.begin_transaction() as txn:
        txn.connection.execute("UPDATE ...")
        txn.commit()
    ```
    """

    def __init__(self, moderator: Moderator):
        self._moderator = moderator
        self._closed = False

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} depth={self._moderator.depth} "
            f"owner={self._moderator.owner!r}>"
        )

    @property
    def depth(self) -> int:
        return self._moderator.depth

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def moderator(self) -> Moderator:
        return self._moderator

    @property
    def connection(self) -> ConnectionGuard:
        return self._moderator.get_connection()

    def commit(self) -> None:
        """Record the commit of this scope.

        Only the commit of the outermost scope reaches the database.

        Raises:
            InvalidState: If the handle is already closed or the transaction
                has already ended
            ThreadAffinityViolation: If called from another owner
        """
        if self._closed:
            raise InvalidState("commit on closed transaction handle")
        self._moderator.commit()
        self._closed = True

    def close(self) -> None:
        """Release the scope, rolling back the whole transaction unless this
        handle was committed"""
        if self._closed:
            return
        if self._moderator.is_active:
            logger.debug("Closing uncommitted %r, rolling back", self)
        self._moderator.rollback()
        self._closed = True

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        try:
            self.close()
        except Exception as e:
            logger.error("Error closing %r: %s", self, e)
            # The error that unwound the block takes precedence
            if exc_type is None:
                raise
        return False
