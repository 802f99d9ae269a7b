from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Hashable, Optional

from moderato.exception import (
    ConfigurationError,
    InvalidState,
    ThreadAffinityViolation,
)

from .guard import ConnectionGuard

if TYPE_CHECKING:
    from moderato.base.source import BaseSource
    from moderato.identity import Identity
    from moderato.registry import ModeratorRegistry

logger = logging.getLogger(__name__)


class Moderator:
    """
    Depth counter for the nested transaction tree of a single owner.

    Only the outermost commit reaches the database. A rollback at any depth
    rolls back the whole tree. The moderator holds the one real connection
    of the tree from construction until that commit or rollback.
    """

    ABORTED_DEPTH = -2
    INITIAL_DEPTH = -1
    ORIGINAL_DEPTH = 0

    def __init__(
        self,
        source: BaseSource,
        registry: ModeratorRegistry,
        identity: Identity,
        timeout: Optional[float] = None,
    ):
        self._source = source
        self._registry = registry
        self._identity = identity
        self._owner = identity()

        connection = source.acquire(timeout=timeout)
        if not connection.autocommit:
            source.release(connection)
            raise ConfigurationError(
                f"Connection from {source} is not in auto-commit mode"
            )
        try:
            connection.autocommit = False
        except Exception:
            source.release(connection)
            raise

        self._connection = connection
        self._guard = ConnectionGuard(connection, self)
        self._depth = self.INITIAL_DEPTH

        logger.debug("Moderator created for owner %r", self._owner)

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} owner={self._owner!r} "
            f"depth={self._depth}>"
        )

    @property
    def owner(self) -> Hashable:
        return self._owner

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def is_active(self) -> bool:
        return self._depth >= self.ORIGINAL_DEPTH

    def ensure_owner(self) -> None:
        """Raise unless called from the context that created the moderator"""
        caller = self._identity()
        if caller != self._owner:
            raise ThreadAffinityViolation(
                f"Transaction of owner {self._owner!r} used from {caller!r}"
            )

    def get_connection(self) -> ConnectionGuard:
        self.ensure_owner()
        if not self.is_active:
            raise InvalidState("connection access on dead transaction")
        return self._guard

    def raw_connection(self) -> Any:
        """The underlying connection, for use by the guard only"""
        self.get_connection()
        return self._connection

    def begin(self) -> Moderator:
        self.ensure_owner()
        if self._depth < self.INITIAL_DEPTH:
            raise InvalidState("begin on dead transaction")
        self._depth += 1
        logger.debug(
            "Transaction of owner %r entered depth %d",
            self._owner,
            self._depth,
        )
        return self

    def commit(self) -> None:
        self.ensure_owner()
        if self._depth == self.ORIGINAL_DEPTH:
            self._connection.commit()
            self._depth = self.INITIAL_DEPTH
            try:
                self._finish()
            finally:
                self._registry.discard(self)
            logger.info("Transaction of owner %r committed", self._owner)
        elif self._depth > self.ORIGINAL_DEPTH:
            self._depth -= 1
            logger.debug(
                "Transaction of owner %r returned to depth %d",
                self._owner,
                self._depth,
            )
        else:
            raise InvalidState("commit on dead transaction")

    def rollback(self) -> None:
        """Roll back the whole transaction tree, whatever the current depth.

        Rolling back a transaction that is already finished only clears its
        registry entry.
        """
        if self.is_active:
            self.ensure_owner()
        try:
            if self.is_active:
                depth = self._depth
                self._depth = self.ABORTED_DEPTH
                try:
                    self._connection.rollback()
                except Exception:
                    logger.critical(
                        "Rollback failed for transaction of owner %r",
                        self._owner,
                    )
                    self._finish(quiet=True)
                    raise
                self._finish()
                logger.info(
                    "Transaction of owner %r rolled back at depth %d",
                    self._owner,
                    depth,
                )
        finally:
            self._registry.discard(self)

    def ensure_committed(self) -> None:
        if self._depth != self.INITIAL_DEPTH:
            raise InvalidState("Transaction not committed")

    def _finish(self, quiet: bool = False) -> None:
        """Hand the connection back in auto-commit mode"""
        try:
            try:
                self._connection.autocommit = True
            finally:
                self._source.release(self._connection)
        except Exception as e:
            if not quiet:
                raise
            logger.error(
                "Error releasing connection of owner %r: %s", self._owner, e
            )
