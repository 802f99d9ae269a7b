from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Dict, Hashable, Optional, Type

from moderato.exception import InvalidState

if TYPE_CHECKING:
    from moderato.base.source import BaseSource
    from moderato.transaction.moderator import Moderator


class ModeratorRegistry:
    """
    Mapping of owner identity to the single live Moderator of that owner.
    Entries are only added and removed by the Moderator lifecycle.
    """

    def __init__(self) -> None:
        self._moderators: Dict[Hashable, Moderator] = {}
        self._lock = threading.Lock()

    def get(self, owner: Hashable) -> Optional[Moderator]:
        with self._lock:
            return self._moderators.get(owner)

    def add(self, moderator: Moderator) -> None:
        with self._lock:
            if moderator.owner in self._moderators:
                raise InvalidState(
                    f"Owner {moderator.owner!r} already has a live transaction"
                )
            self._moderators[moderator.owner] = moderator

    def discard(self, moderator: Moderator) -> bool:
        """Remove the owner's entry if it belongs to this moderator"""
        with self._lock:
            if self._moderators.get(moderator.owner) is moderator:
                del self._moderators[moderator.owner]
                return True
            return False

    def __contains__(self, owner: Hashable) -> bool:
        with self._lock:
            return owner in self._moderators

    def __len__(self) -> int:
        with self._lock:
            return len(self._moderators)


class SourceRegistry:
    """
    Registry to ensure transaction sources with the same DSN share the same
    connection source (and therefore the same pool).
    """

    _singleton = None
    _sources: Dict[str, BaseSource]

    def __new__(cls, *args, **kwargs):
        if cls._singleton is None:
            cls.reset()
        return cls._singleton

    @classmethod
    def get_or_create(
        cls,
        dsn: str,
        source_class: Type[BaseSource],
        min_size: int = 1,
        max_size: Optional[int] = None,
    ) -> BaseSource:
        """
        Get existing source or create new one for DSN.

        Args:
            dsn: Database connection string
            source_class: Class to use for creating new source
            min_size: Minimum number of connections in pool
            max_size: Maximum number of connections in pool

        Returns:
            Shared source instance for the DSN
        """
        instance = cls()
        if dsn not in instance._sources:
            instance._sources[dsn] = source_class(
                dsn, min_size=min_size, max_size=max_size
            )
        return instance._sources[dsn]

    @classmethod
    def reset(cls):
        """Reset the registry (useful for testing)"""
        cls._singleton = super().__new__(cls)
        cls._singleton._sources = {}
