from __future__ import annotations

import sqlite3
from typing import Optional

from moderato.base.source import BaseSource


class SQLiteSource(BaseSource):
    """Source of connections to a SQLite database file.

    Every `acquire` opens a new connection; `release` closes it. The
    database is given either as a plain path or as a `sqlite:///<path>`
    DSN.
    """

    scheme = "sqlite"

    def __init__(
        self,
        db_path: str,
        min_size: int = 1,
        max_size: Optional[int] = None,
        **connect_kwargs,
    ):
        # Pool sizing has no meaning here, connections are never pooled
        prefix = f"{self.scheme}:///"
        if db_path.startswith(prefix):
            db_path = db_path[len(prefix) :]
        self._db_path = db_path
        self._connect_kwargs = connect_kwargs
        super().__init__(min_size=min_size, max_size=max_size)

    def _setup_pool(self): ...

    def _populate_connection_args(self): ...

    def _populate_dsn(self):
        self._dsn = f"{self.scheme}:///{self._db_path}"
        self._full_dsn = self._dsn

    @property
    def db_path(self) -> str:
        return self._db_path

    def open(self): ...

    def close(self): ...

    def acquire(self, timeout: Optional[float] = None) -> sqlite3.Connection:
        """Open a connection to the database

        Args:
            timeout (float, optional): How long to wait for the database
                lock. Defaults to the driver's own default.

        Returns:
            sqlite3.Connection: A connection in auto-commit mode
        """
        kwargs = dict(self._connect_kwargs)
        if timeout is not None:
            kwargs["timeout"] = timeout
        return sqlite3.connect(self._db_path, autocommit=True, **kwargs)
