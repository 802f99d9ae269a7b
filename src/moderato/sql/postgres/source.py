from typing import Optional

from moderato.base.source import BaseSource
from moderato.exception import ConfigurationError

try:
    from psycopg import Connection
    from psycopg_pool import ConnectionPool

    POSTGRES_ENABLED = True
except ModuleNotFoundError:
    POSTGRES_ENABLED = False


class PostgresSource(BaseSource):
    """Source of pooled Postgres connections"""

    scheme = "postgres"

    def _setup_pool(self):
        if not POSTGRES_ENABLED:
            raise ConfigurationError(
                "Postgres driver not found. Try reinstalling moderato: "
                "pip install moderato[postgres]"
            )
        self._pool = ConnectionPool(
            self.full_dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            kwargs={"autocommit": True},
            open=False,
        )

    def open(self):
        """Open connections to the pool"""
        self._pool.open()

    def close(self):
        """Close connections to the pool"""
        self._pool.close()

    def acquire(self, timeout: Optional[float] = None) -> "Connection":
        """Check a connection out of the pool

        Args:
            timeout (float, optional): Time before an error is raised on
                failure to obtain a connection. Defaults to `None`.

        Returns:
            Connection: A connection in auto-commit mode
        """
        return self._pool.getconn(timeout=timeout)

    def release(self, connection: "Connection") -> None:
        """Return a connection to the pool"""
        self._pool.putconn(connection)
