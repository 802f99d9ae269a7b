from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qs, urlparse

from moderato.base.source import BaseSource
from moderato.exception import ConfigurationError

try:
    import pyodbc

    SQLSERVER_ENABLED = True
except ModuleNotFoundError:
    SQLSERVER_ENABLED = False


class SQLServerSource(BaseSource):
    """Source of connections to a SQL Server database"""

    scheme = "mssql+pyodbc"

    def _setup_pool(self):
        if not SQLSERVER_ENABLED:
            raise ConfigurationError(
                "SQL Server driver not found. Try reinstalling moderato: "
                "pip install moderato[sqlserver]"
            )

    def _connection_string(self) -> str:
        url = urlparse(self.full_dsn)
        driver = parse_qs(url.query).get("DRIVER", [""])[0]
        attributes = {
            "DRIVER": driver,
            "SERVER": url.hostname,
            "PORT": url.port,
            "DATABASE": url.path.strip("/"),
            "UID": url.username,
            "PWD": url.password,
        }
        # Unset attributes are left to the driver's defaults
        return ";".join(
            f"{key}={value}"
            for key, value in attributes.items()
            if value not in (None, "")
        )

    def open(self):
        # pyodbc pools connections at the driver manager level
        pyodbc.pooling = True

    def close(self): ...

    def acquire(self, timeout: Optional[float] = None):
        """Open a connection to the database

        Args:
            timeout (float, optional): Login timeout in seconds.
                Defaults to `None`.

        Returns:
            pyodbc.Connection: A connection in auto-commit mode
        """
        kwargs = {"autocommit": True}
        if timeout is not None:
            kwargs["timeout"] = int(timeout)
        return pyodbc.connect(self._connection_string(), **kwargs)
