from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlparse

from demarcate.base.connection import Connection, Statement
from demarcate.base.provider import BaseProvider
from demarcate.exception import (
    ConfigurationError,
    DemarcateError,
    ProviderError,
)

try:
    import psycopg
    from psycopg_pool import ConnectionPool

    POSTGRES_ENABLED = True
except ModuleNotFoundError:
    POSTGRES_ENABLED = False
    ConnectionPool = type("ConnectionPool", (), {})  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5432


class PostgresConnection(Connection):
    """Connection adapter for a psycopg connection checked out of a pool.

    Closing it hands the connection back to the pool rather than closing
    the socket; the pool rolls back anything left uncommitted. Once handed
    back, the driver connection belongs to the pool and is no longer
    reachable through this adapter.
    """

    def __init__(self, raw: psycopg.Connection, pool: ConnectionPool) -> None:
        super().__init__(raw)
        self._pool = pool
        self._released = False

    @property
    def raw(self) -> Any:
        if self._released:
            raise psycopg.InterfaceError(
                "connection already returned to pool"
            )
        return self._raw

    def prepare_statement(self, sql: str) -> Statement:
        return Statement(sql, self.raw.cursor())

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()

    def close(self) -> None:
        self._released = True
        self._pool.putconn(self._raw)

    def is_closed(self) -> bool:
        return self._released or bool(self._raw.closed)


class PostgresProvider(BaseProvider):
    """Provider for a Postgres database backed by a psycopg pool.

    Connection details come either from a DSN or from keyword arguments,
    not both. Missing parts fall back to libpq behavior: no user or
    password is sent unless one is given.
    """

    scheme = "postgres"

    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        db: Optional[str] = None,
        query: Optional[str] = None,
        min_size: int = 1,
        max_size: Optional[int] = None,
    ) -> None:
        """
        Args:
            dsn (str, optional): DB data source name
            host (str, optional): DB address URL or IP. Defaults to
                `"localhost"`
            port (int, optional): DB port. Defaults to 5432
            user (str, optional): DB user
            password (str, optional): DB password
            db (str, optional): DB name
            query (str, optional): Extra connection parameters, as a URL
                query string
            min_size (int, optional): Minimum number of pooled connections.
                Defaults to 1
            max_size (int, optional): Maximum number of pooled connections.
                Defaults to `None`

        Raises:
            ConfigurationError: If the connection arguments are invalid
        """
        if dsn and host:
            raise ConfigurationError("Cannot connect to DB using host and dsn")
        if port is not None and (
            not isinstance(port, int) or port not in range(0, 65536)
        ):
            raise ConfigurationError(
                "port: must be an integer between 0 and 65535"
            )
        if host is not None and (not isinstance(host, str) or not host):
            raise ConfigurationError(
                "host: must be a string at least 1 character long"
            )
        if password is not None and (
            not isinstance(password, str) or not password
        ):
            raise ConfigurationError(
                "password: must be a string at least 1 character long"
            )

        parts = urlparse(dsn or "")
        self._host = host or parts.hostname or "localhost"
        self._port = port or parts.port or DEFAULT_PORT
        self._user = user or parts.username
        self._password = password or parts.password
        self._db = db or parts.path.lstrip("/") or None
        self._query = query or parts.query
        self._min_size = min_size
        self._max_size = max_size

        self._setup_pool()
        super().__init__()

    def _setup_pool(self):
        if not POSTGRES_ENABLED:
            raise DemarcateError(
                "Postgres driver not found. Try reinstalling demarcate: "
                "pip install demarcate[postgres]"
            )
        self._pool = ConnectionPool(
            self.full_dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False,
        )

    def _build_dsn(self, password: Optional[str]) -> str:
        credentials = ""
        if self.user:
            credentials = self.user
            if password:
                credentials += f":{password}"
            credentials += "@"
        dsn = f"{self.scheme}://{credentials}{self.host}:{self.port}"
        if self.db:
            dsn += f"/{self.db}"
        return dsn

    @property
    def dsn(self) -> str:
        return self._build_dsn("..." if self.password else None)

    @property
    def full_dsn(self) -> str:
        dsn = self._build_dsn(self.password)
        return f"{dsn}?{self._query}" if self._query else dsn

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def user(self) -> Optional[str]:
        return self._user

    @property
    def password(self) -> Optional[str]:
        return self._password

    @property
    def db(self) -> Optional[str]:
        return self._db

    @property
    def min_size(self) -> int:
        return self._min_size

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    def open(self) -> None:
        """Open connections to the pool"""
        self._pool.open()

    def close(self) -> None:
        """Close connections to the pool"""
        self._pool.close()

    def open_connection(
        self, timeout: Optional[float] = None
    ) -> PostgresConnection:
        """Check a connection out of the pool

        Args:
            timeout (float, optional): Time before an error is raised on
                failure to obtain a connection. Defaults to `None`.

        Raises:
            ProviderError: If no connection could be obtained

        Returns:
            PostgresConnection: A connection no other transaction holds
        """
        try:
            raw = self._pool.getconn(timeout=timeout)
        except psycopg.Error as e:
            raise ProviderError(
                f"Failed to get connection from {self}: {e}"
            ) from e
        logger.debug("Checked out connection from %s", self)
        return PostgresConnection(raw, self._pool)
