from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from demarcate.base.connection import Connection
from demarcate.base.provider import BaseProvider
from demarcate.exception import ProviderError

logger = logging.getLogger(__name__)


class SQLiteConnection(Connection):
    """Connection adapter for the standard library sqlite3 driver"""

    def __init__(self, raw: sqlite3.Connection) -> None:
        super().__init__(raw)
        self._closed = False

    def commit(self) -> None:
        self._raw.commit()

    def rollback(self) -> None:
        self._raw.rollback()

    def close(self) -> None:
        # sqlite3 exposes no "closed" attribute, so track it here. The flag
        # is set first because a connection that failed to close is not
        # usable either.
        self._closed = True
        self._raw.close()

    def is_closed(self) -> bool:
        return self._closed


class SQLiteProvider(BaseProvider):
    """Provider opening a new SQLite connection for every transaction.

    Note that with ``":memory:"`` every transaction sees its own, empty,
    database.
    """

    scheme = "sqlite"

    def __init__(self, db_path: str, **connect_kwargs: Any):
        self._db_path = db_path
        self._connect_kwargs = connect_kwargs
        super().__init__()

    @property
    def dsn(self) -> str:
        return f"{self.scheme}:///{self._db_path}"

    @property
    def db_path(self) -> str:
        return self._db_path

    def open(self) -> None:
        """SQLite connections are opened per transaction, nothing to do"""

    def close(self) -> None:
        """SQLite connections are closed per transaction, nothing to do"""

    def open_connection(
        self, timeout: Optional[float] = None
    ) -> SQLiteConnection:
        """Open a new connection to the database file

        Args:
            timeout (float, optional): Seconds to wait for a database lock.
                Defaults to the driver default.

        Raises:
            ProviderError: If the database cannot be opened

        Returns:
            SQLiteConnection: A fresh connection
        """
        kwargs = dict(self._connect_kwargs)
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            raw = sqlite3.connect(self._db_path, **kwargs)
        except sqlite3.Error as e:
            raise ProviderError(
                f"Failed to open SQLite database {self._db_path}: {e}"
            ) from e
        logger.debug("Opened SQLite connection to %s", self._db_path)
        return SQLiteConnection(raw)
