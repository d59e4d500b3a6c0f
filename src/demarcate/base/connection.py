from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional


class Statement:
    """A statement prepared against one SQL text.

    Wraps a DB-API cursor. The statement lives no longer than the
    transaction that prepared it and must be closed by whoever prepared it.
    """

    def __init__(self, sql: str, cursor: Any) -> None:
        self.sql = sql
        self._cursor = cursor

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.sql!r}>"

    def execute(self, params: Optional[Any] = None) -> Statement:
        if params is None:
            self._cursor.execute(self.sql)
        else:
            self._cursor.execute(self.sql, params)
        return self

    def executemany(self, seq_of_params: Iterable[Any]) -> Statement:
        self._cursor.executemany(self.sql, seq_of_params)
        return self

    def fetchone(self) -> Optional[Any]:
        return self._cursor.fetchone()

    def fetchall(self) -> List[Any]:
        return self._cursor.fetchall()

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def cursor(self) -> Any:
        return self._cursor

    def close(self) -> None:
        self._cursor.close()


class Connection(ABC):
    """Adapter over a single driver connection.

    Subclasses translate a driver connection into the small contract a
    transaction needs. ``is_closed`` must only read local state so that
    checking liveness never fails.
    """

    def __init__(self, raw: Any) -> None:
        self._raw = raw

    def __str__(self) -> str:
        state = "closed" if self.is_closed() else "open"
        return f"<{self.__class__.__name__} ({state})>"

    @property
    def raw(self) -> Any:
        """The underlying driver connection"""
        return self._raw

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_closed(self) -> bool: ...

    def prepare_statement(self, sql: str) -> Statement:
        return Statement(sql, self._raw.cursor())
