from __future__ import annotations

from typing import Any, Callable, List, Optional, TypeVar, Union, overload

from demarcate.base.connection import Connection, Statement
from demarcate.registry import Registry

T = TypeVar("T")


class StatefulTransaction:
    """One database transaction bound to exactly one connection.

    Whether the transaction is live is read straight from the connection,
    so once it has been committed with auto-close, rolled back with
    auto-close, or closed, it stays dead and cannot be reused. Terminal
    operations on a dead transaction do nothing.

    Example:

    ```python
    tx = StatefulTransaction().set_auto_close(True)
    tx.update("UPDATE items SET name = ? WHERE item_id = ?", ("foo", 1))
    tx.commit()
    assert not tx.is_live
    ```
    """

    def __init__(
        self,
        connection: Optional[Connection] = None,
        *,
        auto_close: bool = False,
    ) -> None:
        """
        Args:
            connection (Connection, optional): The connection to own. When
                omitted, a fresh one is taken from the active provider.
            auto_close (bool, optional): Whether `commit` and `rollback`
                also close the connection. Defaults to `False`.
        """
        if connection is None:
            connection = Registry.get_provider().open_connection()
        self._connection = connection
        self._auto_close = auto_close

    def __str__(self) -> str:
        status = "live" if self.is_live else "dead"
        return f"<{self.__class__.__name__} ({status})>"

    def __enter__(self) -> StatefulTransaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def auto_close(self) -> bool:
        return self._auto_close

    def set_auto_close(self, value: bool) -> StatefulTransaction:
        """Set whether `commit` and `rollback` should also close the
        connection"""
        self._auto_close = value
        return self

    @property
    def is_live(self) -> bool:
        """Is the underlying connection open?"""
        return (
            self._connection is not None
            and not self._connection.is_closed()
        )

    def commit(self) -> None:
        """Commit the transaction, closing the connection afterwards if
        `auto_close` is set, even when the commit fails"""
        try:
            if not self.is_live:
                return
            self._connection.commit()
        finally:
            if self._auto_close:
                self.close()

    def rollback(self) -> None:
        """Rollback the transaction, closing the connection afterwards if
        `auto_close` is set, even when the rollback fails"""
        try:
            if not self.is_live:
                return
            self._connection.rollback()
        finally:
            if self._auto_close:
                self.close()

    def close(self) -> None:
        """Close the underlying connection"""
        if not self.is_live:
            return
        self._connection.close()

    @overload
    def execute(self, sql_or_action: Callable[[Any], T]) -> T: ...

    @overload
    def execute(
        self, sql_or_action: str, action: Callable[[Statement], T]
    ) -> T: ...

    def execute(
        self,
        sql_or_action: Union[str, Callable[..., T]],
        action: Optional[Callable[[Statement], T]] = None,
    ) -> T:
        """Run `action` in this transaction.

        With a SQL string, a statement is prepared from it and passed to
        `action`; the statement is closed however `action` exits. With
        only a callable, it is passed the raw driver connection.

        Args:
            sql_or_action (Union[str, Callable]): SQL to prepare, or the
                action to call with the raw connection
            action (Callable[[Statement], T], optional): Action to call
                with the prepared statement

        Returns:
            T: Whatever `action` returns
        """
        if action is None:
            if not callable(sql_or_action):
                raise TypeError(
                    "execute() needs an action to run against the statement"
                )
            return sql_or_action(self._connection.raw)

        if not isinstance(sql_or_action, str):
            raise TypeError(
                "execute() with an action needs SQL text to prepare"
            )
        statement = self._connection.prepare_statement(sql_or_action)
        try:
            return action(statement)
        finally:
            statement.close()

    def query(self, sql: str, params: Optional[Any] = None) -> List[Any]:
        return self.execute(sql, lambda st: st.execute(params).fetchall())

    def query_one(self, sql: str, params: Optional[Any] = None) -> Any:
        return self.execute(sql, lambda st: st.execute(params).fetchone())

    def update(self, sql: str, params: Optional[Any] = None) -> int:
        """Run a DML statement and return the number of affected rows"""
        return self.execute(sql, lambda st: st.execute(params).rowcount)
