import sqlite3
from unittest.mock import MagicMock, Mock

import pytest

from demarcate.exception import ConfigurationError
from demarcate.registry import Registry
from demarcate.transaction import StatefulTransaction

from .conftest import ConnectionMock


def test_new_transaction_is_live(connection):
    tx = StatefulTransaction(connection)

    assert tx.is_live
    assert tx.connection is connection
    assert not tx.auto_close


def test_live_follows_connection(connection):
    tx = StatefulTransaction(connection)
    connection.closed = True

    assert not tx.is_live


@pytest.mark.parametrize("first", ("commit", "rollback", "close"))
def test_terminal_calls_are_idempotent(first):
    connection = ConnectionMock()
    tx = StatefulTransaction(connection, auto_close=True)

    getattr(tx, first)()
    assert not tx.is_live

    tx.commit()
    tx.rollback()
    tx.close()

    expected = ["close"] if first == "close" else [first, "close"]
    assert connection.calls == expected


def test_commit_without_auto_close_keeps_connection_open(connection):
    tx = StatefulTransaction(connection)

    tx.commit()

    assert connection.calls == ["commit"]
    assert tx.is_live

    tx.close()
    assert not tx.is_live


def test_rollback_without_auto_close_keeps_connection_open(connection):
    tx = StatefulTransaction(connection)

    tx.rollback()

    assert connection.calls == ["rollback"]
    assert tx.is_live


def test_commit_with_auto_close_closes(connection):
    tx = StatefulTransaction(connection).set_auto_close(True)

    tx.commit()

    assert connection.calls == ["commit", "close"]
    assert not tx.is_live


def test_rollback_with_auto_close_closes(connection):
    tx = StatefulTransaction(connection, auto_close=True)

    tx.rollback()

    assert connection.calls == ["rollback", "close"]
    assert not tx.is_live


@pytest.mark.parametrize("operation", ("commit", "rollback"))
def test_auto_close_closes_even_when_operation_fails(operation):
    connection = ConnectionMock(operation)
    tx = StatefulTransaction(connection, auto_close=True)

    with pytest.raises(RuntimeError, match=f"{operation} failed"):
        getattr(tx, operation)()

    assert connection.calls == [operation, "close"]
    assert not tx.is_live


def test_failing_commit_propagates_without_auto_close():
    connection = ConnectionMock("commit")
    tx = StatefulTransaction(connection)

    with pytest.raises(RuntimeError):
        tx.commit()

    assert tx.is_live


def test_set_auto_close_is_fluent(connection):
    tx = StatefulTransaction(connection)

    assert tx.set_auto_close(True) is tx
    assert tx.auto_close
    assert tx.set_auto_close(False).auto_close is False
    assert connection.calls == []


def test_execute_closes_statement(connection):
    cursor = connection.raw.cursor.return_value
    tx = StatefulTransaction(connection)

    result = tx.execute("SELECT 1", lambda statement: statement.sql)

    assert result == "SELECT 1"
    cursor.close.assert_called_once()


def test_execute_closes_statement_when_action_fails(connection):
    cursor = connection.raw.cursor.return_value
    tx = StatefulTransaction(connection)

    def action(statement):
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        tx.execute("SELECT 1", action)

    cursor.close.assert_called_once()


def test_execute_propagates_prepare_failure(connection):
    connection.raw.cursor.side_effect = RuntimeError("no cursor")
    tx = StatefulTransaction(connection)
    action = Mock()

    with pytest.raises(RuntimeError, match="no cursor"):
        tx.execute("SELECT 1", action)

    action.assert_not_called()


def test_execute_with_raw_connection(connection):
    tx = StatefulTransaction(connection)

    assert tx.execute(lambda raw: raw) is connection.raw
    connection.raw.cursor.assert_not_called()


def test_execute_without_action():
    tx = StatefulTransaction(ConnectionMock())

    with pytest.raises(TypeError):
        tx.execute("SELECT 1")


def test_execute_with_action_needs_sql_text(connection):
    tx = StatefulTransaction(connection)

    with pytest.raises(TypeError, match="SQL text"):
        tx.execute(lambda raw: raw, lambda statement: statement)

    connection.raw.cursor.assert_not_called()


def test_statement_params_passed_through(connection):
    cursor = connection.raw.cursor.return_value
    cursor.fetchall.return_value = [(1, "first")]
    tx = StatefulTransaction(connection)

    rows = tx.query("SELECT * FROM items WHERE item_id = ?", (1,))

    assert rows == [(1, "first")]
    cursor.execute.assert_called_once_with(
        "SELECT * FROM items WHERE item_id = ?", (1,)
    )


def test_statement_without_params(connection):
    cursor = connection.raw.cursor.return_value
    tx = StatefulTransaction(connection)

    tx.query_one("SELECT 1")

    cursor.execute.assert_called_once_with("SELECT 1")


def test_context_manager_closes_without_commit(connection):
    with StatefulTransaction(connection) as tx:
        assert tx.is_live

    assert not tx.is_live
    assert connection.calls == ["close"]


def test_default_connection_from_active_provider(provider):
    Registry.set_provider(provider)

    tx = StatefulTransaction()

    assert tx.is_live
    provider.open_connection.assert_called_once_with()


def test_no_active_provider():
    with pytest.raises(ConfigurationError):
        StatefulTransaction()


def test_sqlite_commit(sqlite_provider, item_names):
    tx = StatefulTransaction(sqlite_provider.open_connection())

    count = tx.update(
        "INSERT INTO items (item_id, name) VALUES (?, ?)", (2, "second")
    )
    tx.commit()
    tx.close()

    assert count == 1
    assert item_names() == ["first", "second"]


def test_sqlite_rollback(sqlite_provider, item_names):
    tx = StatefulTransaction(sqlite_provider.open_connection())
    tx.set_auto_close(True)

    tx.update("UPDATE items SET name = ? WHERE item_id = ?", ("renamed", 1))
    assert tx.query_one("SELECT name FROM items") == ("renamed",)
    tx.rollback()

    assert not tx.is_live
    assert item_names() == ["first"]


def test_sqlite_execute_after_close(sqlite_provider):
    tx = StatefulTransaction(sqlite_provider.open_connection())
    tx.close()

    with pytest.raises(sqlite3.ProgrammingError):
        tx.query("SELECT * FROM items")


def test_str():
    tx = StatefulTransaction(ConnectionMock())
    assert str(tx) == "<StatefulTransaction (live)>"
    tx.close()
    assert str(tx) == "<StatefulTransaction (dead)>"


def test_no_connection_is_not_live():
    tx = StatefulTransaction(MagicMock())
    tx._connection = None

    assert not tx.is_live
    tx.commit()
    tx.rollback()
    tx.close()
