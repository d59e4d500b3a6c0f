import sqlite3
from unittest.mock import MagicMock, Mock

import pytest

from demarcate.base.connection import Connection
from demarcate.manager import DefaultTransactionManager, TransactionManager
from demarcate.registry import ProviderRegistry, Registry
from demarcate.sql.postgres import provider as postgres_provider
from demarcate.sql.sqlite.provider import SQLiteProvider


class ConnectionMock(Connection):
    """Records every call and raises from the ones listed in `fail_on`"""

    def __init__(self, *fail_on):
        super().__init__(MagicMock())
        self.closed = False
        self.calls = []
        self.fail_on = set(fail_on)

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")

    def commit(self):
        self._call("commit")

    def rollback(self):
        self._call("rollback")

    def close(self):
        self._call("close")
        self.closed = True

    def is_closed(self):
        return self.closed


@pytest.fixture(autouse=True)
def reset_registry():
    Registry.reset()
    ProviderRegistry.reset()
    DefaultTransactionManager.set_transaction(None)
    yield
    DefaultTransactionManager.set_transaction(None)


@pytest.fixture(autouse=True)
def mock_postgres_pool(monkeypatch):
    pool = MagicMock()
    pool.getconn.side_effect = lambda timeout=None: MagicMock(closed=False)
    mock = MagicMock(return_value=pool)
    monkeypatch.setattr(postgres_provider, "ConnectionPool", mock)
    return mock


@pytest.fixture
def connection():
    return ConnectionMock()


@pytest.fixture
def provider():
    provider = Mock()
    provider.open_connection.side_effect = lambda *_: ConnectionMock()
    return provider


@pytest.fixture
def manager(provider):
    return TransactionManager(provider=provider)


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "items.db")
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE items (item_id INTEGER PRIMARY KEY, name TEXT NOT NULL)"
    )
    conn.execute("INSERT INTO items (item_id, name) VALUES (1, 'first')")
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def sqlite_provider(db_path):
    return SQLiteProvider(db_path)


@pytest.fixture
def item_names(db_path):
    def fetch():
        conn = sqlite3.connect(db_path)
        try:
            rows = conn.execute(
                "SELECT name FROM items ORDER BY item_id"
            ).fetchall()
        finally:
            conn.close()
        return [name for (name,) in rows]

    return fetch
