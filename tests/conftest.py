import pytest

from scentdb import SQLiteConnectionParameters, SQLiteConnector, pool_end, pool_start
from scentdb.pool import registry


@pytest.fixture(autouse=True)
def started_pool():
    pool_start()
    yield registry
    pool_end()


@pytest.fixture
def sqlite_parameters(tmp_path):
    return SQLiteConnectionParameters(tmp_path / "scentdb.db")


@pytest.fixture
def connector(sqlite_parameters):
    with SQLiteConnector(sqlite_parameters) as connector:
        yield connector


@pytest.fixture
def item_table(connector):
    connector.execute(
        "CREATE TABLE item ("
        "id INTEGER PRIMARY KEY, "
        "name TEXT NOT NULL, "
        "price INTEGER NOT NULL DEFAULT 0, "
        "updated_at TEXT, "
        "deleted INTEGER NOT NULL DEFAULT 0)"
    )
    connector.execute(
        "INSERT INTO item (name, price, updated_at) VALUES (?, ?, ?), (?, ?, ?), (?, ?, ?)",
        [
            "apple", 120, "2024-01-01 09:00:00",
            "banana", 80, "2024-01-01 09:00:00",
            "cherry", 300, "2024-01-01 09:00:00",
        ],
    )
    return "item"
