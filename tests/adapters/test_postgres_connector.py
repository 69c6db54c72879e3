import types

import pytest

from scentdb import (
    ConfigurationError,
    DatabaseError,
    PostgresConnectionParameters,
    PostgresConnector,
)


class FakeError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        self.sqlstate = sqlstate


class FakeCursor:
    def __init__(self, connection):
        self.connection = connection
        self.rowcount = -1
        self.description = None
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.connection.statements.append((sql, params))
        failure = self.connection.failures.pop(sql, None)
        if failure is not None:
            if self.connection.break_on_failure:
                self.connection.broken = True
            raise failure
        rows = self.connection.results.pop(sql, None)
        if rows is not None:
            self._rows = rows
            self.description = [("column",)]
        self.rowcount = self.connection.rowcounts.pop(sql, -1)

    def fetchall(self):
        return self._rows


class FakeConnection:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.statements = []
        self.failures = {}
        self.results = {}
        self.rowcounts = {}
        self.closed = False
        self.broken = False
        self.break_on_failure = False

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True


class FakePool:
    instances = []

    def __init__(self, conninfo, *, kwargs, min_size, max_size, open, timeout=None):
        self.conninfo = conninfo
        self.kwargs = kwargs
        self.min_size = min_size
        self.max_size = max_size
        self.opened = open
        self.timeout = timeout
        self.idle = []
        self.returned = []
        self.closed = False
        FakePool.instances.append(self)

    def getconn(self):
        if self.idle:
            return self.idle.pop()
        return FakeConnection(**self.kwargs)

    def putconn(self, connection):
        self.returned.append(connection)
        if not connection.closed:
            self.idle.append(connection)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_driver(monkeypatch):
    FakePool.instances = []
    driver = types.SimpleNamespace(
        Error=FakeError,
        RawCursor=object(),
        rows=types.SimpleNamespace(dict_row=object()),
    )
    monkeypatch.setattr("scentdb.adapters.postgres._load_driver", lambda: driver)
    monkeypatch.setattr("scentdb.adapters.postgres._load_pool_class", lambda: FakePool)
    return driver


@pytest.fixture
def parameters():
    return PostgresConnectionParameters(
        "db.local",
        "app",
        "scent",
        "secret",
        maximum_number_of_connections=4,
        port_number=5433,
        connection_timeout_milliseconds=2500,
    )


@pytest.fixture
def pg(fake_driver, parameters):
    connector = PostgresConnector(parameters)
    connector.connect()
    yield connector
    connector.close()


def test_pool_is_configured_for_raw_autocommit_connections(fake_driver, pg):
    pool = FakePool.instances[0]
    assert pool.max_size == 4
    assert pool.min_size == 1
    assert pool.timeout == 2.5
    assert pool.kwargs["host"] == "db.local"
    assert pool.kwargs["dbname"] == "app"
    assert pool.kwargs["port"] == 5433
    assert pool.kwargs["connect_timeout"] == 3
    assert pool.kwargs["autocommit"] is True
    assert pool.kwargs["cursor_factory"] is fake_driver.RawCursor
    assert pool.kwargs["row_factory"] is fake_driver.rows.dict_row


def test_placeholders_are_numbered_before_execution(pg):
    pg.client.rowcounts["UPDATE item SET price = $1 WHERE name = '?' AND id = $2"] = 1
    affected = pg.execute("UPDATE item SET price = ? WHERE name = '?' AND id = ?", [10, 7])
    assert affected == 1
    assert pg.client.statements[-1] == ("UPDATE item SET price = $1 WHERE name = '?' AND id = $2", [10, 7])


def test_negative_rowcount_is_reported_as_zero(pg):
    assert pg.execute("CREATE TABLE item (id SERIAL PRIMARY KEY)") == 0


def test_fetch_returns_dict_rows(pg):
    pg.client.results["SELECT id, name FROM item WHERE id = $1"] = [{"id": 1, "name": "apple"}]
    assert pg.fetch_records("SELECT id, name FROM item WHERE id = ?", [1]) == [{"id": 1, "name": "apple"}]


def test_driver_errors_keep_sqlstate(pg):
    pg.client.failures["SELECT * FROM missing"] = FakeError("relation does not exist", sqlstate="42P01")
    with pytest.raises(DatabaseError) as excinfo:
        pg.fetch_records("SELECT * FROM missing")
    assert excinfo.value.code == "42P01"
    assert isinstance(excinfo.value.__cause__, FakeError)
    assert pg.error_occurred is False


def test_lock_begins_a_transaction_first(pg):
    pg.lock_table("item")
    pg.lock_table_as_readonly("item")
    statements = [sql for sql, _ in pg.client.statements]
    assert statements == [
        "BEGIN",
        "LOCK TABLE item IN ACCESS EXCLUSIVE MODE NOWAIT",
        "LOCK TABLE item IN EXCLUSIVE MODE NOWAIT",
    ]
    assert pg.in_transaction


def test_unavailable_lock_fails_fast(pg):
    pg.client.failures["LOCK TABLE item IN ACCESS EXCLUSIVE MODE NOWAIT"] = FakeError(
        "could not obtain lock", sqlstate="55P03"
    )
    with pytest.raises(DatabaseError) as excinfo:
        pg.lock_table("item")
    assert excinfo.value.code == "55P03"


def test_statement_timeout_is_issued_once(fake_driver, parameters):
    with PostgresConnector(parameters, statement_timeout_ms=1500) as connector:
        connector.execute("SELECT 1")
        connector.execute("SELECT 2")
        statements = [sql for sql, _ in connector.client.statements]
    assert statements == ["SET statement_timeout TO 1500", "SELECT 1", "SELECT 2"]


def test_close_rolls_back_and_returns_connection(fake_driver, pg):
    client = pg.client
    pg.begin()
    pg.close()
    assert client.statements[-1] == ("ROLLBACK", None)
    pool = FakePool.instances[0]
    assert pool.returned == [client]
    assert client.closed is False


def test_broken_connection_is_discarded(fake_driver, pg):
    client = pg.client
    client.break_on_failure = True
    client.failures["SELECT 1"] = FakeError("server closed the connection", sqlstate="08006")
    with pytest.raises(DatabaseError):
        pg.execute("SELECT 1")
    assert pg.error_occurred is True
    pg.close()
    assert client.closed is True
    assert FakePool.instances[0].idle == []


def test_sequence_and_clock_helpers(pg):
    pg.client.results["SELECT NEXTVAL($1)"] = [{"nextval": 42}]
    pg.client.results["SELECT CLOCK_TIMESTAMP()"] = [{"clock_timestamp": "2024-01-01 00:00:00+00"}]
    assert pg.fetch_next_sequence_value("item_id_seq") == 42
    assert pg.client.statements[-1] == ("SELECT NEXTVAL($1)", ["item_id_seq"])
    assert pg.fetch_now() == "2024-01-01 00:00:00+00"


def test_begin_with_mode_is_rejected(pg):
    with pytest.raises(ValueError):
        pg.dialect.begin_sql("exclusive")


def test_pools_are_shared_between_connectors(fake_driver, parameters):
    with PostgresConnector(parameters), PostgresConnector(parameters):
        pass
    assert len(FakePool.instances) == 1


def test_missing_driver_raises(monkeypatch, parameters):
    monkeypatch.setattr("scentdb.adapters.postgres._load_driver", lambda: None)
    with pytest.raises(ConfigurationError):
        PostgresConnector(parameters).connect()
