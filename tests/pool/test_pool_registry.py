import threading
import time

import pytest

from scentdb import (
    DatabaseError,
    PoolRegistry,
    PostgresConnectionParameters,
    SQLiteConnectionParameters,
    SQLiteConnector,
)


class RecordingPool:
    def __init__(self, parameters, maximum_number_of_connections, fail_on_close=None):
        self.parameters = parameters
        self.maximum_number_of_connections = maximum_number_of_connections
        self.fail_on_close = fail_on_close
        self.closed = False

    def borrow(self):
        return object()

    def release(self, client, *, error_occurred=False):
        pass

    def close(self):
        self.closed = True
        if self.fail_on_close is not None:
            raise self.fail_on_close


def test_registry_requires_start(tmp_path):
    registry = PoolRegistry()
    parameters = SQLiteConnectionParameters(tmp_path / "a.db")
    assert registry.started is False
    with pytest.raises(DatabaseError, match="Pool has not been started."):
        registry.get(parameters)
    with pytest.raises(DatabaseError, match="Pool has not been started."):
        registry.get_or_create(parameters, RecordingPool)


def test_connector_fails_before_start(tmp_path):
    connector = SQLiteConnector(SQLiteConnectionParameters(tmp_path / "a.db"), registry=PoolRegistry())
    with pytest.raises(DatabaseError, match="Pool has not been started."):
        connector.connect()
    assert connector.is_connected is False


def test_equal_parameters_share_one_pool(tmp_path):
    registry = PoolRegistry()
    registry.start(3)
    first = registry.get_or_create(SQLiteConnectionParameters(tmp_path / "a.db"), RecordingPool)
    second = registry.get_or_create(SQLiteConnectionParameters(str(tmp_path / "a.db")), RecordingPool)
    other = registry.get_or_create(SQLiteConnectionParameters(tmp_path / "b.db"), RecordingPool)
    assert first is second
    assert other is not first
    assert len(registry) == 2
    assert first.maximum_number_of_connections == 3
    registry.end()


def test_serialization_is_canonical_and_backend_specific():
    first = PostgresConnectionParameters("db.local", "app", "scent", "secret", port_number=5432)
    second = PostgresConnectionParameters(
        port_number=5432, password="secret", user="scent", database_name="app", server_address="db.local"
    )
    assert first.serialize() == second.serialize()
    assert '"backend": "PostgresConnectionParameters"' in first.serialize()
    assert SQLiteConnectionParameters(":memory:").serialize() != first.serialize()


def test_start_twice_keeps_existing_pools(tmp_path):
    registry = PoolRegistry()
    registry.start()
    parameters = SQLiteConnectionParameters(tmp_path / "a.db")
    pool = registry.get_or_create(parameters, RecordingPool)
    registry.start(10)
    assert registry.get(parameters) is pool
    registry.end()


def test_end_closes_every_pool_and_reports_first_failure(tmp_path):
    registry = PoolRegistry()
    registry.start()
    failing = registry.get_or_create(
        SQLiteConnectionParameters(tmp_path / "a.db"),
        lambda parameters, size: RecordingPool(parameters, size, fail_on_close=OSError("disk gone")),
    )
    healthy = registry.get_or_create(SQLiteConnectionParameters(tmp_path / "b.db"), RecordingPool)

    with pytest.raises(DatabaseError, match="disk gone") as excinfo:
        registry.end()

    assert isinstance(excinfo.value.__cause__, OSError)
    assert failing.closed and healthy.closed
    assert registry.started is False
    assert len(registry) == 0


def test_end_without_start_is_a_no_op():
    PoolRegistry().end()


def test_concurrent_first_use_creates_one_pool(tmp_path):
    registry = PoolRegistry()
    registry.start()
    parameters = SQLiteConnectionParameters(tmp_path / "a.db")
    created = []

    def factory(params, size):
        time.sleep(0.01)
        pool = RecordingPool(params, size)
        created.append(pool)
        return pool

    results = []

    def worker():
        results.append(registry.get_or_create(parameters, factory))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(created) == 1
    assert all(pool is created[0] for pool in results)
    registry.end()
