import pytest

from scentdb.dialects import PostgresDialect


@pytest.fixture
def dialect():
    return PostgresDialect()


def test_fix_placeholder_numbers_parameters(dialect):
    assert dialect.fix_placeholder("a = ? AND b = '?'") == "a = $1 AND b = '?'"


def test_lock_statements_do_not_wait(dialect):
    assert dialect.lock_table_sql("item", readonly=True) == "LOCK TABLE item IN EXCLUSIVE MODE NOWAIT"
    assert dialect.lock_table_sql("item", readonly=False) == "LOCK TABLE item IN ACCESS EXCLUSIVE MODE NOWAIT"


def test_statement_timeout(dialect):
    assert dialect.statement_timeout_sql(1500) == "SET statement_timeout TO 1500"


def test_begin_rejects_modes(dialect):
    assert dialect.begin_sql() == "BEGIN"
    with pytest.raises(ValueError):
        dialect.begin_sql("exclusive")


def test_catalog_queries_take_table_name_as_parameter(dialect):
    sql, params = dialect.exists_table_query("item")
    assert "information_schema.tables" in sql
    assert params == ["item"]
    sql, params = dialect.fetch_columns_query("item")
    assert sql.endswith("ORDER BY ordinal_position")
    assert params == ["item"]


def test_last_insert_id_query(dialect):
    assert dialect.last_insert_id_query() == ("SELECT LASTVAL()", [])
    assert dialect.last_insert_id_query("item_id_seq") == ("SELECT CURRVAL(?)", ["item_id_seq"])


def test_capabilities(dialect):
    assert dialect.capabilities.native_qmark_placeholders is False
