import pytest

from scentdb import Column, RecordBinder, SingleRecordBinder, Table
from scentdb.core import MaxLengthValidator, MinValueValidator

ITEM = Table(
    "item",
    [
        Column("id", primary_key=True),
        Column("name", nullable=False, validators=[MaxLengthValidator(10)]),
        Column("price", default=0, validators=[MinValueValidator(0)]),
        Column("updated_at"),
        Column("deleted", default=0),
    ],
    version_column="updated_at",
    soft_delete_column="deleted",
)


class ItemBinder(RecordBinder):
    table = ITEM


class SingleItemBinder(SingleRecordBinder):
    table = ITEM


@pytest.fixture
def item_definition():
    return ITEM


@pytest.fixture
def item_binder(connector, item_table):
    return ItemBinder(connector)


@pytest.fixture
def single_item_binder(connector, item_table):
    return SingleItemBinder(connector)


@pytest.fixture
def other_connector(sqlite_parameters):
    from scentdb import SQLiteConnector

    with SQLiteConnector(sqlite_parameters) as connector:
        yield connector
