import pytest

from scentdb import Column, RecordMap


def test_column_and_string_keys_are_interchangeable():
    name = Column("name")
    record = RecordMap({name: "apple", "price": 120})
    assert record["name"] == "apple"
    assert record[name] == "apple"
    assert name in record
    record[name] = "banana"
    assert record.to_dict() == {"name": "banana", "price": 120}
    assert list(record) == ["name", "price"]


def test_invalid_key_type():
    with pytest.raises(TypeError):
        RecordMap({1: "x"})
    assert 1 not in RecordMap()


def test_fetched_record_tracks_changes():
    record = RecordMap({"name": "apple", "price": 120}, fetched=True)
    assert record.is_fetched
    assert record.is_modified() is False
    record["price"] = 130
    assert record.is_modified() is True
    assert record.changed_columns() == ["price"]
    assert record.original_value("price") == 120
    record.mark_fetched()
    assert record.is_modified() is False


def test_local_record_is_always_modified():
    record = RecordMap({"name": "apple"})
    assert record.is_fetched is False
    assert record.is_modified() is True
    assert record.changed_columns() == ["name"]
    assert record.original_value("name") is None


def test_clone_is_independent():
    record = RecordMap({"name": "apple"}, fetched=True)
    copy = record.clone()
    copy["name"] = "banana"
    assert record["name"] == "apple"
    assert copy.is_fetched
    assert copy.original_value("name") == "apple"
