import pytest

from scentdb.dialects import number_placeholders


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT * FROM item WHERE id = ?", "SELECT * FROM item WHERE id = $1"),
        (
            "UPDATE item SET name = ?, price = ? WHERE id = ?",
            "UPDATE item SET name = $1, price = $2 WHERE id = $3",
        ),
        ("SELECT '?' FROM item WHERE id = ?", "SELECT '?' FROM item WHERE id = $1"),
        (
            "SELECT * FROM item WHERE name = 'it''s ?' AND id = ?",
            "SELECT * FROM item WHERE name = 'it''s ?' AND id = $1",
        ),
        ("SELECT ''?", "SELECT ''$1"),
        ("SELECT 1", "SELECT 1"),
    ],
)
def test_question_marks_outside_literals_are_numbered(sql, expected):
    assert number_placeholders(sql) == expected


def test_numbering_continues_across_literals():
    sql = "INSERT INTO t (a, b, c) VALUES (?, 'x?y', ?)"
    assert number_placeholders(sql) == "INSERT INTO t (a, b, c) VALUES ($1, 'x?y', $2)"


def test_custom_prefix():
    assert number_placeholders("a = ? AND b = ?", ":") == "a = :1 AND b = :2"
