"""
Table definitions and binders for the scentdb library example.
"""

from __future__ import annotations

from datetime import datetime

from scentdb import Column, RecordBinder, RecordSearcher, SingleRecordBinder, Table
from scentdb.core import MaxLengthValidator, MinValueValidator

BOOK = Table(
    "book",
    [
        Column("id", primary_key=True),
        Column("title", nullable=False, validators=[MaxLengthValidator(200)], label="Title"),
        Column("author", nullable=False, validators=[MaxLengthValidator(120)], label="Author"),
        Column("copies", default=1, validators=[MinValueValidator(0)], label="Copies"),
        Column("updated_at", default=lambda: datetime.now().isoformat(sep=" ")),
        Column("retired", default=0),
    ],
    version_column="updated_at",
    soft_delete_column="retired",
)

LOAN = Table(
    "loan",
    [
        Column("id", primary_key=True),
        Column("book_id", nullable=False),
        Column("borrower", nullable=False, validators=[MaxLengthValidator(80)]),
        Column("returned", default=0),
    ],
)


class BookBinder(SingleRecordBinder):
    table = BOOK


class LoanBinder(RecordBinder):
    table = LOAN


class BookSearcher(RecordSearcher):
    table = BOOK

    def get_result_columns(self):
        return [self.table.get_column(name) for name in ("id", "title", "author", "copies")]
