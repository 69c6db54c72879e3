"""
Library example: lending books with binders, searchers, and transactions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from scentdb import (
    DatabaseError,
    Operator,
    SQLiteConnectionParameters,
    SQLiteConnector,
    WhereSet,
    pool_end,
    pool_start,
)

from .tables import BOOK, BookBinder, BookSearcher, LoanBinder

SCHEMA = [
    "CREATE TABLE IF NOT EXISTS book ("
    "id INTEGER PRIMARY KEY, title TEXT NOT NULL, author TEXT NOT NULL, "
    "copies INTEGER NOT NULL DEFAULT 1, updated_at TEXT, retired INTEGER NOT NULL DEFAULT 0)",
    "CREATE TABLE IF NOT EXISTS loan ("
    "id INTEGER PRIMARY KEY, book_id INTEGER NOT NULL REFERENCES book (id), "
    "borrower TEXT NOT NULL, returned INTEGER NOT NULL DEFAULT 0)",
]

SAMPLE_BOOKS = [
    {"title": "Kindred", "author": "Octavia Butler", "copies": 2},
    {"title": "Kafka on the Shore", "author": "Haruki Murakami", "copies": 1},
    {"title": "The Dispossessed", "author": "Ursula K. Le Guin", "copies": 1},
]


def bootstrap(database_file: str) -> SQLiteConnectionParameters:
    pool_start()
    parameters = SQLiteConnectionParameters(database_file)
    with SQLiteConnector(parameters) as connector:
        with connector.transaction():
            for statement in SCHEMA:
                connector.execute(statement)
    return parameters


def seed_sample_data(connector: SQLiteConnector) -> List[int]:
    identifiers: List[int] = []
    for values in SAMPLE_BOOKS:
        binder = BookBinder(connector)
        binder.set_default_record()
        binder.record.update(values)
        binder.insert()
        identifiers.append(connector.fetch_last_inserted_record_id())
    return identifiers


def lend_book(connector: SQLiteConnector, book_id: int, borrower: str) -> None:
    """
    Take one copy of ``book_id`` and record the loan in one transaction.
    """
    with connector.transaction():
        book = BookBinder(connector, where_set=WhereSet(id=book_id))
        book.edit()
        if book.record["copies"] < 1:
            raise DatabaseError(f"No copies of {book.record['title']!r} are left.")
        book.record["copies"] -= 1
        book.record["updated_at"] = datetime.now().isoformat(sep=" ")
        book.update()

        loans = LoanBinder(connector)
        loans.records = [loans.table.create_record({"book_id": book_id, "borrower": borrower})]
        loans.insert()


def return_books(connector: SQLiteConnector, borrower: str) -> int:
    """
    Mark every open loan of ``borrower`` as returned and put the copies back.
    """
    with connector.transaction():
        loans = LoanBinder(connector, where_set=WhereSet(borrower=borrower, returned=0))
        loans.edit()
        for loan in loans.records:
            connector.execute("UPDATE book SET copies = copies + 1 WHERE id = ?", [loan["book_id"]])
            loan["returned"] = 1
        loans.update()
    return loans.record_count


def retire_book(connector: SQLiteConnector, book_id: int) -> None:
    book = BookBinder(connector, where_set=WhereSet(id=book_id))
    book.edit()
    book.delete()


def fetch_available_books(connector: SQLiteConnector) -> List[Dict[str, Any]]:
    available = WhereSet().add("copies", 0, Operator.GREATER).add(BOOK.soft_delete_column, 0)
    return BookSearcher(connector).search([available], part_after_where="ORDER BY title")


def run_demo(database_file: str) -> List[Dict[str, Any]]:
    parameters = bootstrap(database_file)
    try:
        with SQLiteConnector(parameters) as connector:
            kindred, kafka, _ = seed_sample_data(connector)
            lend_book(connector, kindred, "ada")
            lend_book(connector, kafka, "ada")
            return_books(connector, "ada")
            lend_book(connector, kafka, "grace")
            return fetch_available_books(connector)
    finally:
        pool_end()


if __name__ == "__main__":
    for entry in run_demo("library_demo.db"):
        print(f"{entry['title']} by {entry['author']} ({entry['copies']} available)")
