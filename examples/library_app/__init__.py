from .demo import (  # noqa: F401
    bootstrap,
    fetch_available_books,
    lend_book,
    retire_book,
    return_books,
    run_demo,
    seed_sample_data,
)

__all__ = [
    "bootstrap",
    "seed_sample_data",
    "lend_book",
    "return_books",
    "retire_book",
    "fetch_available_books",
    "run_demo",
]
