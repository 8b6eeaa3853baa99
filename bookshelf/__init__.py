"""Bookshelf - multi-library book catalog package

This package contains the catalog modules:
- Book records and their per-variant behavior (book.py)
- Restricted record file format (codec.py)
- Flat-file persistence (persistence.py)
- Catalog store and active-catalog indexes (library.py, indexes.py)
- CLI interface (main.py)
"""

from bookshelf.book import BookKind, BookRecord
from bookshelf.errors import (
    LibraryError,
    NotFoundError,
    PersistenceWarning,
    StateError,
    ValidationError,
)
from bookshelf.library import Library

__all__ = [
    "BookKind",
    "BookRecord",
    "Library",
    "LibraryError",
    "NotFoundError",
    "PersistenceWarning",
    "StateError",
    "ValidationError",
]
