import logging
import threading
from typing import Any, Dict, List, Optional

from bookshelf.book import BookRecord
from bookshelf.catalog import Catalog, CatalogInfo, catalog_key, normalize_location, require_catalog_name
from bookshelf.config import Settings, settings as default_settings
from bookshelf.errors import NotFoundError, StateError, ValidationError
from bookshelf.indexes import CatalogIndex
from bookshelf.persistence import CatalogPersistence

logger = logging.getLogger(__name__)


class Library:
    """Manages the library catalogs, the active catalog's indexes and data persistence.

    Every mutating operation holds one store-wide lock until its file write has
    finished, so mutations and their writes never interleave. Read operations do
    not take the lock and may observe a mutation in progress from another thread.
    """

    def __init__(self, settings: Optional[Settings] = None, data_file: Optional[str] = None) -> None:
        self.settings = settings or default_settings
        if data_file:
            self.settings = self.settings.with_data_file(data_file)

        self.persistence = CatalogPersistence(self.settings.data_file, self.settings.default_library_name)
        self._lock = threading.Lock()
        self._index = CatalogIndex()
        self._active_key: Optional[str] = None
        self._catalogs: Dict[str, Catalog] = self.persistence.load()

        if self._catalogs:
            self._activate(next(iter(self._catalogs)))

    # ------------------------- Catalogs ------------------------- #
    def list_catalogs(self) -> List[CatalogInfo]:
        return [catalog.info() for catalog in self._catalogs.values()]

    def catalog_exists(self, name: str, location: Optional[str] = None) -> bool:
        return catalog_key(name, location) in self._catalogs

    def create_catalog(self, name: str, location: Optional[str] = None) -> CatalogInfo:
        """Create a catalog, make it active and persist."""
        with self._lock:
            name = require_catalog_name(name)
            location = normalize_location(location)
            key = catalog_key(name, location)
            if key in self._catalogs:
                raise ValidationError(f"Library already exists at this location: {name} ({location})")

            catalog = Catalog(name, location)
            self._catalogs[key] = catalog
            self._activate(key)
            self._save()
            logger.info(f"Created library '{name}' ({location})")
            return catalog.info()

    def select_catalog(self, name: str, location: Optional[str] = None) -> CatalogInfo:
        with self._lock:
            key = catalog_key(name, location)
            if key not in self._catalogs:
                raise NotFoundError(f"Library not found: {name} ({normalize_location(location)})")
            self._activate(key)
            return self._catalogs[key].info()

    def delete_current_catalog(self) -> CatalogInfo:
        """Remove the active catalog; the first remaining catalog becomes active."""
        with self._lock:
            removed = self._require_active()
            del self._catalogs[self._active_key]

            if self._catalogs:
                self._activate(next(iter(self._catalogs)))
            else:
                self._active_key = None
                self._index.clear()

            self._save()
            logger.info(f"Deleted library '{removed.name}' ({removed.location})")
            return removed.info()

    @property
    def current_catalog_name(self) -> str:
        current = self._current()
        return current.name if current else ""

    @property
    def current_catalog_location(self) -> str:
        current = self._current()
        return current.location if current else ""

    @property
    def current_catalog_book_count(self) -> int:
        return len(self._index)

    # ------------------------- Books ------------------------- #
    def add_book(self, book: BookRecord) -> BookRecord:
        with self._lock:
            catalog = self._require_active()
            if book.book_id in self._index:
                raise ValidationError(f"Book ID already exists in this library: {book.book_id}")

            catalog.books.append(book)
            self._index.add(book)
            self._save()
            return book

    def issue_book(self, book_id: str) -> BookRecord:
        with self._lock:
            book = self._require_book(book_id)
            if not book.available:
                raise StateError(f"Book is not available for issue: {book_id}")
            book.apply_issue()
            self._save()
            return book

    def return_book(self, book_id: str) -> BookRecord:
        with self._lock:
            book = self._require_book(book_id)
            if book.issued_copies == 0:
                raise StateError(f"No copies are currently issued: {book_id}")
            book.apply_return()
            self._save()
            return book

    def delete_book(self, book_id: str) -> BookRecord:
        with self._lock:
            book = self._require_book(book_id)
            catalog = self._current()
            catalog.books = [b for b in catalog.books if b.book_id != book_id]
            self._index.rebuild(catalog.books)
            self._save()
            return book

    def restock_book(self, book_id: str, total_copies: int) -> BookRecord:
        """Reset a book to ``total_copies`` copies with none issued."""
        with self._lock:
            book = self._require_book(book_id)
            book.restock(total_copies)
            self._save()
            return book

    def all_books(self) -> List[BookRecord]:
        return list(self._index.books)

    def search_by_id(self, book_id: str) -> Optional[BookRecord]:
        return self._index.get(book_id)

    def search_by_title(self, title: str) -> List[BookRecord]:
        return self._index.titled(title)

    def search_by_author(self, author: str) -> List[BookRecord]:
        return self._index.authored_by(author)

    def sort_by_title(self) -> List[BookRecord]:
        return sorted(self._index.books, key=lambda b: b.title.lower())

    def sort_by_author(self) -> List[BookRecord]:
        return sorted(self._index.books, key=lambda b: b.author.lower())

    def sort_by_id(self) -> List[BookRecord]:
        return sorted(self._index.books, key=lambda b: b.book_id)

    def statistics(self) -> Dict[str, Any]:
        books = self.all_books()
        return {
            "library": self.current_catalog_name,
            "total_books": len(books),
            "available_books": sum(1 for b in books if b.available),
            "total_issued": sum(b.issued_copies for b in books),
        }

    # ------------------------- Internals ------------------------- #
    def _current(self) -> Optional[Catalog]:
        if self._active_key is None:
            return None
        return self._catalogs.get(self._active_key)

    def _require_active(self) -> Catalog:
        current = self._current()
        if current is None:
            raise StateError("No library selected.")
        return current

    def _require_book(self, book_id: str) -> BookRecord:
        self._require_active()
        book = self._index.get(book_id)
        if book is None:
            raise NotFoundError(f"Book ID not found: {book_id}")
        return book

    def _activate(self, key: str) -> None:
        self._active_key = key
        self._index.rebuild(self._catalogs[key].books)

    def _save(self) -> None:
        # A failed write is recorded as a warning; the in-memory change stands.
        self.persistence.save(self._catalogs.values())
