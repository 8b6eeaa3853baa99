from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from bookshelf.book import BookRecord
from bookshelf.errors import ValidationError

UNKNOWN_LOCATION = "Unknown"


@dataclass(frozen=True)
class CatalogInfo:
    name: str
    location: str
    book_count: int


class Catalog:
    """One named, located library and its books in insertion order."""

    def __init__(self, name: str, location: str) -> None:
        self.name = name
        self.location = location
        self.books: List[BookRecord] = []

    def has_book(self, book_id: str) -> bool:
        return any(book.book_id == book_id for book in self.books)

    def info(self) -> CatalogInfo:
        return CatalogInfo(self.name, self.location, len(self.books))

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"Catalog(name={self.name!r}, location={self.location!r}, books={len(self.books)})"


def normalize_location(location: Optional[str]) -> str:
    normalized = (location or "").strip()
    return normalized if normalized else UNKNOWN_LOCATION


def require_catalog_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Library name cannot be empty.")
    return cleaned


def catalog_key(name: Optional[str], location: Optional[str]) -> str:
    """Identity of a catalog: trimmed name and normalized location, lowercased."""
    return f"{(name or '').strip().lower()}::{normalize_location(location).lower()}"
