from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from bookshelf.errors import ValidationError


class BookKind(Enum):
    """Record variant, valued by the ``type`` tag used in the data file."""

    PHYSICAL = "BOOK"
    ELECTRONIC = "EBOOK"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "BookKind":
        if (tag or "").strip().upper() == cls.ELECTRONIC.value:
            return cls.ELECTRONIC
        return cls.PHYSICAL


def _issue_bounded(book: "BookRecord") -> None:
    book.issued_copies += 1


def _issue_unlimited(book: "BookRecord") -> None:
    # Downloads do not consume a copy.
    return None


@dataclass(frozen=True)
class VariantPolicy:
    label: str
    borrow_days: int
    issue: Callable[["BookRecord"], None]


VARIANT_POLICIES: Dict[BookKind, VariantPolicy] = {
    BookKind.PHYSICAL: VariantPolicy(label="Book", borrow_days=14, issue=_issue_bounded),
    BookKind.ELECTRONIC: VariantPolicy(label="EBook", borrow_days=21, issue=_issue_unlimited),
}


class BookRecord:
    """A single physical or electronic book held by a catalog."""

    def __init__(
        self,
        book_id: str,
        title: str,
        author: str,
        category: str = "",
        total_copies: int = 1,
        issued_copies: int = 0,
        kind: BookKind = BookKind.PHYSICAL,
        file_format: str = "",
        file_size_mb: float = 0.0,
    ) -> None:
        if book_id is None or not str(book_id).strip():
            raise ValidationError("Book ID cannot be empty.")
        if total_copies < 1:
            raise ValidationError("Total copies must be greater than 0.")
        if issued_copies < 0 or issued_copies > total_copies:
            raise ValidationError(
                f"Issued copies must be between 0 and {total_copies}, got {issued_copies}."
            )
        if not math.isfinite(file_size_mb):
            raise ValidationError(f"File size must be a finite number, got {file_size_mb}.")
        if file_size_mb < 0:
            raise ValidationError("File size cannot be negative.")

        self.book_id = str(book_id)
        self.title = _text(title)
        self.author = _text(author)
        self.category = _text(category)
        self.total_copies = int(total_copies)
        self.issued_copies = int(issued_copies)
        self.kind = kind
        if kind is BookKind.ELECTRONIC:
            self.file_format = _text(file_format)
            self.file_size_mb = float(file_size_mb)
        else:
            self.file_format = ""
            self.file_size_mb = 0.0

    @classmethod
    def physical(cls, book_id: str, title: str, author: str, category: str = "",
                 total_copies: int = 1) -> "BookRecord":
        return cls(book_id, title, author, category, total_copies)

    @classmethod
    def electronic(cls, book_id: str, title: str, author: str, category: str = "",
                   total_copies: int = 1, file_format: str = "",
                   file_size_mb: float = 0.0) -> "BookRecord":
        return cls(book_id, title, author, category, total_copies,
                   kind=BookKind.ELECTRONIC, file_format=file_format, file_size_mb=file_size_mb)

    # ------------------------- Derived values ------------------------- #
    @property
    def is_electronic(self) -> bool:
        return self.kind is BookKind.ELECTRONIC

    @property
    def remaining_copies(self) -> int:
        return self.total_copies - self.issued_copies

    @property
    def available(self) -> bool:
        return self.remaining_copies > 0

    @property
    def policy(self) -> VariantPolicy:
        return VARIANT_POLICIES[self.kind]

    @property
    def borrow_days(self) -> int:
        return self.policy.borrow_days

    @property
    def author_last_name(self) -> str:
        parts = self.author.split()
        return parts[-1] if parts else ""

    # ------------------------- Copy counters ------------------------- #
    def apply_issue(self) -> None:
        """Issue one copy according to the variant's policy. Callers check availability."""
        self.policy.issue(self)

    def apply_return(self) -> None:
        self.issued_copies -= 1

    def restock(self, total_copies: int) -> None:
        if total_copies < 1:
            raise ValidationError("Total copies must be greater than 0.")
        self.total_copies = total_copies
        self.issued_copies = 0

    # ------------------------- Presentation ------------------------- #
    def formatted_details(self) -> str:
        lines = [
            f"Book ID: {self.book_id}",
            f"Title: {self.title.upper()}",
            f"Author: {self.author} (Last Name: {self.author_last_name})",
            f"Category: {self.category}",
            f"Total Copies: {self.total_copies}",
            f"Issued Copies: {self.issued_copies}",
            f"Remaining Copies: {self.remaining_copies}",
            f"Available: {'Yes' if self.available else 'No'}",
            f"Borrow Duration: {self.borrow_days} days",
        ]
        if self.is_electronic:
            lines.append(f"File Format: {self.file_format}")
            lines.append(f"File Size: {self.file_size_mb:.2f} MB")
            lines.append("Type: EBook")
        return "\n".join(lines)

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} by {self.author} (ID: {self.book_id})"

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return (f"{self.policy.label}[ID={self.book_id}, Title={self.title}, "
                f"Author={self.author}, Remaining={self.remaining_copies}]")

    def to_dict(self) -> dict:
        return {
            "book_id": self.book_id,
            "type": self.kind.value,
            "title": self.title,
            "author": self.author,
            "category": self.category,
            "total_copies": self.total_copies,
            "issued_copies": self.issued_copies,
            "remaining_copies": self.remaining_copies,
            "available": self.available,
            "file_format": self.file_format,
            "file_size_mb": self.file_size_mb,
        }

    @staticmethod
    def from_row(row: Mapping[str, str]) -> Optional["BookRecord"]:
        """Rebuild a book from a decoded BOOK row.

        Returns None when the row has no usable ``bookId``. Unparsable counters fall
        back to defaults and are clamped into range rather than rejected.
        """
        book_id = row.get("bookId")
        if book_id is None or not book_id.strip():
            return None

        total_copies = max(1, _parse_int(row.get("totalCopies"), 1))
        issued_copies = min(max(0, _parse_int(row.get("issuedCopies"), 0)), total_copies)
        kind = BookKind.from_tag(row.get("type"))
        file_size_mb = max(0.0, _parse_float(row.get("fileSizeMB"), 0.0))

        return BookRecord(
            book_id=book_id,
            title=row.get("title") or "",
            author=row.get("author") or "",
            category=row.get("category") or "",
            total_copies=total_copies,
            issued_copies=issued_copies,
            kind=kind,
            file_format=row.get("fileFormat") or "",
            file_size_mb=file_size_mb,
        )


def _text(value) -> str:
    return "" if value is None else str(value)


def _parse_int(value: Optional[str], fallback: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


def _parse_float(value: Optional[str], fallback: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    return parsed if math.isfinite(parsed) else fallback
