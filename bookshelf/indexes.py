from typing import Dict, Iterable, List, Optional

from bookshelf.book import BookRecord


class CatalogIndex:
    """Id, title and author lookups over the active catalog's books.

    Title and author keys are lowercased. Lists keep the catalog's insertion order.
    """

    def __init__(self) -> None:
        self.books: List[BookRecord] = []
        self.by_id: Dict[str, BookRecord] = {}
        self.by_title: Dict[str, List[BookRecord]] = {}
        self.by_author: Dict[str, List[BookRecord]] = {}

    def clear(self) -> None:
        self.books.clear()
        self.by_id.clear()
        self.by_title.clear()
        self.by_author.clear()

    def rebuild(self, books: Iterable[BookRecord]) -> None:
        self.clear()
        for book in books:
            self.add(book)

    def add(self, book: BookRecord) -> None:
        self.books.append(book)
        self.by_id[book.book_id] = book
        self.by_title.setdefault(book.title.lower(), []).append(book)
        self.by_author.setdefault(book.author.lower(), []).append(book)

    def get(self, book_id: str) -> Optional[BookRecord]:
        return self.by_id.get(book_id)

    def __contains__(self, book_id: str) -> bool:
        return book_id in self.by_id

    def __len__(self) -> int:
        return len(self.books)

    def titled(self, title: str) -> List[BookRecord]:
        found = self.by_title.get(title.lower())
        if found is None:
            wanted = title.lower()
            return [book for book in self.books if book.title.lower() == wanted]
        return list(found)

    def authored_by(self, author: str) -> List[BookRecord]:
        found = self.by_author.get(author.lower())
        if found is None:
            wanted = author.lower()
            return [book for book in self.books if book.author.lower() == wanted]
        return list(found)
