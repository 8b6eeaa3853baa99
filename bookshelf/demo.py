import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from bookshelf.errors import LibraryError, NotFoundError
from bookshelf.library import Library

logger = logging.getLogger(__name__)

DEMO_MIN_COPIES = 2
DEMO_RESTOCK_COPIES = 5


@dataclass
class IssueOutcome:
    user: str
    success: bool
    message: str


@dataclass
class ConcurrencyReport:
    book_id: str
    remaining_before: int
    remaining_after: int
    restocked: bool = False
    outcomes: List[IssueOutcome] = field(default_factory=list)


class IssueRequestThread(threading.Thread):
    """One user's attempt to issue a book from a shared library."""

    def __init__(self, library: Library, book_id: str, user: str, delay: float = 0.0) -> None:
        super().__init__(name=f"BookIssueThread-{user}")
        self.library = library
        self.book_id = book_id
        self.user = user
        self.delay = delay
        self.outcome = IssueOutcome(user, False, "not started")

    def run(self) -> None:
        logger.info(f"[{self.user}] Attempting to issue book: {self.book_id}")
        try:
            self.library.issue_book(self.book_id)
            self.outcome = IssueOutcome(self.user, True, f"Successfully issued book: {self.book_id}")
        except LibraryError as exc:
            self.outcome = IssueOutcome(self.user, False, f"Failed to issue book: {exc}")
        logger.info(f"[{self.user}] {self.outcome.message}")
        if self.delay:
            time.sleep(self.delay)


def simulate_concurrent_issue(library: Library, book_id: str,
                              users: Sequence[str] = ("User1", "User2"),
                              delay: float = 0.0) -> ConcurrencyReport:
    """Issue ``book_id`` once per user, all users at the same time.

    A book with fewer than two copies is first restocked so the demo has something
    to contend for.
    """
    book = library.search_by_id(book_id)
    if book is None:
        raise NotFoundError(f"Book ID not found: {book_id}")

    restocked = False
    if book.total_copies < DEMO_MIN_COPIES:
        library.restock_book(book_id, DEMO_RESTOCK_COPIES)
        restocked = True

    report = ConcurrencyReport(book_id, book.remaining_copies, book.remaining_copies, restocked)
    threads = [IssueRequestThread(library, book_id, user, delay) for user in users]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    report.outcomes = [thread.outcome for thread in threads]
    report.remaining_after = book.remaining_copies
    return report


def outcome_summary(report: ConcurrencyReport) -> Dict[str, int]:
    succeeded = sum(1 for o in report.outcomes if o.success)
    return {"succeeded": succeeded, "failed": len(report.outcomes) - succeeded}
