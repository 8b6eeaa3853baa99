import threading

import pytest

from bookshelf.book import BookRecord
from bookshelf.demo import outcome_summary, simulate_concurrent_issue
from bookshelf.errors import NotFoundError, StateError
from bookshelf.library import Library


def test_concurrent_issues_never_overdraw(lib, data_file):
    lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.physical("B1", "Go", "Rob", "", 5))

    start = threading.Barrier(12)
    results = []

    def worker():
        start.wait()
        try:
            lib.issue_book("B1")
            results.append(True)
        except StateError:
            results.append(False)

    threads = [threading.Thread(target=worker) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 5
    assert results.count(False) == 7
    assert lib.search_by_id("B1").issued_copies == 5
    assert Library(data_file=data_file).search_by_id("B1").issued_copies == 5


def test_simulation_restocks_single_copy_books(lib):
    lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.physical("B1", "Go", "Rob", "", 1))

    report = simulate_concurrent_issue(lib, "B1")

    assert report.restocked
    assert report.remaining_before == 5
    assert report.remaining_after == 3
    assert [o.user for o in report.outcomes] == ["User1", "User2"]
    assert outcome_summary(report) == {"succeeded": 2, "failed": 0}


def test_simulation_reports_failures(lib):
    lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.physical("B1", "Go", "Rob", "", 2))

    report = simulate_concurrent_issue(lib, "B1", users=["A", "B", "C"])

    assert not report.restocked
    assert report.remaining_after == 0
    assert outcome_summary(report) == {"succeeded": 2, "failed": 1}
    failed = [o for o in report.outcomes if not o.success]
    assert "not available" in failed[0].message


def test_simulation_unknown_book(lib):
    lib.create_catalog("Central", "Downtown")
    with pytest.raises(NotFoundError):
        simulate_concurrent_issue(lib, "missing")
