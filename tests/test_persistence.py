import logging
from pathlib import Path

from bookshelf import codec
from bookshelf.book import BookKind, BookRecord
from bookshelf.config import Settings
from bookshelf.errors import PersistenceWarning
from bookshelf.library import Library
from bookshelf.persistence import MAX_WARNINGS, CatalogPersistence


def _write(path, text):
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def test_missing_file_is_empty_store(data_file):
    persistence = CatalogPersistence(data_file)
    assert persistence.load() == {}
    assert persistence.warnings == []


def test_book_row_without_id_is_skipped(data_file):
    _write(data_file, codec.encode([
        {"recordType": "LIBRARY", "libraryName": "Central", "libraryLocation": "Downtown"},
        {"recordType": "BOOK", "libraryName": "Central", "libraryLocation": "Downtown",
         "type": "BOOK", "title": "No Id", "author": "Nobody", "category": "",
         "totalCopies": 1, "issuedCopies": 0, "fileFormat": "", "fileSizeMB": 0.0},
    ]))

    lib = Library(data_file=data_file)
    assert [(c.name, c.location, c.book_count) for c in lib.list_catalogs()] == [("Central", "Downtown", 0)]
    assert lib.persistence.warnings == []


def test_duplicate_ids_keep_first_row(data_file):
    _write(data_file, """[
      {"recordType": "BOOK", "libraryName": "Central", "libraryLocation": "Downtown",
       "bookId": "B1", "title": "First", "author": "A", "totalCopies": 2, "issuedCopies": 1},
      {"recordType": "BOOK", "libraryName": "central", "libraryLocation": "DOWNTOWN",
       "bookId": "B1", "title": "Second", "author": "B", "totalCopies": 5, "issuedCopies": 0}
    ]""")

    catalogs = CatalogPersistence(data_file).load()
    assert len(catalogs) == 1
    (catalog,) = catalogs.values()
    assert catalog.name == "Central"
    assert [b.title for b in catalog.books] == ["First"]


def test_book_rows_default_library_name_and_location(data_file):
    _write(data_file, '[{"recordType": "BOOK", "libraryName": "  ", "bookId": "B1", '
                      '"title": "Go", "author": "Rob", "totalCopies": 1, "issuedCopies": 0}]')

    catalogs = CatalogPersistence(data_file, default_library_name="Main Shelf").load()
    (catalog,) = catalogs.values()
    assert (catalog.name, catalog.location) == ("Main Shelf", "Unknown")
    assert catalog.books[0].book_id == "B1"


def test_load_preserves_order_and_selects_first(data_file):
    _write(data_file, codec.encode([
        {"recordType": "LIBRARY", "libraryName": "Zeta", "libraryLocation": "Z"},
        {"recordType": "library", "libraryName": "Alpha", "libraryLocation": "A"},
        {"recordType": "LIBRARY", "libraryName": "zeta", "libraryLocation": "z"},
    ]))

    lib = Library(data_file=data_file)
    assert [c.name for c in lib.list_catalogs()] == ["Zeta", "Alpha"]
    assert lib.current_catalog_name == "Zeta"


def test_blank_library_row_discards_whole_store(data_file, caplog):
    _write(data_file, codec.encode([
        {"recordType": "LIBRARY", "libraryName": "Central", "libraryLocation": "Downtown"},
        {"recordType": "LIBRARY", "libraryName": "", "libraryLocation": "Nowhere"},
    ]))

    with caplog.at_level(logging.WARNING, logger="bookshelf.persistence"):
        lib = Library(data_file=data_file)

    assert lib.list_catalogs() == []
    assert lib.current_catalog_name == ""
    assert len(lib.persistence.warnings) == 1
    assert isinstance(lib.persistence.warnings[0], PersistenceWarning)
    assert "Unable to load" in caplog.text


def test_unreadable_file_is_a_warning(data_file):
    with open(data_file, "wb") as f:
        f.write(b"\xff\xfe\x00not utf-8")

    lib = Library(data_file=data_file)
    assert lib.list_catalogs() == []
    assert len(lib.persistence.warnings) == 1


def test_save_failure_keeps_mutation(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    lib = Library(data_file=str(blocker / "data.json"))
    assert lib.persistence.warnings == []

    info = lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.physical("B1", "Go", "Rob"))

    assert info.name == "Central"
    assert lib.current_catalog_book_count == 1
    assert len(lib.persistence.warnings) == 2
    assert all("Unable to save" in str(w) for w in lib.persistence.warnings)


def test_save_creates_parent_directories(tmp_path):
    target = tmp_path / "nested" / "dir" / "data.json"
    lib = Library(data_file=str(target))
    lib.create_catalog("Central", "Downtown")
    assert target.exists()


def test_store_round_trip(data_file):
    lib = Library(data_file=data_file)
    lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.physical("B1", 'Say "hi"\n', "O'Brien\\Tab\t", "Kids", 3))
    lib.issue_book("B1")
    lib.add_book(BookRecord.electronic("E1", "Go", "Rob", "Tech", 2, "EPUB", 12.75))
    lib.create_catalog("Central", "Uptown")

    reloaded = Library(data_file=data_file)
    assert [(c.name, c.location, c.book_count) for c in reloaded.list_catalogs()] == [
        ("Central", "Downtown", 2), ("Central", "Uptown", 0),
    ]
    reloaded.select_catalog("Central", "Downtown")
    lib.select_catalog("Central", "Downtown")
    original = {b.book_id: b.to_dict() for b in lib.all_books()}
    restored = {b.book_id: b.to_dict() for b in reloaded.all_books()}
    assert restored == original
    assert restored["B1"]["title"] == 'Say "hi"\n'
    assert restored["B1"]["issued_copies"] == 1
    assert reloaded.search_by_id("E1").kind is BookKind.ELECTRONIC
    assert reloaded.search_by_id("E1").file_size_mb == 12.75


def test_reencoding_loaded_store_is_stable(data_file):
    lib = Library(data_file=data_file)
    lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.electronic("E1", "Tab\there", "Rob", "", 2, "PDF", 0.5))

    with open(data_file, encoding="utf-8") as f:
        first = f.read()
    again = codec.encode_catalogs(CatalogPersistence(data_file).load().values())
    assert again == first


def test_settings_select_data_file(tmp_path):
    settings = Settings().with_data_file(str(tmp_path / "custom.json"))
    lib = Library(settings=settings)
    lib.create_catalog("Central", "Downtown")
    assert (tmp_path / "custom.json").exists()


def test_numeric_book_id_is_written_as_text(data_file):
    lib = Library(data_file=data_file)
    lib.create_catalog("Central", "Downtown")
    lib.add_book(BookRecord.physical(7, 1984, "Orwell"))

    with open(data_file, encoding="utf-8") as f:
        text = f.read()
    assert '"bookId": "7"' in text
    assert '"title": "1984"' in text

    reloaded = Library(data_file=data_file)
    assert reloaded.search_by_id("7").title == "1984"
    assert [b.book_id for b in reloaded.search_by_title("1984")] == ["7"]


def test_failed_replace_keeps_previous_file(data_file, monkeypatch):
    lib = Library(data_file=data_file)
    lib.create_catalog("Central", "Downtown")
    with open(data_file, encoding="utf-8") as f:
        before = f.read()

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("bookshelf.persistence.os.replace", fail_replace)
    lib.add_book(BookRecord.physical("B1", "Go", "Rob"))

    with open(data_file, encoding="utf-8") as f:
        assert f.read() == before
    assert len(lib.persistence.warnings) == 1
    assert "disk full" in str(lib.persistence.warnings[0])
    assert [p.name for p in Path(data_file).parent.glob("*.tmp")] == []


def test_warnings_are_capped_and_drained(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    persistence = CatalogPersistence(blocker / "data.json")

    for _ in range(MAX_WARNINGS + 5):
        assert persistence.save([]) is False

    assert len(persistence.warnings) == MAX_WARNINGS
    drained = persistence.drain_warnings()
    assert len(drained) == MAX_WARNINGS
    assert persistence.warnings == []
