import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Union

from bookshelf import codec
from bookshelf.book import BookRecord
from bookshelf.catalog import Catalog, catalog_key, normalize_location, require_catalog_name
from bookshelf.errors import PersistenceWarning

logger = logging.getLogger(__name__)

# Oldest warnings are dropped once this many are held.
MAX_WARNINGS = 50


class CatalogPersistence:
    """Loads the catalog store from the data file and rewrites it after mutations."""

    def __init__(self, path: Union[str, os.PathLike], default_library_name: str = "Default Library") -> None:
        self.path = Path(path)
        self.default_library_name = default_library_name
        self.warnings: List[PersistenceWarning] = []

    # ------------------------- Loading ------------------------- #
    def load(self) -> Dict[str, Catalog]:
        """Read every catalog and book from the data file.

        A missing file is an empty store. Rows without a usable ``bookId`` and rows
        repeating an id already loaded into the same catalog are skipped. Any error
        discards everything parsed so far and returns an empty store; it is
        reported as a warning, never raised.
        """
        if not self.path.exists():
            logger.info(f"No data file at {self.path}; starting with an empty store")
            return {}

        try:
            text = self.path.read_text(encoding="utf-8")
            catalogs = self._catalogs_from_rows(codec.decode(text))
        except Exception as exc:
            self._warn(f"Unable to load existing library data from {self.path}: {exc}")
            return {}

        logger.info(
            f"Loaded {len(catalogs)} libraries and "
            f"{sum(len(c.books) for c in catalogs.values())} books from {self.path}"
        )
        return catalogs

    def _catalogs_from_rows(self, rows: Iterable[Dict[str, str]]) -> Dict[str, Catalog]:
        catalogs: Dict[str, Catalog] = {}

        for row in rows:
            record_type = (row.get("recordType") or "").upper()
            if record_type == codec.RECORD_LIBRARY:
                self._ensure_catalog(catalogs, row.get("libraryName"), row.get("libraryLocation"))
                continue

            name = row.get("libraryName") or ""
            if not name.strip():
                name = self.default_library_name
            catalog = self._ensure_catalog(catalogs, name, row.get("libraryLocation"))

            book = BookRecord.from_row(row)
            if book is None:
                logger.debug(f"Skipping book row without an id in '{catalog.name}'")
                continue
            if catalog.has_book(book.book_id):
                logger.debug(f"Skipping duplicate book id {book.book_id} in '{catalog.name}'")
                continue
            catalog.books.append(book)

        return catalogs

    @staticmethod
    def _ensure_catalog(catalogs: Dict[str, Catalog], name, location) -> Catalog:
        name = require_catalog_name(name)
        location = normalize_location(location)
        key = catalog_key(name, location)
        existing = catalogs.get(key)
        if existing is not None:
            return existing
        created = Catalog(name, location)
        catalogs[key] = created
        return created

    # ------------------------- Saving ------------------------- #
    def save(self, catalogs: Iterable[Catalog]) -> bool:
        """Replace the data file with every catalog. Returns False on failure.

        The text is written to a temporary file beside the data file and moved
        into place, so a failed write leaves the previous file intact.
        """
        try:
            text = codec.encode_catalogs(catalogs)
            if self.path.parent and not self.path.parent.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, self.path)
            except BaseException:
                os.unlink(tmp_name)
                raise
        except Exception as exc:
            self._warn(f"Unable to save library data to {self.path}: {exc}")
            return False
        logger.debug(f"Saved library data to {self.path}")
        return True

    # ------------------------- Warnings ------------------------- #
    def drain_warnings(self) -> List[PersistenceWarning]:
        """Return the recorded warnings and forget them."""
        drained = list(self.warnings)
        self.warnings.clear()
        return drained

    def _warn(self, message: str) -> None:
        warning = PersistenceWarning(message)
        self.warnings.append(warning)
        del self.warnings[:-MAX_WARNINGS]
        logger.warning(message)
