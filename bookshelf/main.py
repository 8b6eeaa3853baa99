import logging
from typing import Optional

import typer
from rich.console import Console

from bookshelf.book import BookRecord
from bookshelf.config import settings
from bookshelf.demo import outcome_summary, simulate_concurrent_issue
from bookshelf.errors import LibraryError
from bookshelf.library import Library
from bookshelf.ui_helpers import (
    print_book_details,
    print_book_list,
    print_catalog_list,
    print_stats_result,
    set_output_mode,
)
from bookshelf.validators import TextValidator

console = Console()

app = typer.Typer(help=settings.app_name)

# Options shared by every command, filled in by the callback below.
_state = {"data_file": None}


def _get_library() -> Library:
    return Library(settings=settings, data_file=_state["data_file"])


def _open_library(name: Optional[str], location: Optional[str]) -> Optional[Library]:
    """Load the store and select the requested library (or keep the first one)."""
    lib = _get_library()
    try:
        if name:
            lib.select_catalog(name, location)
        elif not lib.current_catalog_name:
            print("Error: No library selected. Create one with 'create-library'.")
            return None
    except LibraryError as e:
        print(f"Error: {e}")
        return None
    return lib


def _report_warnings(lib: Library) -> None:
    for warning in lib.persistence.drain_warnings():
        print(f"Warning: {warning}")


LibraryOption = typer.Option(None, "--library", "-l", help="Library name (defaults to the first library)")
LocationOption = typer.Option(None, "--location", help="Library location")


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output format: plain | json | rich (default: plain)"
    ),
    data_file: Optional[str] = typer.Option(
        None, "--data-file", help=f"Data file (default: {settings.data_file})"
    ),
):
    """Global CLI options (output mode, data file)."""
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.WARNING))
    if output:
        set_output_mode(output)
    _state["data_file"] = data_file


# ------------------------- Libraries ------------------------- #
@app.command("libraries")
def cli_libraries():
    """List all libraries."""
    lib = _get_library()
    _report_warnings(lib)
    print_catalog_list(lib.list_catalogs())


@app.command("create-library")
def cli_create_library(name: str, location: Optional[str] = typer.Option(None, "--location")):
    """Create a new library."""
    lib = _get_library()
    try:
        info = lib.create_catalog(name, location)
        print(f"Library '{info.name}' created at {info.location}.")
    except LibraryError as e:
        print(f"Error: {e}")
    _report_warnings(lib)


@app.command("delete-library")
def cli_delete_library(name: str, location: Optional[str] = typer.Option(None, "--location")):
    """Delete a library and all of its books."""
    lib = _open_library(name, location)
    if not lib:
        return
    try:
        info = lib.delete_current_catalog()
        print(f"Library '{info.name}' ({info.location}) deleted with {info.book_count} books.")
    except LibraryError as e:
        print(f"Error: {e}")
    _report_warnings(lib)


# ------------------------- Books ------------------------- #
@app.command("add")
def cli_add(
    book_id: str,
    title: str = typer.Option(..., "--title"),
    author: str = typer.Option(..., "--author"),
    category: str = typer.Option("", "--category"),
    copies: int = typer.Option(1, "--copies", min=1),
    ebook: bool = typer.Option(False, "--ebook", help="Add as an electronic book"),
    file_format: str = typer.Option("PDF", "--format"),
    size: float = typer.Option(0.0, "--size", min=0.0, help="File size in MB"),
    library: Optional[str] = LibraryOption,
    location: Optional[str] = LocationOption,
):
    """Add a book to a library."""
    if not TextValidator.validate_book_id(book_id):
        print("Error: Book ID cannot be empty.")
        return
    if not TextValidator.validate_title(title):
        print("Error: Title cannot be empty.")
        return
    if not TextValidator.validate_author(author):
        print("Error: Invalid author name. Use letters, spaces, apostrophes ('), hyphens (-), and periods (.).")
        return

    lib = _open_library(library, location)
    if not lib:
        return
    try:
        if ebook:
            book = BookRecord.electronic(book_id.strip(), title.strip(), author.strip(), category.strip(),
                                         copies, file_format.strip(), size)
        else:
            book = BookRecord.physical(book_id.strip(), title.strip(), author.strip(), category.strip(), copies)
        lib.add_book(book)
        print(f"Book added successfully to library '{lib.current_catalog_name}': {book.title} by {book.author}")
    except LibraryError as e:
        print(f"Error: {e}")
    _report_warnings(lib)


@app.command("issue")
def cli_issue(book_id: str, library: Optional[str] = LibraryOption, location: Optional[str] = LocationOption):
    """Issue one copy of a book."""
    lib = _open_library(library, location)
    if not lib:
        return
    try:
        book = lib.issue_book(book_id)
        if book.is_electronic:
            print(f"EBook '{book.title}' downloaded successfully! Format: {book.file_format}, "
                  f"Size: {book.file_size_mb} MB")
        else:
            print(f"Book issued successfully! Remaining copies: {book.remaining_copies}")
        print(f"Borrow duration: {book.borrow_days} days")
    except LibraryError as e:
        print(f"Error: {e}")
    _report_warnings(lib)


@app.command("return")
def cli_return(book_id: str, library: Optional[str] = LibraryOption, location: Optional[str] = LocationOption):
    """Return one issued copy of a book."""
    lib = _open_library(library, location)
    if not lib:
        return
    try:
        book = lib.return_book(book_id)
        print(f"Book returned successfully! Remaining copies: {book.remaining_copies}")
    except LibraryError as e:
        print(f"Error: {e}")
    _report_warnings(lib)


@app.command("delete")
def cli_delete(book_id: str, library: Optional[str] = LibraryOption, location: Optional[str] = LocationOption):
    """Delete a book from a library."""
    lib = _open_library(library, location)
    if not lib:
        return
    try:
        book = lib.delete_book(book_id)
        print(f"Book with ID {book.book_id} has been deleted.")
    except LibraryError as e:
        print(f"Error: {e}")
    _report_warnings(lib)


@app.command("list")
def cli_list(library: Optional[str] = LibraryOption, location: Optional[str] = LocationOption):
    """List all books in a library."""
    lib = _open_library(library, location)
    if not lib:
        return
    print_book_list(lib.all_books(), title=lib.current_catalog_name)


@app.command("find")
def cli_find(book_id: str, library: Optional[str] = LibraryOption, location: Optional[str] = LocationOption):
    """Find a book by ID and show its details."""
    lib = _open_library(library, location)
    if not lib:
        return
    book = lib.search_by_id(book_id)
    if book:
        print_book_details(book)
    else:
        print(f"Book with ID {book_id} not found.")


@app.command("search")
def cli_search(
    title: Optional[str] = typer.Option(None, "--title"),
    author: Optional[str] = typer.Option(None, "--author"),
    library: Optional[str] = LibraryOption,
    location: Optional[str] = LocationOption,
):
    """Search books by exact title or author (case-insensitive)."""
    if not title and not author:
        print("Error: Provide --title or --author.")
        return
    lib = _open_library(library, location)
    if not lib:
        return
    books = lib.search_by_title(title) if title else lib.search_by_author(author)
    print_book_list(books, title="Search Results")


@app.command("sort")
def cli_sort(
    by: str = typer.Option("title", "--by", help="title | author | id"),
    library: Optional[str] = LibraryOption,
    location: Optional[str] = LocationOption,
):
    """List books sorted by title, author or ID."""
    sorters = {"title": "sort_by_title", "author": "sort_by_author", "id": "sort_by_id"}
    key = by.lower().strip()
    if key not in sorters:
        print(f"Error: Unknown sort key '{by}'. Use title, author or id.")
        return
    lib = _open_library(library, location)
    if not lib:
        return
    print_book_list(getattr(lib, sorters[key])(), title=f"Sorted by {key}")


@app.command("stats")
def cli_stats(library: Optional[str] = LibraryOption, location: Optional[str] = LocationOption):
    """Show library statistics."""
    lib = _open_library(library, location)
    if not lib:
        return
    print_stats_result(lib.statistics())


@app.command("demo")
def cli_demo(
    book_id: Optional[str] = typer.Argument(None, help="Book to contend for (defaults to the first book)"),
    users: int = typer.Option(2, "--users", min=1),
    library: Optional[str] = LibraryOption,
    location: Optional[str] = LocationOption,
):
    """Demonstrate several users issuing the same book at once."""
    lib = _open_library(library, location)
    if not lib:
        return
    books = lib.all_books()
    if not books:
        print("Please add at least one book first to demonstrate concurrency.")
        return
    target = book_id or books[0].book_id
    try:
        report = simulate_concurrent_issue(lib, target, [f"User{i}" for i in range(1, users + 1)])
    except LibraryError as e:
        print(f"Error: {e}")
        return

    if report.restocked:
        print(f"Note: Book {target} had fewer than 2 copies; restocked for the demo.")
    print(f"Available copies before: {report.remaining_before}")
    for outcome in report.outcomes:
        print(f"[{outcome.user}] {outcome.message}")
    print(f"Available copies after: {report.remaining_after}")
    summary = outcome_summary(report)
    console.print(f"[dim]{summary['succeeded']} succeeded, {summary['failed']} failed[/]")
    _report_warnings(lib)


if __name__ == "__main__":
    app()
