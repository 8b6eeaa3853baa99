import os
import json
from typing import Any, Dict, List, Sequence

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from bookshelf.book import BookRecord
from bookshelf.catalog import CatalogInfo

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LIB_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_book_list(books: Sequence[BookRecord], title: str = "Books") -> None:
    """Print books in the current output mode.
    - plain: 'ID - Title by Author [remaining/total]' lines, or 'No books in the library.'
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if not books:
        print("No books in the library.")
        return

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title=f"📚 {title}", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        table.add_column("Type", style="dim")
        table.add_column("Remaining", justify="right")
        for b in books:
            table.add_row(b.book_id, b.title, b.author, b.policy.label,
                          f"{b.remaining_copies}/{b.total_copies}")
        _console.print(table)
    else:
        for b in books:
            print(f"{b.book_id} - {b.title} by {b.author} [{b.remaining_copies}/{b.total_copies}]")


def print_book_details(book: BookRecord) -> None:
    mode = get_output_mode()
    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        _console.print(Panel.fit(book.formatted_details(), title=f"📖 {book.book_id}", border_style="blue"))
    else:
        print("Book Found")
        print(book.formatted_details())


def print_catalog_list(catalogs: List[CatalogInfo]) -> None:
    mode = get_output_mode()

    if not catalogs:
        print("No libraries found.")
        return

    if mode == "json":
        payload = [{"name": c.name, "location": c.location, "book_count": c.book_count} for c in catalogs]
        print(json.dumps(payload, ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="🏛️  Libraries", header_style="bold cyan")
        table.add_column("Name", style="white")
        table.add_column("Location", style="white")
        table.add_column("Books", justify="right")
        for c in catalogs:
            table.add_row(c.name, c.location, str(c.book_count))
        _console.print(table)
    else:
        for i, c in enumerate(catalogs, 1):
            print(f"{i}. {c.name} ({c.location}) - {c.book_count} books")


def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Total Books:[/] {stats['total_books']}\n"
            f"[bold]Available Books:[/] {stats['available_books']}\n"
            f"[bold]Total Issued Copies:[/] {stats['total_issued']}"
        )
        _console.print(Panel.fit(content, title=f"📊 {stats['library']}", border_style="blue"))
    else:
        print(f"Library: {stats['library']}")
        print(f"Total Books: {stats['total_books']}")
        print(f"Available Books: {stats['available_books']}")
        print(f"Total Issued Copies: {stats['total_issued']}")
