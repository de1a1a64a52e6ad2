import os
import json
from typing import List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from book import Book

# Environment variable controlling CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "CATALOG_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def _text(value: Optional[str]) -> str:
    return "" if value is None else value


def format_book(book: Book) -> str:
    return f"{book.id} - {_text(book.title)} by {_text(book.author)}"


def print_list_result(books: List[Book]) -> None:
    """Print a list of books in the current output mode.
    - plain: '<id> - <title> by <author>' lines, or 'No books in catalog.'
    - json: JSON array of id, title, author
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print("No books in catalog.")
        return

    if mode == "rich":
        table = Table(title="📚 Books", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Author", style="white")
        for b in books:
            table.add_row(str(b.id), _text(b.title), _text(b.author))
        _console.print(table)
    else:
        for b in books:
            print(format_book(b))


def print_book_result(book: Optional[Book], book_id: str, action: str = "Found") -> None:
    """Print a single operation result; None means no book matched ``book_id``."""
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict() if book else None, ensure_ascii=False))
        return

    if book is None:
        print(f"Book with id {book_id} not found.")
        return

    if mode == "rich":
        content = (
            f"[bold]ID:[/] {book.id}\n"
            f"[bold]Title:[/] {_text(book.title)}\n"
            f"[bold]Author:[/] {_text(book.author)}"
        )
        _console.print(Panel.fit(content, title=f"📖 {action}", border_style="green"))
    else:
        print(f"{action}: {format_book(book)}")
