import logging
import subprocess
import sys
import webbrowser
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from catalog import CatalogStore
from config import settings
from ui_helpers import print_book_result, print_list_result, set_output_mode

APP_NAME = "Book Catalog CLI"

console = Console()
logger = logging.getLogger(__name__)


class CatalogSession:
    """Holds the store shared by every command of one CLI process."""

    _instance: Optional[CatalogStore] = None

    @classmethod
    def get_instance(cls) -> CatalogStore:
        if cls._instance is None:
            cls._instance = CatalogStore()
            logger.debug("Catalog session started with %d books", len(cls._instance))
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None


# --- Typer CLI application ---
app = typer.Typer(help=APP_NAME)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    if output:
        set_output_mode(output)


@app.command("list")
def cli_list():
    """List every book in catalog order."""
    print_list_result(CatalogSession.get_instance().list_books())


@app.command("get")
def cli_get(book_id: str):
    """Show the book with the given id."""
    book = CatalogSession.get_instance().get_book_by_id(book_id)
    print_book_result(book, book_id)


@app.command("add")
def cli_add(
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
):
    """Add a book; the id is assigned by the catalog."""
    book = CatalogSession.get_instance().add_book(title=title, author=author)
    print_book_result(book, str(book.id), action="Added")


@app.command("update")
def cli_update(
    book_id: str,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    author: Optional[str] = typer.Option(None, "--author", "-a"),
):
    """Change title and/or author of a book. Empty values leave a field unchanged."""
    book = CatalogSession.get_instance().update_book_by_id(book_id, title=title, author=author)
    print_book_result(book, book_id, action="Updated")


@app.command("delete")
def cli_delete(book_id: str):
    """Remove a book by id."""
    book = CatalogSession.get_instance().delete_book_by_id(book_id)
    print_book_result(book, book_id, action="Deleted")


@app.command("serve")
def cli_serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
    open_browser: bool = typer.Option(True, "--browser/--no-browser"),
):
    """Start the catalog API with uvicorn."""
    returncode = serve(host=host, port=port, open_browser=open_browser)
    if returncode:
        raise typer.Exit(code=returncode)


def serve(host: Optional[str] = None, port: Optional[int] = None, open_browser: bool = True) -> int:
    """Run the API server in a uvicorn subprocess and return its exit code."""
    host = host or settings.api_host
    port = int(port or settings.api_port)
    url = f"http://{host}:{port}/docs"
    print(f"Starting catalog API on {url}")

    if open_browser:
        try:
            webbrowser.open(url)
        except webbrowser.Error:
            console.print("[yellow]Could not open a web browser automatically.[/]")

    args = [
        sys.executable,
        "-m", "uvicorn",
        "api:app",
        "--host", host,
        "--port", str(port),
        "--log-level", settings.log_level.lower(),
    ]
    result = subprocess.run(args)
    if result.returncode != 0:
        console.print(f"[bold red]Error:[/] uvicorn exited with code {result.returncode}. Is it installed?")
    return result.returncode


# --- Interactive menu ---
def _menu_list(store: CatalogStore) -> None:
    books = store.list_books()
    if not books:
        console.print("[yellow]No books in catalog.[/]")
        return
    table = Table(title="📚 Books", box=box.SIMPLE_HEAVY, header_style="bold cyan")
    table.add_column("ID", style="magenta", justify="right")
    table.add_column("Title")
    table.add_column("Author")
    for book in books:
        table.add_row(str(book.id), book.title or "", book.author or "")
    console.print(table)


def _menu_show(book, book_id: str, action: str) -> None:
    if book is None:
        console.print(f"[yellow]⚠️ Book with id [bold]{book_id}[/] not found.[/]")
        return
    console.print(Panel.fit(
        f"[bold]ID:[/] {book.id}\n[bold]Title:[/] {book.title or ''}\n[bold]Author:[/] {book.author or ''}",
        title=f"📖 {action}",
        border_style="green",
    ))


def run_menu(store: Optional[CatalogStore] = None) -> None:
    """Simple interactive menu over one catalog session."""
    if store is None:
        store = CatalogSession.get_instance()
    menu_items = [
        ("1", "List all books", "📚"),
        ("2", "Find a book by id", "🔎"),
        ("3", "Add a book", "➕"),
        ("4", "Update a book", "✏️"),
        ("5", "Delete a book", "🗑️"),
        ("6", "Start the API server", "🌐"),
        ("0", "Exit", "🚪"),
    ]

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label, icon in menu_items:
        table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")
    panel = Panel(table, title=APP_NAME, border_style="cyan", box=box.HEAVY, padding=(1, 2))

    while True:
        console.print(panel)
        choice = Prompt.ask("Choose an option", choices=[key for key, _, _ in menu_items], default="1")

        if choice == "1":
            _menu_list(store)
        elif choice == "2":
            book_id = Prompt.ask("Book id")
            _menu_show(store.get_book_by_id(book_id), book_id, "Found")
        elif choice == "3":
            title = Prompt.ask("Title", default="")
            author = Prompt.ask("Author", default="")
            book = store.add_book(title=title or None, author=author or None)
            _menu_show(book, str(book.id), "Added")
        elif choice == "4":
            book_id = Prompt.ask("Book id")
            title = Prompt.ask("New title (blank keeps current)", default="")
            author = Prompt.ask("New author (blank keeps current)", default="")
            _menu_show(store.update_book_by_id(book_id, title=title, author=author), book_id, "Updated")
        elif choice == "5":
            book_id = Prompt.ask("Book id")
            _menu_show(store.delete_book_by_id(book_id), book_id, "Deleted")
        elif choice == "6":
            serve()
        else:
            console.print("[green]Goodbye![/]")
            break
        print()


if __name__ == "__main__":
    if len(sys.argv) > 1:
        app()
    else:
        run_menu()
