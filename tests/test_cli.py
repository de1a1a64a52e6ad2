import json

import pytest
from typer.testing import CliRunner
from unittest.mock import patch

from book import Book
from catalog import CatalogStore
from main import CatalogSession, app, run_menu

runner = CliRunner()


@pytest.fixture(autouse=True)
def session(store):
    CatalogSession._instance = store
    yield store
    CatalogSession.reset()


def test_list_books():
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "0 - The Awakening by Kate Chopin" in result.stdout
    assert "1 - City of Glass by Paul Auster" in result.stdout


def test_list_empty_catalog(session):
    session.delete_book_by_id(0)
    session.delete_book_by_id(1)
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "No books in catalog." in result.stdout


def test_list_json_output():
    result = runner.invoke(app, ["--output", "json", "list"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)[1] == {"id": 1, "title": "City of Glass", "author": "Paul Auster"}


def test_get_book():
    result = runner.invoke(app, ["get", "1"])
    assert result.exit_code == 0
    assert "Found: 1 - City of Glass by Paul Auster" in result.stdout


def test_get_book_not_found():
    result = runner.invoke(app, ["get", "99"])
    assert result.exit_code == 0
    assert "Book with id 99 not found." in result.stdout


def test_add_book(session):
    result = runner.invoke(app, ["add", "--title", "Dune", "--author", "Frank Herbert"])
    assert result.exit_code == 0
    assert "Added: 2 - Dune by Frank Herbert" in result.stdout
    assert session.get_book_by_id(2).title == "Dune"


def test_update_book(session):
    result = runner.invoke(app, ["update", "0", "--author", "K. Chopin"])
    assert result.exit_code == 0
    assert "Updated: 0 - The Awakening by K. Chopin" in result.stdout


def test_update_book_not_found():
    result = runner.invoke(app, ["update", "5", "--title", "x"])
    assert result.exit_code == 0
    assert "Book with id 5 not found." in result.stdout


def test_delete_book(session):
    result = runner.invoke(app, ["delete", "0"])
    assert result.exit_code == 0
    assert "Deleted: 0 - The Awakening by Kate Chopin" in result.stdout
    assert session.get_book_by_id(0) is None


def test_delete_book_json_not_found():
    result = runner.invoke(app, ["-o", "json", "delete", "9"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) is None


@patch("subprocess.run")
@patch("webbrowser.open")
def test_serve_command(mock_webbrowser_open, mock_subprocess_run):
    mock_subprocess_run.return_value.returncode = 0
    result = runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "4100"])
    assert result.exit_code == 0
    assert "Starting catalog API on" in result.stdout
    mock_webbrowser_open.assert_called_once()
    mock_subprocess_run.assert_called_once()
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert args[args.index("--host") + 1] == "0.0.0.0"
    assert args[args.index("--port") + 1] == "4100"


@patch("subprocess.run")
def test_serve_reports_uvicorn_failure(mock_subprocess_run):
    mock_subprocess_run.return_value.returncode = 1
    result = runner.invoke(app, ["serve", "--no-browser"])
    assert result.exit_code == 1
    assert "uvicorn exited with code 1" in result.stdout


def test_menu_uses_given_empty_store(session):
    empty = CatalogStore(seed=False)
    with patch("main.Prompt.ask", side_effect=["3", "T", "A", "0"]):
        run_menu(empty)
    assert empty.list_books() == [Book(0, "T", "A")]
    assert len(session) == 2
