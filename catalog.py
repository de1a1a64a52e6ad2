import logging
import math
from threading import RLock
from typing import Iterable, List, Optional, Tuple, Union

from book import Book
from config import settings

logger = logging.getLogger(__name__)

BookId = Union[int, str]

SEED_BOOKS: Tuple[Book, ...] = (
    Book(id=0, title="The Awakening", author="Kate Chopin"),
    Book(id=1, title="City of Glass", author="Paul Auster"),
)


class CatalogError(Exception):
    """Raised when a store is built from records that break its invariants."""


def coerce_book_id(value: object) -> Optional[int]:
    """Return the integer value of an identifier, or None if it has none.

    Identifiers arrive either as integers or as text (``"1"``, ``" 1 "`` and
    ``"1.0"`` all mean 1). Anything that is not an integral number, booleans
    included, matches no record.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


def _has_value(value: Optional[str]) -> bool:
    return value is not None and value != ""


class CatalogStore:
    """Owns the ordered book collection and the operations over it.

    Every operation holds the store lock for its whole duration, so the API
    thread pool never observes a half-applied mutation.
    """

    def __init__(self, books: Optional[Iterable[Book]] = None, *, seed: Optional[bool] = None) -> None:
        if books is None:
            if seed is None:
                seed = settings.seed_catalog
            books = SEED_BOOKS if seed else ()
        self._books: List[Book] = list(books)
        ids = [book.id for book in self._books]
        if any(later <= earlier for earlier, later in zip(ids, ids[1:])):
            raise CatalogError(f"Initial book ids must be unique and ascending: {ids}")
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._books)

    # ------------------------- Core operations ------------------------- #
    def list_books(self) -> List[Book]:
        """All records in collection order."""
        with self._lock:
            return list(self._books)

    def get_book_by_id(self, book_id: BookId) -> Optional[Book]:
        with self._lock:
            index = self._find_index(book_id)
            if index is None:
                logger.debug("No book with id %r", book_id)
                return None
            return self._books[index]

    def add_book(self, title: Optional[str] = None, author: Optional[str] = None) -> Book:
        """Append a new record and return it.

        The new id is one past the id of the last record, or 0 for an empty
        collection. Ids only ever grow along the sequence, so this never
        collides with a record still present.
        """
        with self._lock:
            new_id = self._books[-1].id + 1 if self._books else 0
            book = Book(id=new_id, title=title, author=author)
            self._books.append(book)
        logger.info("Added book %d (%r by %r)", book.id, title, author)
        return book

    def update_book_by_id(
        self,
        book_id: BookId,
        title: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Optional[Book]:
        """Replace title and/or author of a record in place.

        A field changes only when the supplied value is present and
        non-empty. Returns the updated record, or None if nothing matched.
        """
        with self._lock:
            index = self._find_index(book_id)
            if index is None:
                logger.debug("Update skipped, no book with id %r", book_id)
                return None
            current = self._books[index]
            updated = Book(
                id=current.id,
                title=title if _has_value(title) else current.title,
                author=author if _has_value(author) else current.author,
            )
            self._books[index] = updated
        logger.info("Updated book %d", updated.id)
        return updated

    def delete_book_by_id(self, book_id: BookId) -> Optional[Book]:
        """Remove a record and return it as it was, or None if nothing matched."""
        with self._lock:
            index = self._find_index(book_id)
            if index is None:
                logger.debug("Delete skipped, no book with id %r", book_id)
                return None
            removed = self._books.pop(index)
        logger.info("Deleted book %d", removed.id)
        return removed

    # ------------------------- Helpers ------------------------- #
    def _find_index(self, book_id: BookId) -> Optional[int]:
        wanted = coerce_book_id(book_id)
        if wanted is None:
            return None
        for index, book in enumerate(self._books):
            if book.id == wanted:
                return index
        return None
