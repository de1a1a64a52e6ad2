import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, StrictInt, StrictStr, ValidationError

from book import Book
from catalog import CatalogStore
from config import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Server ready at http://%s:%s/", settings.api_host, settings.api_port)
    yield
    logger.info("Server shutting down with %d books in catalog", len(app.state.store))


app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)
# One store per process; every request reaches it through get_store.
app.state.store = CatalogStore()

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store(request: Request) -> CatalogStore:
    """Dependency returning the catalog store owned by the application."""
    return request.app.state.store


# --- Models ---
class BookModel(BaseModel):
    id: int
    title: Optional[str] = None
    author: Optional[str] = None


class BookCreateModel(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None


class UpdateBookModel(BaseModel):
    title: Optional[str] = None
    author: Optional[str] = None


class GetBookArgs(BaseModel):
    id: Union[StrictInt, StrictStr]


class AddBookArgs(BookCreateModel):
    pass


class UpdateBookArgs(UpdateBookModel):
    bookId: Union[StrictInt, StrictStr]


class DeleteBookArgs(BaseModel):
    bookId: Union[StrictInt, StrictStr]


class OperationResult(BaseModel):
    data: Union[List[BookModel], BookModel, None] = None


def _to_model(book: Optional[Book]) -> Optional[BookModel]:
    if book is None:
        return None
    return BookModel(**book.to_dict())


# --- Named operations ---
def _parse_args(model: type, arguments: Dict[str, Any]) -> Any:
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e


def _list_books(store: CatalogStore, arguments: Dict[str, Any]) -> List[BookModel]:
    return [_to_model(book) for book in store.list_books()]


def _get_book_by_id(store: CatalogStore, arguments: Dict[str, Any]) -> Optional[BookModel]:
    args = _parse_args(GetBookArgs, arguments)
    return _to_model(store.get_book_by_id(args.id))


def _add_book(store: CatalogStore, arguments: Dict[str, Any]) -> BookModel:
    args = _parse_args(AddBookArgs, arguments)
    return _to_model(store.add_book(title=args.title, author=args.author))


def _update_book_by_id(store: CatalogStore, arguments: Dict[str, Any]) -> Optional[BookModel]:
    args = _parse_args(UpdateBookArgs, arguments)
    return _to_model(store.update_book_by_id(args.bookId, title=args.title, author=args.author))


def _delete_book_by_id(store: CatalogStore, arguments: Dict[str, Any]) -> Optional[BookModel]:
    args = _parse_args(DeleteBookArgs, arguments)
    return _to_model(store.delete_book_by_id(args.bookId))


OPERATIONS: Dict[str, Callable[[CatalogStore, Dict[str, Any]], Any]] = {
    "listBooks": _list_books,
    "books": _list_books,
    "getBookById": _get_book_by_id,
    "addBook": _add_book,
    "updateBookById": _update_book_by_id,
    "deleteBookById": _delete_book_by_id,
}


@app.post("/operations/{name}", response_model=OperationResult)
def run_operation(
    name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    store: CatalogStore = Depends(get_store),
):
    """Dispatch a named catalog operation; ``data`` is null when nothing matched."""
    handler = OPERATIONS.get(name)
    if handler is None:
        raise HTTPException(status_code=404, detail=f"Unknown operation: {name}")
    logger.debug("Dispatching %s with %r", name, arguments)
    return OperationResult(data=handler(store, arguments or {}))


# --- Health check ---
@app.get("/health")
def health(store: CatalogStore = Depends(get_store)):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "total_books": len(store),
    }


# --- Books ---
@app.get("/books", response_model=List[BookModel])
def get_books(store: CatalogStore = Depends(get_store)):
    return [_to_model(book) for book in store.list_books()]


@app.get("/books/{book_id}", response_model=Optional[BookModel])
def get_book(book_id: str, store: CatalogStore = Depends(get_store)):
    return _to_model(store.get_book_by_id(book_id))


@app.post("/books", response_model=BookModel)
def add_book(payload: BookCreateModel, store: CatalogStore = Depends(get_store)):
    return _to_model(store.add_book(title=payload.title, author=payload.author))


@app.put("/books/{book_id}", response_model=Optional[BookModel])
def update_book(book_id: str, update: UpdateBookModel, store: CatalogStore = Depends(get_store)):
    return _to_model(store.update_book_by_id(book_id, title=update.title, author=update.author))


@app.delete("/books/{book_id}", response_model=Optional[BookModel])
def delete_book(book_id: str, store: CatalogStore = Depends(get_store)):
    return _to_model(store.delete_book_by_id(book_id))
