"""Book API router with CRUD operations."""

from fastapi import APIRouter, Depends, Query, Response, status

from bookshelf.api.http.deps import get_data_context
from bookshelf.core.services import DataContext
from bookshelf.entities import Book, BookCreate, BookUpdate

router = APIRouter()


@router.post("", response_model=Book, status_code=status.HTTP_201_CREATED)
def create_book(
    book: BookCreate,
    context: DataContext = Depends(get_data_context),
) -> Book:
    """Create a new book."""
    return context.insert(Book, book)


@router.get("/{item_id}", response_model=Book)
def get_book(
    item_id: int,
    context: DataContext = Depends(get_data_context),
) -> Book:
    """Get a book by ID."""
    return context.get_by_id(Book, item_id)


@router.patch("/{item_id}", response_model=Book)
def update_book(
    item_id: int,
    book_update: BookUpdate,
    context: DataContext = Depends(get_data_context),
) -> Book:
    """Update the supplied fields of a book."""
    return context.update(Book, item_id, book_update)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    item_id: int,
    context: DataContext = Depends(get_data_context),
) -> Response:
    """Delete a book."""
    context.delete(Book, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=list[Book])
def list_books(
    order_by: str | None = Query(default=None, description="Field to sort by"),
    desc: bool = Query(default=False, description="Sort descending"),
    limit: int | None = Query(default=None, ge=0),
    offset: int = Query(default=0, ge=0),
    context: DataContext = Depends(get_data_context),
) -> list[Book]:
    """List books, by ID unless another order is requested."""
    query = context.list(Book, order_by=order_by, descending=desc).offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return list(query)
