"""Category API router with CRUD operations."""

from fastapi import APIRouter, Depends, Query, Response, status

from bookshelf.api.http.deps import get_data_context
from bookshelf.core.services import DataContext
from bookshelf.entities import Category, CategoryCreate, CategoryUpdate

router = APIRouter()


@router.post("", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_category(
    category: CategoryCreate,
    context: DataContext = Depends(get_data_context),
) -> Category:
    """Create a new category."""
    return context.insert(Category, category)


@router.get("/{item_id}", response_model=Category)
def get_category(
    item_id: int,
    context: DataContext = Depends(get_data_context),
) -> Category:
    """Get a category by ID."""
    return context.get_by_id(Category, item_id)


@router.patch("/{item_id}", response_model=Category)
def update_category(
    item_id: int,
    category_update: CategoryUpdate,
    context: DataContext = Depends(get_data_context),
) -> Category:
    """Update the supplied fields of a category."""
    return context.update(Category, item_id, category_update)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    item_id: int,
    context: DataContext = Depends(get_data_context),
) -> Response:
    """Delete a category."""
    context.delete(Category, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=list[Category])
def list_categories(
    order_by: str | None = Query(default=None, description="Field to sort by"),
    desc: bool = Query(default=False, description="Sort descending"),
    limit: int | None = Query(default=None, ge=0),
    offset: int = Query(default=0, ge=0),
    context: DataContext = Depends(get_data_context),
) -> list[Category]:
    """List categories, by ID unless another order is requested."""
    query = context.list(Category, order_by=order_by, descending=desc).offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return list(query)
