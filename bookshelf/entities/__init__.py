"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model and create/update input models
- table.py: Database persistence model with explicitly named columns
- repository.py: Data access layer

`ENTITY_REPOSITORIES` is the registry the data-access context dispatches on.
"""

from typing import Any

from ._repository import EntityRepository, RecordQuery
from .book import Book, BookCreate, BookRepository, BookTable, BookUpdate
from .category import (
    Category,
    CategoryCreate,
    CategoryRepository,
    CategoryTable,
    CategoryUpdate,
)

ENTITY_REPOSITORIES: tuple[type[EntityRepository], ...] = (
    BookRepository,
    CategoryRepository,
)

_PLURALS = {"book": "books", "category": "categories"}


def resolve_repository(kind: Any) -> type[EntityRepository]:
    """Find the repository class for an entity kind.

    `kind` may be the entity, input, table or repository class, or a name
    such as "book", "Books" or "categories".
    """
    for repository in ENTITY_REPOSITORIES:
        if kind in (
            repository,
            repository.entity,
            repository.table,
            repository.create_model,
            repository.update_model,
        ):
            return repository
        if isinstance(kind, str) and kind.lower() in (
            repository.kind,
            _PLURALS[repository.kind],
        ):
            return repository
    raise ValueError(f"Unknown entity kind: {kind!r}")


__all__ = [
    "Book",
    "BookCreate",
    "BookUpdate",
    "BookTable",
    "BookRepository",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryTable",
    "CategoryRepository",
    "EntityRepository",
    "RecordQuery",
    "ENTITY_REPOSITORIES",
    "resolve_repository",
]
