"""Entity: Category."""

from pydantic import Field

from bookshelf.entities._base import Entity, EntityInput

NAME_MAX_LENGTH = 255


class Category(Entity):
    """Category as stored, identifier included."""

    name: str | None = Field(default=None, description="Name")


class CategoryCreate(EntityInput):
    """Fields accepted when inserting a category."""

    name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH, description="Name")


class CategoryUpdate(EntityInput):
    """Partial update: only the fields present are written."""

    name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH, description="Name")
