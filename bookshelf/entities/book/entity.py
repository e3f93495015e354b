"""Entity: Book."""

from pydantic import Field, field_validator

from bookshelf.entities._base import Entity, EntityInput

TITLE_MAX_LENGTH = 255
AUTHOR_MAX_LENGTH = 255


class Book(Entity):
    """Book as stored, identifier included."""

    title: str = Field(description="Title")
    author: str | None = Field(default=None, description="Author")


class BookCreate(EntityInput):
    """Fields accepted when inserting a book."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, description="Title")
    author: str | None = Field(
        default=None, max_length=AUTHOR_MAX_LENGTH, description="Author"
    )


class BookUpdate(EntityInput):
    """Partial update: only the fields present are written."""

    title: str | None = Field(
        default=None, min_length=1, max_length=TITLE_MAX_LENGTH, description="Title"
    )
    author: str | None = Field(
        default=None, max_length=AUTHOR_MAX_LENGTH, description="Author"
    )

    @field_validator("title")
    @classmethod
    def title_not_null(cls, value: str | None) -> str:
        # only runs when title is supplied; a missing title is left alone
        if value is None:
            raise ValueError("title cannot be null")
        return value
