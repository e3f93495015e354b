"""Book database table model."""

from sqlalchemy import Column, Integer, String
from sqlmodel import Field, SQLModel

from bookshelf.entities.book.entity import AUTHOR_MAX_LENGTH, TITLE_MAX_LENGTH


class BookTable(SQLModel, table=True):
    """Database persistence model for books.

    Every column is declared by name so the mapping never depends on
    attribute-to-column inference; the schema check compares these
    declarations with the live `Books` table.
    """

    __tablename__ = "Books"
    # identifiers are never reused, SQLite included
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(
        default=None,
        sa_column=Column("BookId", Integer, primary_key=True, autoincrement=True),
    )
    title: str = Field(
        sa_column=Column("Title", String(TITLE_MAX_LENGTH), nullable=False),
    )
    author: str | None = Field(
        default=None,
        sa_column=Column("Author", String(AUTHOR_MAX_LENGTH), nullable=True),
    )
