"""Category database table model."""

from sqlalchemy import Column, Integer, String
from sqlmodel import Field, SQLModel

from bookshelf.entities.category.entity import NAME_MAX_LENGTH


class CategoryTable(SQLModel, table=True):
    """Database persistence model for categories, mapped onto `Categories`."""

    __tablename__ = "Categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int | None = Field(
        default=None,
        sa_column=Column("CategoryId", Integer, primary_key=True, autoincrement=True),
    )
    name: str | None = Field(
        default=None,
        sa_column=Column("Name", String(NAME_MAX_LENGTH), nullable=True),
    )
