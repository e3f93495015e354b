"""Book repository."""

from bookshelf.entities._repository import EntityRepository
from bookshelf.entities.book.entity import Book, BookCreate, BookUpdate
from bookshelf.entities.book.table import BookTable


class BookRepository(EntityRepository[Book]):
    """Data-access layer for books."""

    kind = "book"
    entity = Book
    table = BookTable
    create_model = BookCreate
    update_model = BookUpdate
