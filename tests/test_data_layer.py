"""Consolidated data layer tests.

Covers the entity and input models, the per-kind repositories and the
DataContext operations (list, get, insert, update, delete, transactions)
against an in-memory SQLite store.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlmodel import select

from bookshelf.core.errors import (
    ConstraintError,
    NotFoundError,
    RecordValidationError,
    StoreConnectionError,
)
from bookshelf.core.services import DataContext
from bookshelf.entities import (
    Book,
    BookCreate,
    BookRepository,
    BookTable,
    BookUpdate,
    Category,
    CategoryRepository,
    CategoryTable,
    resolve_repository,
)


class TestBookEntity:
    """Test Book domain and input models."""

    def test_book_create_requires_title(self):
        with pytest.raises(ValueError):
            BookCreate(author="Herbert")

    def test_book_create_rejects_empty_and_overlong_title(self):
        with pytest.raises(ValueError):
            BookCreate(title="")
        with pytest.raises(ValueError):
            BookCreate(title="x" * 256)

    def test_book_create_rejects_unknown_fields(self):
        with pytest.raises(ValueError):
            BookCreate(title="Dune", isbn="978-0441013593")

    def test_book_update_tracks_supplied_fields(self):
        update = BookUpdate(author=None)
        assert update.model_dump(exclude_unset=True) == {"author": None}

    def test_book_update_rejects_null_title(self):
        with pytest.raises(ValueError, match="title cannot be null"):
            BookUpdate(title=None)

    def test_book_from_table_row(self):
        row = BookTable(id=7, title="Dune", author="Herbert")
        book = Book.model_validate(row, from_attributes=True)
        assert book == Book(id=7, title="Dune", author="Herbert")


class TestTableDeclarations:
    """Column names are declared explicitly."""

    def test_book_columns(self):
        table = BookTable.__table__
        assert table.name == "Books"
        assert [column.name for column in table.columns] == ["BookId", "Title", "Author"]
        assert table.c.BookId.primary_key
        assert table.c.Title.nullable is False
        assert table.c.Author.nullable is True

    def test_category_columns(self):
        table = CategoryTable.__table__
        assert table.name == "Categories"
        assert [column.name for column in table.columns] == ["CategoryId", "Name"]
        assert table.c.Name.nullable is True


class TestResolveRepository:
    @pytest.mark.parametrize(
        "kind", [Book, BookTable, BookCreate, BookRepository, "book", "Books"]
    )
    def test_resolves_book_kind(self, kind):
        assert resolve_repository(kind) is BookRepository

    @pytest.mark.parametrize("kind", [Category, CategoryTable, "categories"])
    def test_resolves_category_kind(self, kind):
        assert resolve_repository(kind) is CategoryRepository

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown entity kind"):
            resolve_repository("author")


class TestBookRepository:
    """Repository used directly on a session; the caller commits."""

    def test_create_and_get(self, db_service):
        with db_service.session_scope() as session:
            repo = BookRepository(session)
            created = repo.create({"title": "Dune", "author": "Herbert"})

        with db_service.session_scope() as session:
            fetched = BookRepository(session).get(created.id)

        assert fetched == created

    def test_uncommitted_write_is_discarded(self, db_service):
        session = db_service.get_session()
        BookRepository(session).create({"title": "Draft"})
        session.rollback()
        session.close()

        with db_service.session_scope() as session:
            assert session.exec(select(BookTable)).all() == []

    def test_get_missing_returns_none(self, db_service):
        with db_service.session_scope() as session:
            assert BookRepository(session).get(42) is None

    def test_update_and_delete_missing(self, db_service):
        with db_service.session_scope() as session:
            repo = BookRepository(session)
            assert repo.update(42, {"title": "Nothing"}) is None
            assert repo.delete(42) is False


class TestDataContext:
    """DataContext operations."""

    def test_insert_into_empty_store_assigns_first_id(self, context: DataContext):
        book = context.insert(Book, {"title": "Dune", "author": "Herbert"})

        assert book == Book(id=1, title="Dune", author="Herbert")
        assert context.list(Book).all() == [book]

    def test_get_after_insert_returns_equal_record(self, context: DataContext):
        inserted = context.insert(Book, BookCreate(title="Hyperion", author="Simmons"))
        assert context.get_by_id(Book, inserted.id) == inserted

    def test_ids_are_unique_and_never_reused(self, context: DataContext):
        ids = [context.insert(Book, {"title": f"Book {n}"}).id for n in range(3)]
        assert ids == sorted(set(ids))

        context.delete(Book, ids[-1])
        new_id = context.insert(Book, {"title": "Replacement"}).id
        assert new_id > ids[-1]

    def test_get_missing_raises_not_found(self, context: DataContext):
        with pytest.raises(NotFoundError) as exc_info:
            context.get_by_id(Book, 99)

        assert exc_info.value.kind == "book"
        assert exc_info.value.record_id == 99
        assert str(exc_info.value) == "book 99 not found"

    def test_insert_without_title_is_rejected_and_store_untouched(
        self, context: DataContext
    ):
        with pytest.raises(RecordValidationError) as exc_info:
            context.insert(Book, {"author": "Anonymous"})

        assert exc_info.value.errors[0]["loc"] == ["title"]
        assert context.list(Book).all() == []

    def test_insert_with_unknown_field_is_rejected(self, context: DataContext):
        with pytest.raises(RecordValidationError):
            context.insert(Book, {"title": "Dune", "pages": 412})

    def test_update_writes_only_supplied_fields(self, context: DataContext):
        book = context.insert(Book, {"title": "Dune", "author": "Herbert"})

        updated = context.update(Book, book.id, {"title": "Dune Messiah"})

        assert updated == Book(id=book.id, title="Dune Messiah", author="Herbert")
        assert context.get_by_id(Book, book.id) == updated

    def test_update_can_clear_nullable_field(self, context: DataContext):
        book = context.insert(Book, {"title": "Dune", "author": "Herbert"})
        assert context.update(Book, book.id, BookUpdate(author=None)).author is None

    def test_update_with_no_fields_returns_record(self, context: DataContext):
        book = context.insert(Book, {"title": "Dune"})
        assert context.update(Book, book.id, {}) == book

    def test_update_missing_raises_and_leaves_store_unchanged(
        self, context: DataContext
    ):
        existing = context.insert(Book, {"title": "Dune"})

        with pytest.raises(NotFoundError):
            context.update(Book, existing.id + 1, {"title": "Ghost"})

        assert context.list(Book).all() == [existing]

    def test_update_with_null_title_is_rejected(self, context: DataContext):
        book = context.insert(Book, {"title": "Dune"})

        with pytest.raises(RecordValidationError):
            context.update(Book, book.id, {"title": None})

        assert context.get_by_id(Book, book.id) == book

    def test_delete_then_get_raises_not_found(self, context: DataContext):
        book = context.insert(Book, {"title": "Dune"})

        context.delete(Book, book.id)

        with pytest.raises(NotFoundError):
            context.get_by_id(Book, book.id)

    def test_delete_missing_raises_not_found(self, context: DataContext):
        with pytest.raises(NotFoundError, match="category 5 not found"):
            context.delete(Category, 5)

    def test_writes_are_visible_to_other_contexts(self, db_service):
        with db_service.context() as writer:
            book = writer.insert("books", {"title": "Dune"})

        with db_service.context() as reader:
            assert reader.get_by_id(Book, book.id) == book

    def test_category_name_is_optional(self, context: DataContext):
        category = context.insert(Category, {})
        assert category == Category(id=1, name=None)

        renamed = context.categories.update(category.id, {"name": "Science Fiction"})
        assert renamed.name == "Science Fiction"

    def test_typed_accessors(self, context: DataContext):
        assert context.books is context.repository(Book)
        assert context.categories is context.repository("category")


class TestListing:
    """Listing is lazy, restartable and ordered."""

    @pytest.fixture
    def shelf(self, context: DataContext) -> list[Book]:
        return [
            context.insert(Book, {"title": "Neuromancer", "author": "Gibson"}),
            context.insert(Book, {"title": "Dune", "author": "Herbert"}),
            context.insert(Book, {"title": "Anathem", "author": None}),
        ]

    def test_default_order_is_by_id(self, context: DataContext, shelf):
        assert context.list(Book).all() == shelf

    def test_listing_is_restartable_and_reflects_new_rows(
        self, context: DataContext, shelf
    ):
        query = context.list(Book)
        assert list(query) == list(query)

        added = context.insert(Book, {"title": "Solaris"})
        assert list(query)[-1] == added

    def test_order_by_field(self, context: DataContext, shelf):
        titles = [book.title for book in context.list(Book, order_by="title")]
        assert titles == ["Anathem", "Dune", "Neuromancer"]

        reverse = context.list(Book, order_by="title", descending=True).all()
        assert [book.title for book in reverse] == ["Neuromancer", "Dune", "Anathem"]

    def test_limit_and_offset(self, context: DataContext, shelf):
        page = context.list(Book).offset(1).limit(1).all()
        assert page == [shelf[1]]

    def test_unknown_order_field_is_rejected(self, context: DataContext):
        with pytest.raises(RecordValidationError) as exc_info:
            context.list(Book, order_by="isbn")
        assert exc_info.value.errors[0]["loc"] == ["order_by"]

    def test_negative_limit_is_rejected(self, context: DataContext):
        with pytest.raises(RecordValidationError):
            context.list(Book).limit(-1)


class TestTransactions:
    def test_transaction_commits_all_writes(self, db_service):
        with db_service.context() as context:
            with context.transaction():
                context.insert(Book, {"title": "Dune"})
                context.insert(Category, {"name": "Science Fiction"})

        with db_service.context() as reader:
            assert len(reader.list(Book).all()) == 1
            assert len(reader.list(Category).all()) == 1

    def test_transaction_rolls_back_on_error(self, context: DataContext):
        with pytest.raises(RuntimeError, match="boom"):
            with context.transaction():
                context.insert(Book, {"title": "Dune"})
                raise RuntimeError("boom")

        assert context.list(Book).all() == []

    def test_not_found_inside_transaction_rolls_back_earlier_writes(
        self, context: DataContext
    ):
        with pytest.raises(NotFoundError):
            with context.transaction():
                context.insert(Book, {"title": "Dune"})
                context.delete(Book, 404)

        assert context.list(Book).all() == []

    def test_nested_transaction_is_refused(self, context: DataContext):
        with context.transaction():
            with pytest.raises(RuntimeError, match="already open"):
                with context.transaction():
                    pass

    def test_commit_failure_is_translated_and_rolled_back(self, context: DataContext):
        failure = sa_exc.OperationalError("COMMIT", {}, Exception("server has gone away"))
        with patch.object(context._session, "commit", side_effect=failure):
            with pytest.raises(StoreConnectionError, match="commit transaction"):
                with context.transaction():
                    context.insert(Book, {"title": "Dune"})

        assert context.list(Book).all() == []
        assert context.insert(Book, {"title": "Hyperion"}).title == "Hyperion"


class TestStoreRejections:
    def test_unique_violation_raises_constraint_error(self, db_service):
        with db_service.engine.begin() as connection:
            connection.execute(
                text('CREATE UNIQUE INDEX ix_books_title ON "Books" ("Title")')
            )

        with db_service.context() as context:
            context.insert(Book, {"title": "Dune"})
            with pytest.raises(ConstraintError):
                context.insert(Book, {"title": "Dune"})

            # the rejected insert leaves the context usable
            context.insert(Book, {"title": "Hyperion"})
            titles = [book.title for book in context.list(Book)]

        assert titles == ["Dune", "Hyperion"]


class TestContextLifecycle:
    def test_close_is_idempotent_and_blocks_further_use(self, db_service):
        context = db_service.context()
        context.close()
        context.close()

        assert context.closed
        with pytest.raises(RuntimeError, match="closed"):
            context.list(Book)

    def test_close_disposes_owning_service(self, db_service):
        owner = MagicMock()
        context = DataContext(db_service.get_session(), owner=owner)

        with context:
            pass

        owner.dispose.assert_called_once_with()
