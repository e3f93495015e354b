"""Data-access context: typed CRUD over the store for one unit of work."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from loguru import logger
from pydantic import BaseModel
from sqlmodel import Session

from bookshelf.core.errors import NotFoundError, translate_store_errors
from bookshelf.core.services.database.db_session import DbSessionService
from bookshelf.entities import (
    BookRepository,
    CategoryRepository,
    EntityRepository,
    RecordQuery,
    resolve_repository,
)
from bookshelf.entities._base import Entity


class DataContext:
    """Session-bound access to every entity kind.

    Outside `transaction()` each insert, update or delete is committed on its
    own; inside it, writes are committed together when the block exits.
    Use as a context manager so the session is released on every exit path.
    """

    def __init__(self, session: Session, owner: DbSessionService | None = None):
        self._session = session
        self._owner = owner
        self._in_transaction = False
        self._closed = False
        self._repositories: dict[type[EntityRepository], EntityRepository] = {}

    # WriteUnit protocol used by the repositories
    def commit(self) -> None:
        if not self._in_transaction:
            self._session.commit()

    def rollback(self) -> None:
        if not self._in_transaction:
            self._session.rollback()

    def repository(self, kind: Any) -> EntityRepository:
        """Repository bound to this context for `kind`."""
        self._ensure_open()
        repository_class = resolve_repository(kind)
        if repository_class not in self._repositories:
            self._repositories[repository_class] = repository_class(self._session, self)
        return self._repositories[repository_class]

    @property
    def books(self) -> BookRepository:
        return self.repository(BookRepository)  # type: ignore[return-value]

    @property
    def categories(self) -> CategoryRepository:
        return self.repository(CategoryRepository)  # type: ignore[return-value]

    def list(
        self,
        kind: Any,
        *,
        order_by: str | None = None,
        descending: bool = False,
    ) -> RecordQuery:
        """All records of `kind`, lazily; by identifier unless `order_by` is given."""
        query = self.repository(kind).list()
        if order_by is not None:
            query = query.order_by(order_by, descending=descending)
        return query

    def get_by_id(self, kind: Any, item_id: int) -> Entity:
        repository = self.repository(kind)
        record = repository.get(item_id)
        if record is None:
            raise NotFoundError(repository.kind, item_id)
        return record

    def insert(self, kind: Any, data: Mapping[str, Any] | BaseModel) -> Entity:
        return self.repository(kind).create(data)

    def update(
        self, kind: Any, item_id: int, data: Mapping[str, Any] | BaseModel
    ) -> Entity:
        repository = self.repository(kind)
        record = repository.update(item_id, data)
        if record is None:
            raise NotFoundError(repository.kind, item_id)
        return record

    def delete(self, kind: Any, item_id: int) -> None:
        repository = self.repository(kind)
        if not repository.delete(item_id):
            raise NotFoundError(repository.kind, item_id)

    @contextmanager
    def transaction(self) -> Iterator[DataContext]:
        """Group several writes: all are committed, or none on error."""
        self._ensure_open()
        if self._in_transaction:
            raise RuntimeError("A transaction is already open on this context")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._in_transaction = False
            self._session.rollback()
            logger.debug("Transaction rolled back")
            raise
        self._in_transaction = False
        try:
            with translate_store_errors("commit transaction"):
                self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("DataContext is closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the session, and the engine when this context owns it."""
        if self._closed:
            return
        self._closed = True
        try:
            self._session.close()
        finally:
            if self._owner is not None:
                self._owner.dispose()

    def __enter__(self) -> DataContext:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_context(
    connection_config: str,
    *,
    statement_timeout_ms: int | None = None,
    verify_schema: bool = True,
) -> DataContext:
    """Connect to the store described by `connection_config`.

    The returned context owns its engine and disposes it on close().

    Raises:
        ValueError: If the configuration string cannot be parsed.
        StoreConnectionError: If the store is unreachable or rejects the
            credentials.
        SchemaMismatchError: If `verify_schema` is set and the live schema
            disagrees with the declared tables.
    """
    service = DbSessionService(connection_config, statement_timeout_ms=statement_timeout_ms)
    try:
        service.ping()
        if verify_schema:
            service.verify_schema()
    except Exception:
        service.dispose()
        raise
    return DataContext(service.get_session(), owner=service)
