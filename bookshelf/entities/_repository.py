"""Shared data-access behaviour for entity repositories.

A repository binds one entity kind (domain model, input models, table) to a
session. Each write issues exactly one mutating statement; whether it is
committed right away is decided by the `WriteUnit` the owner supplies.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, ClassVar, Generic, Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, update
from sqlmodel import Session, SQLModel, select

from bookshelf.core.errors import RecordValidationError, translate_store_errors
from bookshelf.entities._base import Entity, EntityInput

EntityT = TypeVar("EntityT", bound=Entity)


def _validation_errors(error: PydanticValidationError) -> list[dict[str, Any]]:
    """Reduce pydantic errors to JSON-safe loc/msg/type triples."""
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in error.errors(include_url=False)
    ]


def _query_error(kind: str, parameter: str, message: str) -> RecordValidationError:
    return RecordValidationError(
        kind, [{"loc": [parameter], "msg": message, "type": "value_error"}]
    )


class RecordQuery(Generic[EntityT]):
    """Lazy, restartable listing of every row of one kind.

    Nothing is executed until iteration; each iteration runs the query again.
    Without an explicit order rows come back by ascending identifier.
    """

    def __init__(
        self,
        session: Session,
        table: type[SQLModel],
        entity: type[EntityT],
        kind: str,
        *,
        order: tuple[str, bool] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> None:
        self._session = session
        self._table = table
        self._entity = entity
        self._kind = kind
        self._order = order
        self._limit = limit
        self._offset = offset

    def _copy(self, **changes: Any) -> RecordQuery[EntityT]:
        params = {"order": self._order, "limit": self._limit, "offset": self._offset}
        params.update(changes)
        return RecordQuery(
            self._session, self._table, self._entity, self._kind, **params
        )

    def order_by(self, field: str, descending: bool = False) -> RecordQuery[EntityT]:
        """Return a copy ordered by `field`, ties broken by identifier."""
        if field not in self._entity.model_fields:
            raise _query_error(self._kind, "order_by", f"Unknown field {field!r}")
        return self._copy(order=(field, descending))

    def limit(self, count: int) -> RecordQuery[EntityT]:
        if count < 0:
            raise _query_error(self._kind, "limit", "limit must not be negative")
        return self._copy(limit=count)

    def offset(self, count: int) -> RecordQuery[EntityT]:
        if count < 0:
            raise _query_error(self._kind, "offset", "offset must not be negative")
        return self._copy(offset=count)

    def statement(self):
        pk = self._table.id
        statement = select(self._table)
        if self._order is not None:
            field, descending = self._order
            column = getattr(self._table, field)
            statement = statement.order_by(column.desc() if descending else column.asc())
        statement = statement.order_by(pk.asc())
        if self._offset:
            statement = statement.offset(self._offset)
        if self._limit is not None:
            statement = statement.limit(self._limit)
        return statement

    def __iter__(self) -> Iterator[EntityT]:
        with translate_store_errors(f"list {self._kind}"):
            rows = self._session.exec(self.statement()).all()
        for row in rows:
            yield self._entity.model_validate(row, from_attributes=True)

    def all(self) -> list[EntityT]:
        return list(self)


class WriteUnit(Protocol):
    """Decides what happens after a repository write succeeds or fails."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class EntityRepository(Generic[EntityT]):
    """Data-access layer for a single entity kind.

    Without a `unit` the caller owns the transaction and commits itself.
    """

    kind: ClassVar[str]
    entity: ClassVar[type[Entity]]
    table: ClassVar[type[SQLModel]]
    create_model: ClassVar[type[EntityInput]]
    update_model: ClassVar[type[EntityInput]]

    def __init__(self, session: Session, unit: WriteUnit | None = None) -> None:
        self._session = session
        self._unit = unit

    @contextmanager
    def _write(self, operation: str) -> Iterator[None]:
        try:
            with translate_store_errors(operation):
                yield
                if self._unit is not None:
                    self._unit.commit()
        except Exception:
            if self._unit is not None:
                self._unit.rollback()
            raise

    def _validate(
        self, model: type[EntityInput], data: Mapping[str, Any] | BaseModel
    ) -> EntityInput:
        if isinstance(data, model):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_unset=True)
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise RecordValidationError(self.kind, _validation_errors(e)) from e

    def _to_entity(self, row: SQLModel) -> EntityT:
        return self.entity.model_validate(row, from_attributes=True)

    def get(self, item_id: int) -> EntityT | None:
        """Get a record by identifier, or None."""
        with translate_store_errors(f"get {self.kind}"):
            row = self._session.get(self.table, item_id, populate_existing=True)
        if row is None:
            return None
        return self._to_entity(row)

    def list(self) -> RecordQuery[EntityT]:
        return RecordQuery(self._session, self.table, self.entity, self.kind)

    def list_all(self) -> list[EntityT]:
        return self.list().all()

    def create(self, data: Mapping[str, Any] | BaseModel) -> EntityT:
        """Insert a record; the store assigns its identifier."""
        payload = self._validate(self.create_model, data)
        row = self.table(**payload.model_dump())
        with self._write(f"insert {self.kind}"):
            self._session.add(row)
            self._session.flush()
        logger.debug("Inserted {} {}", self.kind, row.id)
        return self._to_entity(row)

    def update(
        self, item_id: int, data: Mapping[str, Any] | BaseModel
    ) -> EntityT | None:
        """Write the supplied fields of a record; None when it does not exist."""
        payload = self._validate(self.update_model, data)
        values = payload.model_dump(exclude_unset=True)
        if not values:
            return self.get(item_id)

        statement = (
            update(self.table).where(self.table.id == item_id).values(**values)
        )
        with self._write(f"update {self.kind}"):
            result = self._session.execute(
                statement, execution_options={"synchronize_session": False}
            )
        if result.rowcount == 0:
            return None
        logger.debug("Updated {} {}: {}", self.kind, item_id, sorted(values))
        return self.get(item_id)

    def delete(self, item_id: int) -> bool:
        """Delete a record; False when it does not exist."""
        statement = delete(self.table).where(self.table.id == item_id)
        with self._write(f"delete {self.kind}"):
            result = self._session.execute(
                statement, execution_options={"synchronize_session": False}
            )
        if result.rowcount == 0:
            return False
        logger.debug("Deleted {} {}", self.kind, item_id)
        return True
