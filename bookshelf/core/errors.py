"""Error kinds surfaced by the data-access layer.

Every failure the store can produce reaches callers as one of these types;
the boundary adapters map them to status codes in `bookshelf.api.errors`.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import exc as sa_exc


class DataAccessError(Exception):
    """Base class for all data-access failures."""


class StoreConnectionError(DataAccessError, ConnectionError):
    """The store is unreachable or rejected the credentials."""


class RecordValidationError(DataAccessError, ValueError):
    """A record is missing a required field or carries an invalid value."""

    def __init__(self, kind: str, errors: list[dict[str, Any]]):
        self.kind = kind
        self.errors = errors
        fields = ", ".join(
            ".".join(str(part) for part in err.get("loc", ())) or "<record>"
            for err in errors
        )
        super().__init__(f"Invalid {kind}: {fields}")


class NotFoundError(DataAccessError, LookupError):
    """No record of the given kind has the given identifier."""

    def __init__(self, kind: str, record_id: Any):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class ConstraintError(DataAccessError):
    """The store rejected the row (uniqueness, length, nullability...)."""


class SchemaMismatchError(DataAccessError):
    """The declared tables do not match the live schema."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Schema mismatch: " + "; ".join(problems))


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy errors raised inside the block as data-access errors.

    Driver messages can include the statement but never the connection
    password, so the original error is kept as `__cause__`.
    """
    try:
        yield
    except (sa_exc.IntegrityError, sa_exc.DataError) as e:
        logger.warning("{} rejected by store: {}", operation, type(e.orig).__name__)
        raise ConstraintError(f"{operation} rejected by store: {e.orig}") from e
    except (
        sa_exc.OperationalError,
        sa_exc.InterfaceError,
        sa_exc.DisconnectionError,
    ) as e:
        logger.error("{} failed, store unavailable: {}", operation, type(e).__name__)
        raise StoreConnectionError(f"{operation} failed: store unavailable") from e
