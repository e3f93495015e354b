"""Error kind to caller-visible status mapping shared by every adapter."""

from http import HTTPStatus

from bookshelf.core.errors import (
    ConstraintError,
    DataAccessError,
    NotFoundError,
    RecordValidationError,
    SchemaMismatchError,
    StoreConnectionError,
)

# most specific first
ERROR_STATUS: tuple[tuple[type[Exception], HTTPStatus], ...] = (
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (RecordValidationError, HTTPStatus.BAD_REQUEST),
    (ConstraintError, HTTPStatus.CONFLICT),
    (StoreConnectionError, HTTPStatus.SERVICE_UNAVAILABLE),
    (SchemaMismatchError, HTTPStatus.SERVICE_UNAVAILABLE),
)

# process exit codes used by the command line adapter
EXIT_CODES: dict[HTTPStatus, int] = {
    HTTPStatus.BAD_REQUEST: 2,
    HTTPStatus.CONFLICT: 3,
    HTTPStatus.NOT_FOUND: 4,
    HTTPStatus.SERVICE_UNAVAILABLE: 5,
    HTTPStatus.INTERNAL_SERVER_ERROR: 1,
}


def status_for(error: Exception) -> HTTPStatus:
    """Status for an error raised by the data-access layer."""
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


def exit_code_for(error: Exception) -> int:
    return EXIT_CODES[status_for(error)]


def error_detail(error: Exception) -> str | list:
    """Caller-facing description; never includes connection details."""
    if isinstance(error, RecordValidationError):
        return error.errors
    if isinstance(error, StoreConnectionError):
        return "Store unavailable"
    if isinstance(error, SchemaMismatchError):
        return "Store schema does not match the service"
    if isinstance(error, DataAccessError):
        return str(error)
    return "Internal Server Error"
