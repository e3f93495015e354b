"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request

from bookshelf.api.http.app_data import ApplicationDependencies
from bookshelf.core.services import DataContext, DbSessionService


def get_db_service(request: Request) -> DbSessionService:
    """Get the database service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.database_service


def get_data_context(
    db_service: DbSessionService = Depends(get_db_service),
) -> Iterator[DataContext]:
    """Data-access context for one request, closed when the request ends."""
    with db_service.context() as context:
        yield context
