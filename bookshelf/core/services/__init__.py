"""Core services exports."""

from .database import (
    DataContext,
    DbManageService,
    DbSessionService,
    open_context,
)

__all__ = [
    "DataContext",
    "DbManageService",
    "DbSessionService",
    "open_context",
]
