"""Store connection, sessions, schema verification and the data-access context."""

from .connection import ConnectionSettings, parse_connection_string
from .data_context import DataContext, open_context
from .db_manage import DbManageService
from .db_session import DbSessionService
from .schema_check import schema_problems, verify_schema

__all__ = [
    "ConnectionSettings",
    "DataContext",
    "DbManageService",
    "DbSessionService",
    "open_context",
    "parse_connection_string",
    "schema_problems",
    "verify_schema",
]
