"""Table creation for development and test databases.

Production schemas are migrated externally; this only exists so a local
SQLite file or a throwaway MySQL database can be brought up quickly.
"""

from loguru import logger
from sqlalchemy import Engine
from sqlmodel import SQLModel

from bookshelf.core.services.database.schema_check import declared_tables
from bookshelf.runtime.context import get_config


class DbManageService:
    def __init__(self, engine: Engine):
        self._engine = engine

    def create_all(self) -> None:
        """Create the declared tables that do not exist yet."""
        environment = get_config().app.environment
        if environment == "production":
            raise RuntimeError(
                "Refusing to create tables in production; apply migrations instead"
            )
        SQLModel.metadata.create_all(self._engine, tables=declared_tables())
        logger.info("Database initialized with tables.")
