"""Database engine and session factory shared by every data-access context."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy import Engine, text
from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from bookshelf.core.errors import StoreConnectionError
from bookshelf.core.services.database.connection import (
    ConnectionSettings,
    parse_connection_string,
)
from bookshelf.core.services.database.schema_check import verify_schema
from bookshelf.runtime.config.config_data import DatabaseConfig
from bookshelf.runtime.context import get_config

if TYPE_CHECKING:
    from bookshelf.core.services.database.data_context import DataContext


class DbSessionService:
    """Owns the pooled engine for one store.

    The engine's pool is the only state shared between requests; sessions
    and data contexts are created per call and closed by their user.
    """

    def __init__(
        self,
        connection: ConnectionSettings | str | None = None,
        *,
        db_config: DatabaseConfig | None = None,
        statement_timeout_ms: int | None = None,
    ):
        """Parse the connection configuration and create the engine.

        No connection is opened here; call `ping()` to check reachability.
        """
        main_config = get_config()
        self._db_config = db_config or main_config.database
        self._environment = main_config.app.environment

        # password sources belong to the configured store, not to an explicit one
        external_password = None
        if connection is None:
            connection = self._db_config.connection_string
            external_password = self._db_config.resolve_password()
        if isinstance(connection, str):
            connection = parse_connection_string(connection)
        if (
            connection.password is not None
            and external_password is None
            and self._environment == "production"
        ):
            logger.warning(
                "Inline password in the connection string in production; "
                "set database.password_file or database.password_env_var instead"
            )
        self.settings = connection.with_password(external_password)

        if statement_timeout_ms is None:
            statement_timeout_ms = self._db_config.statement_timeout_ms
        self.statement_timeout_ms = statement_timeout_ms

        engine_kwargs = self._get_engine_kwargs()
        logger.info(
            "Initializing database engine for {} (environment: {})",
            self.settings.describe(),
            self._environment,
        )
        self._engine = create_engine(self.settings.to_url(), **engine_kwargs)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _is_memory_sqlite(self) -> bool:
        return self.settings.backend == "sqlite" and self.settings.database in (
            None,
            "",
            ":memory:",
        )

    def _get_engine_kwargs(self) -> dict:
        db_config = self._db_config
        engine_kwargs: dict = {
            "echo": False,
            "connect_args": self._get_connect_args(),
        }
        if self._is_memory_sqlite():
            # one shared connection, otherwise every checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
            return engine_kwargs

        engine_kwargs.update(
            {
                "pool_size": db_config.pool_size,
                "max_overflow": db_config.max_overflow,
                "pool_timeout": db_config.pool_timeout,
                "pool_recycle": db_config.pool_recycle,
                "pool_pre_ping": True,
            }
        )
        return engine_kwargs

    def _get_connect_args(self) -> dict:
        """Driver arguments for the configured backend."""
        connect_args: dict = {}
        timeout_ms = self.statement_timeout_ms

        if self.settings.backend == "mysql":
            connect_args["connect_timeout"] = 10
            if timeout_ms:
                # MySQL applies MAX_EXECUTION_TIME to read-only SELECTs
                connect_args["init_command"] = (
                    f"SET SESSION MAX_EXECUTION_TIME={int(timeout_ms)}"
                )

        elif self.settings.backend == "sqlite":
            connect_args["check_same_thread"] = False
            # busy timeout while waiting on a locked database
            connect_args["timeout"] = timeout_ms / 1000 if timeout_ms else 20

            if self._environment == "production":
                logger.warning("SQLite store configured in production; use MySQL")

        return connect_args

    def get_session(self) -> Session:
        # entities are copied out of rows, so nothing needs reloading after commit
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.bind(error_type=type(e).__name__).warning("Session rolled back")
            raise
        finally:
            session.close()

    def context(self) -> DataContext:
        """Open a data-access context on a fresh session from the shared pool."""
        from bookshelf.core.services.database.data_context import DataContext

        return DataContext(self.get_session())

    def ping(self) -> None:
        """Open a connection and run a trivial query.

        Raises:
            StoreConnectionError: If the store is unreachable or the
                credentials are rejected.
        """
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                server_version = connection.dialect.server_version_info
        except sa_exc.DBAPIError as e:
            logger.error(
                "Cannot connect to {}: {}", self.settings.describe(), type(e.orig).__name__
            )
            raise StoreConnectionError(
                f"Cannot connect to {self.settings.describe()}"
            ) from e
        self._check_server_version(server_version)

    def _check_server_version(self, server_version: tuple | None) -> None:
        hint = self.settings.server_version
        if not hint or not server_version:
            return
        live = ".".join(str(part) for part in server_version)
        if not live.startswith(hint) and not hint.startswith(live):
            logger.warning("Server version hint {} differs from live server {}", hint, live)

    def health_check(self) -> bool:
        """True when `ping()` succeeds."""
        try:
            self.ping()
            return True
        except StoreConnectionError:
            return False

    def verify_schema(self) -> None:
        """Fail fast when the declared tables disagree with the live schema."""
        verify_schema(self._engine)

    def get_pool_status(self) -> dict[str, int]:
        """Connection counts reported by the readiness probe.

        StaticPool (in-memory SQLite) has no counters and reports zeros.
        """
        pool = self._engine.pool
        counters = {
            "size": "size",
            "checked_in": "checkedin",
            "checked_out": "checkedout",
            "overflow": "overflow",
        }
        status = {}
        for key, method in counters.items():
            counter = getattr(pool, method, None)
            status[key] = counter() if callable(counter) else 0
        return status

    def dispose(self) -> None:
        """Close every pooled connection."""
        logger.info("Disposing database engine for {}", self.settings.describe())
        self._engine.dispose()
