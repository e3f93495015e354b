"""Typed view of the `config:` section of config.yaml.

Every section has defaults, so a missing file or a partial file still
yields a usable configuration.
"""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field

Environment = Literal["development", "production", "test"]


class CORSConfig(BaseModel):
    """Origins, methods and headers the browser may use against the API."""

    origins: list[str] = Field(default=["http://localhost:3000"])
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Minimum level for every sink")
    format: Literal["json", "plain"] = Field(
        default="json", description="Format of the file sink"
    )
    file: str | None = Field(
        default="logs/bookshelf.log", description="Rotating log file; empty disables it"
    )
    max_size_mb: int = Field(default=10, description="Rotate the file at this size")
    backup_count: int = Field(default=5, description="Rotated files kept")


class DatabaseConfig(BaseModel):
    """Where the store is and how connections to it are pooled."""

    connection_string: str = Field(
        default="sqlite:///./bookshelf.db",
        description="Connection configuration string (key=value pairs or URL)",
    )
    pool_size: int = Field(default=10, description="Connections kept open")
    max_overflow: int = Field(default=5, description="Extra connections under load")
    pool_timeout: int = Field(default=30, description="Seconds to wait for a connection")
    pool_recycle: int = Field(
        default=1800, description="Seconds before a pooled connection is replaced"
    )
    statement_timeout_ms: int | None = Field(
        default=None, description="Per-statement timeout passed through to the store"
    )
    verify_schema: bool = Field(
        default=True, description="Check declared tables against the live schema"
    )
    password_env_var: str | None = Field(
        default=None, description="Name of the variable holding the store password"
    )
    password_file: str | None = Field(
        default=None, description="Secrets file holding the store password"
    )

    def resolve_password(self) -> str | None:
        """Password from an external source, or None when none is configured.

        `password_file` wins over `password_env_var`. With neither set, the
        password inside the connection string (if any) stays in effect.

        Raises:
            ValueError: If a configured source cannot be read.
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e

        if not self.password_env_var:
            return None
        value = os.getenv(self.password_env_var)
        if not value:
            raise ValueError(f"Environment variable {self.password_env_var} not set")
        return value


class AppConfig(BaseModel):
    environment: Environment = Field(default="development")
    host: str = Field(default="localhost", description="Bind address for `serve`")
    port: int = Field(default=8000, description="Bind port for `serve`")
    cors: CORSConfig = Field(default_factory=CORSConfig)


class ConfigData(BaseModel):
    """Root of the configuration tree."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    app: AppConfig = Field(default_factory=AppConfig)
