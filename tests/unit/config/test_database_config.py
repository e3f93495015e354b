"""Unit tests for DatabaseConfig password resolution logic."""

import os
from unittest.mock import patch

import pytest

from bookshelf.runtime.config.config_data import DatabaseConfig


class TestDatabaseConfigPasswordResolution:
    def test_no_external_source(self):
        assert DatabaseConfig().resolve_password() is None

    def test_password_from_env_var(self):
        config = DatabaseConfig(password_env_var="BOOKSHELF_DB_PASSWORD")
        with patch.dict(os.environ, {"BOOKSHELF_DB_PASSWORD": "env-secret"}):
            assert config.resolve_password() == "env-secret"

    def test_env_var_not_set(self):
        config = DatabaseConfig(password_env_var="BOOKSHELF_DB_PASSWORD")
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="BOOKSHELF_DB_PASSWORD not set"):
                config.resolve_password()

    def test_password_file_is_stripped(self, tmp_path):
        secret = tmp_path / "password"
        secret.write_text("  file-secret\n")
        config = DatabaseConfig(password_file=str(secret))
        assert config.resolve_password() == "file-secret"

    def test_password_file_wins_over_env_var(self, tmp_path):
        secret = tmp_path / "password"
        secret.write_text("file-secret")
        config = DatabaseConfig(
            password_file=str(secret), password_env_var="BOOKSHELF_DB_PASSWORD"
        )
        with patch.dict(os.environ, {"BOOKSHELF_DB_PASSWORD": "env-secret"}):
            assert config.resolve_password() == "file-secret"

    def test_unreadable_password_file(self, tmp_path):
        config = DatabaseConfig(password_file=str(tmp_path / "absent"))
        with pytest.raises(ValueError, match="Failed to read database password"):
            config.resolve_password()

    def test_password_not_part_of_dump(self):
        config = DatabaseConfig(password_env_var="BOOKSHELF_DB_PASSWORD")
        assert "password" not in config.model_dump()


class TestDatabaseConfigDefaults:
    def test_defaults(self):
        config = DatabaseConfig()
        assert config.connection_string == "sqlite:///./bookshelf.db"
        assert config.verify_schema is True
        assert config.statement_timeout_ms is None
