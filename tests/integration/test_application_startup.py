"""Integration tests for application lifecycle and startup behavior."""

from copy import deepcopy
from unittest.mock import MagicMock

import pytest

from bookshelf.core.errors import SchemaMismatchError, StoreConnectionError
from bookshelf.core.services import DbSessionService
from bookshelf.runtime.context import get_config, with_context

pytestmark = pytest.mark.integration


def _config_for(environment: str):
    config = deepcopy(get_config())
    config.app.environment = environment
    return config


class TestApplicationStartup:
    """Start-up checks of the store."""

    def test_startup_uses_injected_service(self, db_service):
        import bookshelf.api.http.app as application

        app = application.create_app(database_service=db_service)
        application.startup(app)

        assert app.state.app_dependencies.database_service is db_service

    def test_startup_fails_on_schema_mismatch(self):
        import bookshelf.api.http.app as application

        # in-memory store without any tables
        service = DbSessionService("sqlite://")
        app = application.create_app(database_service=service)
        try:
            with pytest.raises(SchemaMismatchError) as exc_info:
                application.startup(app)
        finally:
            service.dispose()

        assert "table Books is missing" in exc_info.value.problems

    def test_schema_check_can_be_disabled(self):
        import bookshelf.api.http.app as application

        config = deepcopy(get_config())
        config.database.verify_schema = False
        service = DbSessionService("sqlite://")
        with with_context(config_override=config):
            app = application.create_app(database_service=service)
            application.startup(app)
        service.dispose()

    def test_startup_fails_when_store_unreachable_in_production(self):
        import bookshelf.api.http.app as application

        service = MagicMock(spec=DbSessionService)
        service.ping.side_effect = StoreConnectionError("Cannot connect")

        with with_context(config_override=_config_for("production")):
            app = application.create_app(database_service=service)
            with pytest.raises(StoreConnectionError):
                application.startup(app)

    def test_startup_degrades_when_store_unreachable_in_development(self):
        import bookshelf.api.http.app as application

        service = MagicMock(spec=DbSessionService)
        service.ping.side_effect = StoreConnectionError("Cannot connect")

        with with_context(config_override=_config_for("development")):
            app = application.create_app(database_service=service)
            application.startup(app)

        service.verify_schema.assert_not_called()

    def test_production_rejects_wildcard_cors(self):
        import bookshelf.api.http.app as application

        config = _config_for("production")
        config.app.cors.origins = ["*"]
        with with_context(config_override=config):
            with pytest.raises(RuntimeError, match="CORS misconfigured"):
                application.create_app()

    def test_shutdown_disposes_service(self):
        import bookshelf.api.http.app as application

        service = MagicMock(spec=DbSessionService)
        app = application.create_app(database_service=service)
        application.startup(app)
        application.shutdown(app)

        service.dispose.assert_called_once_with()
