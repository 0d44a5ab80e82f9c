"""
LabelDesk Backend: Application Wiring Tests
=============================================

What:  Configuration parsing, startup/shutdown lifecycle and /health.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from pydantic import ValidationError as PydanticValidationError

from labeldesk.config import Settings
from labeldesk.exceptions import StartupError, StorageUnavailableError
from labeldesk.main import create_app
from labeldesk.services.label_service import LabelService
from labeldesk.services.label_store import LabelStore


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.allowed_origin == "*"
        assert settings.backend_port == 3000
        assert settings.log_level == "INFO"
        assert settings.database_url.startswith("postgresql+asyncpg://")

    def test_port_read_from_port_variable(self, monkeypatch):
        monkeypatch.setenv("PORT", "8081")
        assert Settings(_env_file=None).backend_port == 8081

    def test_allowed_origin_from_env(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGIN", "https://annotate.example.org")
        assert Settings(_env_file=None).allowed_origin == "https://annotate.example.org"

    def test_blank_origin_means_any(self):
        assert Settings(_env_file=None, allowed_origin="  ").allowed_origin == "*"

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, log_level="chatty")


class TestCreateApp:

    def test_wires_explicit_store_and_service(self, test_settings, database):
        app = create_app(settings=test_settings, database=database)

        assert app.state.database is database
        assert isinstance(app.state.label_store, LabelStore)
        assert isinstance(app.state.label_service, LabelService)
        assert app.state.label_service.store is app.state.label_store


class TestLifespan:

    @pytest.mark.asyncio
    async def test_startup_connects_and_shutdown_disposes(self, test_settings):
        database = MagicMock()
        database.dialect_name = "sqlite"
        database.connect = AsyncMock()
        database.dispose = AsyncMock()
        app = create_app(settings=test_settings, database=database)

        async with app.router.lifespan_context(app):
            database.connect.assert_awaited_once()
            database.dispose.assert_not_awaited()

        database.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_database_aborts_startup(self, test_settings):
        database = MagicMock()
        database.dialect_name = "sqlite"
        database.connect = AsyncMock(side_effect=StorageUnavailableError())
        database.dispose = AsyncMock()
        app = create_app(settings=test_settings, database=database)

        with pytest.raises(StartupError):
            async with app.router.lifespan_context(app):
                pytest.fail("application must not start without its database")


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy_with_database(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["version"]

    @pytest.mark.asyncio
    async def test_unhealthy_when_database_down(self, app, test_client):
        app.state.database = MagicMock()
        app.state.database.health_check = AsyncMock(return_value=False)

        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"
