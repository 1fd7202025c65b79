"""Tests for health endpoints and application startup."""

from pathlib import Path

from feedmill import __version__
from feedmill.api.main import app, lifespan
from feedmill.infrastructure.storage.sqlite.migrations import get_migration_status


class TestLifespan:
    """Tests for startup and shutdown."""

    async def test_startup_migrates_database(self, temp_db_path: Path):
        assert not temp_db_path.exists()

        async with lifespan(app):
            status = await get_migration_status(temp_db_path)

        assert status["current_version"] == "001"
        assert status["pending_migrations"] == []


class TestHealthAPI:
    """Tests for /api/health against a real database."""

    async def test_healthy_with_database(self, make_client, db):
        async with make_client() as client:
            response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["schema_version"] == "001"
        assert data["version"] == __version__

    async def test_root_info(self, make_client):
        async with make_client() as client:
            response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["version"] == __version__

    async def test_request_id_echoed(self, make_client):
        async with make_client() as client:
            response = await client.get("/", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.headers["X-Response-Time"].endswith("ms")
