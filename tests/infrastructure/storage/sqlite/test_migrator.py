"""Tests for the database migrator and ledger checks."""

from pathlib import Path

import aiosqlite
import pytest

from feedmill.infrastructure.storage.sqlite.migrations import (
    REQUIRED_TABLES,
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_migration_status,
    initialize_database,
    reconcile_ledger,
    restore_backup,
    verify_schema_integrity,
)


class TestMigrationInfo:
    """Tests for MigrationInfo."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v002_add_index.sql"
        migration_file.write_text("SELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "002"
        assert info.name == "add_index"
        assert len(info.checksum) == 16

    def test_invalid_filename(self, tmp_path: Path):
        bad = tmp_path / "initial.sql"
        bad.write_text("SELECT 1;")
        with pytest.raises(ValueError):
            MigrationInfo.from_file(bad)

    def test_bundled_migrations(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[0] == "001"
        assert versions == sorted(versions)


class TestInitializeDatabase:
    async def test_creates_schema(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert results and all(r.success for r in results)
        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_idempotent(self, db: Path):
        assert await initialize_database(db, create_backup_before=False) == []

    async def test_status(self, db: Path):
        status = await get_migration_status(db)
        assert status["exists"] is True
        assert status["current_version"] == "001"
        assert status["pending_migrations"] == []

    async def test_status_missing_database(self, tmp_path: Path):
        status = await get_migration_status(tmp_path / "missing.db")
        assert status["exists"] is False


class TestVerifyAndReconcile:
    async def test_verify_fresh_database(self, db: Path):
        checks = {c["check"]: c for c in await verify_schema_integrity(db)}
        assert set(checks) == {
            "foreign_keys",
            "integrity",
            "required_tables",
            "ledger_immutability",
            "ledger_balance",
        }
        assert all(c["status"] == "PASS" for c in checks.values())

    async def test_drift_detected(self, db: Path, corn):
        """A balance edited behind the ledger's back is reported."""
        async with aiosqlite.connect(db) as conn:
            await conn.execute("UPDATE materials SET stock = 90 WHERE id = ?", (corn.id,))
            await conn.commit()

        drift = await reconcile_ledger(db)
        assert drift["materials"] == [{"material_id": corn.id, "stock": 90.0, "ledger": 100.0}]

        checks = {c["check"]: c for c in await verify_schema_integrity(db)}
        assert checks["ledger_balance"]["status"] == "FAIL"


def test_backup_and_restore(tmp_path: Path):
    db_path = tmp_path / "feedmill.db"
    db_path.write_bytes(b"original")

    backup = create_backup(db_path)
    db_path.write_bytes(b"changed")
    restore_backup(db_path, backup)

    assert db_path.read_bytes() == b"original"
