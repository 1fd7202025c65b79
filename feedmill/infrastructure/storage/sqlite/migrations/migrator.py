"""
Versioned schema migrations and ledger health checks.

Migration files live next to this module as ``vNNN_<name>.sql`` and are
applied in version order. Each applied file is recorded in
``schema_migrations`` with a checksum; a file edited after it was applied
stops the run instead of being re-executed.

The same module answers operational questions about an existing database:
which migrations are pending, whether the schema is intact, and whether
stored balances still agree with the movement ledger.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from feedmill.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = [
    "materials",
    "products",
    "formulas",
    "formula_lines",
    "production_runs",
    "product_batches",
    "sales",
    "disposals",
    "stock_movements",
    "activity_logs",
    "schema_migrations",
]

LEDGER_TRIGGERS = ("stock_movements_no_update", "stock_movements_no_delete")

# Balances must equal inbound minus outbound movements
_DRIFT_SQL = """
    SELECT t.id, t.{balance},
           COALESCE(SUM(CASE WHEN sm.direction = 'in' THEN sm.quantity
                             ELSE -sm.quantity END), 0) AS ledger
    FROM {table} t
    LEFT JOIN stock_movements sm ON sm.{fk} = t.id
    GROUP BY t.id
    HAVING ABS(t.{balance} - ledger) > 0.005
"""


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match[1], name=match[2], path=path, checksum=digest)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations() -> list[MigrationInfo]:
    """Bundled migrations in version order. Misnamed files are skipped."""
    found = []
    for path in sorted(MIGRATIONS_DIR.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def _applied(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied version -> checksum. Empty before the first migration."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await _applied(conn)
    return max(applied) if applied else None


async def _apply(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    logger.info("applying_migration", version=migration.version, name=migration.name)
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations "
            "(version, name, checksum, execution_time_ms) VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except Exception as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            migration.version, migration.name, False, elapsed_ms(), error=str(e)
        )

    cursor = await conn.execute("PRAGMA foreign_key_check")
    violations = await cursor.fetchall()
    if violations:
        logger.error(
            "migration_left_fk_violations", version=migration.version, count=len(violations)
        )
        return MigrationResult(
            migration.version,
            migration.name,
            False,
            elapsed_ms(),
            error=f"{len(violations)} foreign key violation(s)",
        )

    logger.info("migration_applied", version=migration.version, execution_time_ms=elapsed_ms())
    return MigrationResult(migration.version, migration.name, True, elapsed_ms())


def create_backup(db_path: Path) -> Path:
    """Copy the database file aside, e.g. ``feedmill.db`` -> ``feedmill-20260301_120000.bak``."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}-{stamp}.bak")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Apply every pending migration.

    Stops at the first failure. An existing database is backed up first and
    restored if the run raises; the backup is removed after a clean run.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing file aside before migrating

    Returns:
        One result per migration attempted; empty when already up to date
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = create_backup(db_path) if create_backup_before and db_path.exists() else None
    results: list[MigrationResult] = []

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            applied = await _applied(conn)

            for migration in discover_migrations():
                recorded = applied.get(migration.version)
                if recorded == migration.checksum:
                    continue
                if recorded is not None:
                    logger.error(
                        "migration_checksum_mismatch",
                        version=migration.version,
                        applied=recorded,
                        found=migration.checksum,
                    )
                    break

                result = await _apply(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None and backup_path.exists():
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()

    return results


async def _drift(conn: aiosqlite.Connection, table: str, fk: str, balance: str) -> list[tuple]:
    cursor = await conn.execute(_DRIFT_SQL.format(table=table, fk=fk, balance=balance))
    return [(row[0], row[1], round(row[2], 2)) for row in await cursor.fetchall()]


async def reconcile_ledger(db_path: Path | None = None) -> dict[str, list[dict[str, Any]]]:
    """
    Compare stored balances with the movement history.

    Returns:
        ``{"materials": [...], "batches": [...]}`` listing every item whose
        stored balance differs from inbound minus outbound movements
    """
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        materials = [
            {"material_id": item_id, "stock": stock, "ledger": ledger}
            for item_id, stock, ledger in await _drift(
                conn, "materials", "material_id", "stock"
            )
        ]
        batches = [
            {"batch_id": item_id, "quantity": quantity, "ledger": ledger}
            for item_id, quantity, ledger in await _drift(
                conn, "product_batches", "batch_id", "quantity"
            )
        ]

    if materials or batches:
        logger.warning("ledger_drift_detected", materials=len(materials), batches=len(batches))
    return {"materials": materials, "batches": batches}


async def get_migration_status(db_path: Path | None = None) -> dict[str, Any]:
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations()

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discovered],
            "total_migrations": len(discovered),
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await _applied(conn)

    return {
        "exists": True,
        "current_version": max(applied) if applied else None,
        "applied_migrations": list(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


def _check(name: str, passed: bool, **details: Any) -> dict[str, Any]:
    return {"check": name, "status": "PASS" if passed else "FAIL", **details}


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict[str, Any]]:
    """
    Health checks for an existing database.

    Covers SQLite integrity and foreign keys, the presence of every table
    and of the ledger's immutability triggers, and finally ledger balance
    (skipped when tables are missing).
    """
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()

        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()

        cursor = await conn.execute("SELECT type, name FROM sqlite_master")
        objects = {(kind, name) for kind, name in await cursor.fetchall()}

    missing_tables = [t for t in REQUIRED_TABLES if ("table", t) not in objects]
    missing_triggers = [t for t in LEDGER_TRIGGERS if ("trigger", t) not in objects]

    checks = [
        _check("foreign_keys", not fk_violations, violations=len(fk_violations)),
        _check("integrity", integrity == "ok", result=integrity),
        _check("required_tables", not missing_tables, missing=missing_tables),
        _check("ledger_immutability", not missing_triggers, missing=missing_triggers),
    ]

    if not missing_tables:
        drift = await reconcile_ledger(db_path)
        checks.append(
            _check(
                "ledger_balance",
                not (drift["materials"] or drift["batches"]),
                materials=drift["materials"],
                batches=drift["batches"],
            )
        )

    return checks
