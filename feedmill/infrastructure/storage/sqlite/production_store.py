"""SQLite implementation of production run storage."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.production import ProductionRun, ProductionStatus
from feedmill.core.exceptions import ProductionRunNotFoundError
from feedmill.core.interfaces.records import IProductionStore
from feedmill.infrastructure.storage.sqlite.codec import (
    from_db_date,
    from_db_timestamp,
    to_db_date,
    to_db_timestamp,
)
from feedmill.infrastructure.storage.sqlite.connection import (
    join_connection,
    join_transaction,
)

logger = get_logger(__name__)


class SQLiteProductionStore(IProductionStore):
    async def create_run(
        self, run: ProductionRun, conn: aiosqlite.Connection | None = None
    ) -> ProductionRun:
        now = utc_now()
        run.created_at = now
        run.updated_at = now
        async with join_transaction(conn) as tx:
            cursor = await tx.execute(
                """
                INSERT INTO production_runs (
                    product_id, formula_id, quantity, unit, production_date,
                    expiry_date, status, user_id, notes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    run.product_id,
                    run.formula_id,
                    run.quantity,
                    run.unit,
                    to_db_date(run.production_date),
                    to_db_date(run.expiry_date),
                    run.status.value,
                    run.user_id,
                    run.notes,
                    to_db_timestamp(run.created_at),
                    to_db_timestamp(run.updated_at),
                ),
            )
            run.id = cursor.lastrowid
        logger.info(
            "production_run_created",
            run_id=run.id,
            formula_id=run.formula_id,
            quantity=run.quantity,
        )
        return run

    async def get_run(
        self, run_id: int, conn: aiosqlite.Connection | None = None
    ) -> ProductionRun | None:
        async with join_connection(conn) as c:
            cursor = await c.execute("SELECT * FROM production_runs WHERE id = ?", (run_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_run(row)

    async def update_status(
        self,
        run_id: int,
        status: ProductionStatus,
        conn: aiosqlite.Connection | None = None,
    ) -> None:
        async with join_transaction(conn) as tx:
            cursor = await tx.execute(
                "UPDATE production_runs SET status = ?, updated_at = ? WHERE id = ?",
                (ProductionStatus(status).value, to_db_timestamp(utc_now()), run_id),
            )
            if cursor.rowcount == 0:
                raise ProductionRunNotFoundError(run_id)
        logger.info(
            "production_run_status_changed",
            run_id=run_id,
            status=ProductionStatus(status).value,
        )

    @staticmethod
    def _row_to_run(row: aiosqlite.Row) -> ProductionRun:
        return ProductionRun(
            id=row["id"],
            product_id=row["product_id"],
            formula_id=row["formula_id"],
            quantity=row["quantity"],
            unit=row["unit"],
            production_date=from_db_date(row["production_date"]),
            expiry_date=from_db_date(row["expiry_date"]),
            status=ProductionStatus(row["status"]),
            user_id=row["user_id"],
            notes=row["notes"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
