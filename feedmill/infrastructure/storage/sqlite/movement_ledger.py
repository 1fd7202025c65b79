"""SQLite implementation of the stock movement ledger."""

from datetime import date, datetime, timedelta

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.movement import (
    MovementDirection,
    MovementSource,
    StockMovement,
)
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.infrastructure.storage.sqlite.codec import (
    from_db_timestamp,
    to_db_timestamp,
)
from feedmill.infrastructure.storage.sqlite.connection import (
    join_connection,
    join_transaction,
)

logger = get_logger(__name__)

_SELECT = """
    SELECT sm.*, b.product_id AS product_id
    FROM stock_movements sm
    LEFT JOIN product_batches b ON b.id = sm.batch_id
"""


class SQLiteMovementLedger(IMovementLedger):
    """Append-only stock movement ledger."""

    async def record(
        self, movement: StockMovement, conn: aiosqlite.Connection | None = None
    ) -> StockMovement:
        """Validate and append a movement inside the caller's transaction."""
        movement.check()
        movement.quantity = quantize(movement.quantity)
        async with join_transaction(conn) as tx:
            cursor = await tx.execute(
                """
                INSERT INTO stock_movements (
                    direction, source, quantity, material_id, batch_id,
                    reference_id, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    movement.direction.value,
                    MovementSource(movement.source).value,
                    movement.quantity,
                    movement.material_id,
                    movement.batch_id,
                    movement.reference_id,
                    movement.notes,
                    to_db_timestamp(movement.created_at),
                ),
            )
            movement.id = cursor.lastrowid
        logger.info(
            "stock_movement_recorded",
            movement_id=movement.id,
            direction=movement.direction.value,
            source=movement.source.value,
            quantity=movement.quantity,
            material_id=movement.material_id,
            batch_id=movement.batch_id,
            reference_id=movement.reference_id,
        )
        return movement

    async def _select(
        self,
        where: str,
        params: tuple,
        limit: int | None = None,
        conn: aiosqlite.Connection | None = None,
    ) -> list[StockMovement]:
        sql = f"{_SELECT} WHERE {where} ORDER BY sm.created_at DESC, sm.id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params = (*params, limit)
        async with join_connection(conn) as c:
            cursor = await c.execute(sql, params)
            rows = await cursor.fetchall()
            return [self._row_to_movement(row) for row in rows]

    async def list_by_material(
        self,
        material_id: int,
        direction: MovementDirection | None = None,
        limit: int = 100,
    ) -> list[StockMovement]:
        if direction is None:
            return await self._select("sm.material_id = ?", (material_id,), limit)
        return await self._select(
            "sm.material_id = ? AND sm.direction = ?",
            (material_id, MovementDirection(direction).value),
            limit,
        )

    async def list_by_product(
        self,
        product_id: int,
        direction: MovementDirection | None = None,
        limit: int = 100,
    ) -> list[StockMovement]:
        if direction is None:
            return await self._select("b.product_id = ?", (product_id,), limit)
        return await self._select(
            "b.product_id = ? AND sm.direction = ?",
            (product_id, MovementDirection(direction).value),
            limit,
        )

    async def list_by_date_range(
        self, start: datetime, end: datetime, limit: int = 500
    ) -> list[StockMovement]:
        return await self._select(
            "sm.created_at >= ? AND sm.created_at < ?",
            (to_db_timestamp(start), to_db_timestamp(end)),
            limit,
        )

    async def list_today(self, limit: int = 500) -> list[StockMovement]:
        start = datetime.combine(utc_now().date(), datetime.min.time())
        return await self.list_by_date_range(start, start + timedelta(days=1), limit)

    async def list_recent(self, days: int = 7, limit: int = 500) -> list[StockMovement]:
        now = utc_now()
        return await self.list_by_date_range(now - timedelta(days=days), now, limit)

    async def list_by_reference(
        self,
        source: MovementSource,
        reference_id: int,
        conn: aiosqlite.Connection | None = None,
    ) -> list[StockMovement]:
        return await self._select(
            "sm.source = ? AND sm.reference_id = ?",
            (MovementSource(source).value, reference_id),
            conn=conn,
        )

    async def outbound_total(self, material_id: int, since: datetime) -> float:
        async with join_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COALESCE(SUM(quantity), 0) FROM stock_movements
                WHERE material_id = ? AND direction = 'out' AND created_at >= ?
                """,
                (material_id, to_db_timestamp(since)),
            )
            row = await cursor.fetchone()
            return float(row[0])

    async def outbound_count(self, material_id: int, since: datetime) -> int:
        async with join_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COUNT(*) FROM stock_movements
                WHERE material_id = ? AND direction = 'out' AND created_at >= ?
                """,
                (material_id, to_db_timestamp(since)),
            )
            row = await cursor.fetchone()
            return int(row[0])

    async def daily_outbound(
        self, material_id: int, since: datetime
    ) -> dict[date, float]:
        async with join_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT substr(created_at, 1, 10) AS day, SUM(quantity) AS total
                FROM stock_movements
                WHERE material_id = ? AND direction = 'out' AND created_at >= ?
                GROUP BY day
                ORDER BY day
                """,
                (material_id, to_db_timestamp(since)),
            )
            rows = await cursor.fetchall()
            return {date.fromisoformat(row["day"]): float(row["total"]) for row in rows}

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        return StockMovement(
            id=row["id"],
            direction=MovementDirection(row["direction"]),
            source=MovementSource(row["source"]),
            quantity=row["quantity"],
            material_id=row["material_id"],
            batch_id=row["batch_id"],
            reference_id=row["reference_id"],
            notes=row["notes"],
            created_at=from_db_timestamp(row["created_at"]),
            product_id=row["product_id"],
        )
