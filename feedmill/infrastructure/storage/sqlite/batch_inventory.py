"""
SQLite product batch inventory.

Batches are consumed strictly oldest first: a newer batch is never touched
while an older one of the same product still has stock. The candidate
batches are read after BEGIN IMMEDIATE, and the full requested quantity is
checked against them before the first batch is touched.
"""

from datetime import date

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import quantize
from feedmill.core.entities.movement import (
    MovementDirection,
    MovementSource,
    StockMovement,
)
from feedmill.core.entities.product import ProductBatch
from feedmill.core.exceptions import (
    BatchNotFoundError,
    InsufficientStockError,
    InvalidMovementError,
    ProductNotFoundError,
)
from feedmill.core.interfaces.inventory import IBatchInventory
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.infrastructure.storage.sqlite.codec import (
    from_db_date,
    from_db_timestamp,
    to_db_date,
    to_db_timestamp,
)
from feedmill.infrastructure.storage.sqlite.connection import (
    get_connection,
    join_connection,
    join_transaction,
)
from feedmill.infrastructure.storage.sqlite.movement_ledger import SQLiteMovementLedger

logger = get_logger(__name__)

_FIFO_ORDER = "ORDER BY created_at ASC, id ASC"


class SQLiteBatchInventory(IBatchInventory):
    """FIFO product batches backed by the movement ledger."""

    def __init__(self, ledger: IMovementLedger | None = None):
        self._ledger = ledger or SQLiteMovementLedger()

    async def create_batch(
        self,
        product_id: int,
        production_run_id: int | None,
        quantity: float,
        expiry_date: date | None = None,
        source: MovementSource = MovementSource.PRODUCTION,
        conn: aiosqlite.Connection | None = None,
    ) -> ProductBatch:
        quantity = quantize(quantity)
        if quantity <= 0:
            raise InvalidMovementError("batch quantity must be positive", quantity=quantity)

        async with join_transaction(conn) as tx:
            cursor = await tx.execute("SELECT 1 FROM products WHERE id = ?", (product_id,))
            if await cursor.fetchone() is None:
                raise ProductNotFoundError(product_id)

            batch = ProductBatch(
                product_id=product_id,
                production_run_id=production_run_id,
                initial_quantity=quantity,
                quantity=quantity,
                expiry_date=expiry_date,
            )
            cursor = await tx.execute(
                """
                INSERT INTO product_batches (
                    product_id, production_run_id, initial_quantity, quantity,
                    expiry_date, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    batch.product_id,
                    batch.production_run_id,
                    batch.initial_quantity,
                    batch.quantity,
                    to_db_date(batch.expiry_date),
                    to_db_timestamp(batch.created_at),
                ),
            )
            batch.id = cursor.lastrowid

            await self._ledger.record(
                StockMovement(
                    direction=MovementDirection.IN,
                    source=source,
                    quantity=quantity,
                    batch_id=batch.id,
                    reference_id=production_run_id,
                ),
                conn=tx,
            )

        logger.info(
            "product_batch_created",
            batch_id=batch.id,
            product_id=product_id,
            production_run_id=production_run_id,
            quantity=quantity,
        )
        return batch

    async def consume_fifo(
        self,
        product_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: aiosqlite.Connection | None = None,
    ) -> list[StockMovement]:
        requested = quantize(quantity)
        if requested <= 0:
            raise InvalidMovementError("quantity must be positive", quantity=quantity)

        movements: list[StockMovement] = []
        async with join_transaction(conn) as tx:
            # Write lock already held; this read is the locked candidate set.
            cursor = await tx.execute(
                f"""
                SELECT * FROM product_batches
                WHERE product_id = ? AND quantity > 0
                {_FIFO_ORDER}
                """,
                (product_id,),
            )
            batches = [self._row_to_batch(row) for row in await cursor.fetchall()]

            available = quantize(sum(b.quantity for b in batches))
            if requested > available:
                logger.warning(
                    "product_stock_insufficient",
                    product_id=product_id,
                    requested=requested,
                    available=available,
                )
                raise InsufficientStockError("product", product_id, requested, available)

            remaining = requested
            for batch in batches:
                if remaining <= 0:
                    break
                take = quantize(min(batch.quantity, remaining))
                await self._deduct(tx, batch, take)
                movements.append(
                    await self._ledger.record(
                        StockMovement(
                            direction=MovementDirection.OUT,
                            source=source,
                            quantity=take,
                            batch_id=batch.id,
                            reference_id=reference_id,
                            notes=notes,
                        ),
                        conn=tx,
                    )
                )
                remaining = quantize(remaining - take)

        logger.info(
            "product_stock_consumed",
            product_id=product_id,
            quantity=requested,
            source=MovementSource(source).value,
            batches=[m.batch_id for m in movements],
        )
        return movements

    async def consume_batch(
        self,
        batch_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: aiosqlite.Connection | None = None,
    ) -> ProductBatch:
        requested = quantize(quantity)
        if requested <= 0:
            raise InvalidMovementError("quantity must be positive", quantity=quantity)

        async with join_transaction(conn) as tx:
            batch = await self.get_batch(batch_id, conn=tx)
            if batch is None:
                raise BatchNotFoundError(batch_id)
            if requested > batch.quantity:
                logger.warning(
                    "batch_stock_insufficient",
                    batch_id=batch_id,
                    requested=requested,
                    available=batch.quantity,
                )
                raise InsufficientStockError("batch", batch_id, requested, batch.quantity)

            await self._deduct(tx, batch, requested)
            await self._ledger.record(
                StockMovement(
                    direction=MovementDirection.OUT,
                    source=source,
                    quantity=requested,
                    batch_id=batch_id,
                    reference_id=reference_id,
                    notes=notes,
                ),
                conn=tx,
            )

        logger.info(
            "batch_stock_consumed",
            batch_id=batch_id,
            quantity=requested,
            remaining=batch.quantity,
        )
        return batch

    @staticmethod
    async def _deduct(conn: aiosqlite.Connection, batch: ProductBatch, quantity: float) -> None:
        batch.quantity = quantize(batch.quantity - quantity)
        await conn.execute(
            "UPDATE product_batches SET quantity = ? WHERE id = ?",
            (batch.quantity, batch.id),
        )

    async def total_available(
        self, product_id: int, conn: aiosqlite.Connection | None = None
    ) -> float:
        async with join_connection(conn) as c:
            cursor = await c.execute(
                """
                SELECT COALESCE(SUM(quantity), 0) FROM product_batches
                WHERE product_id = ? AND quantity > 0
                """,
                (product_id,),
            )
            row = await cursor.fetchone()
            return quantize(row[0])

    async def get_batch(
        self, batch_id: int, conn: aiosqlite.Connection | None = None
    ) -> ProductBatch | None:
        async with join_connection(conn) as c:
            cursor = await c.execute("SELECT * FROM product_batches WHERE id = ?", (batch_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_batch(row)

    async def list_batches(
        self, product_id: int, available_only: bool = True
    ) -> list[ProductBatch]:
        where = "product_id = ? AND quantity > 0" if available_only else "product_id = ?"
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM product_batches WHERE {where} {_FIFO_ORDER}",
                (product_id,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_batch(row) for row in rows]

    async def list_expiring(self, before: date) -> list[ProductBatch]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM product_batches
                WHERE quantity > 0 AND expiry_date IS NOT NULL AND expiry_date <= ?
                ORDER BY expiry_date ASC, id ASC
                """,
                (to_db_date(before),),
            )
            rows = await cursor.fetchall()
            return [self._row_to_batch(row) for row in rows]

    @staticmethod
    def _row_to_batch(row: aiosqlite.Row) -> ProductBatch:
        return ProductBatch(
            id=row["id"],
            product_id=row["product_id"],
            production_run_id=row["production_run_id"],
            initial_quantity=row["initial_quantity"],
            quantity=row["quantity"],
            expiry_date=from_db_date(row["expiry_date"]),
            created_at=from_db_timestamp(row["created_at"]),
        )
