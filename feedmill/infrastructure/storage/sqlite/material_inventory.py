"""
SQLite material inventory.

Every balance change and its ledger entry are written in one transaction.
The transaction is opened with BEGIN IMMEDIATE, so the balance read that
decides sufficiency happens while the write lock is already held.
"""

from datetime import timedelta

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.material import Material
from feedmill.core.entities.movement import (
    MovementDirection,
    MovementSource,
    StockMovement,
)
from feedmill.core.exceptions import InsufficientStockError, MaterialNotFoundError
from feedmill.core.interfaces.catalog import IMaterialStore
from feedmill.core.interfaces.inventory import IMaterialInventory
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.infrastructure.storage.sqlite.codec import to_db_timestamp
from feedmill.infrastructure.storage.sqlite.connection import (
    join_connection,
    join_transaction,
)
from feedmill.infrastructure.storage.sqlite.material_store import SQLiteMaterialStore
from feedmill.infrastructure.storage.sqlite.movement_ledger import SQLiteMovementLedger

logger = get_logger(__name__)


class SQLiteMaterialInventory(IMaterialInventory):
    """Running material balances backed by the movement ledger."""

    def __init__(
        self,
        ledger: IMovementLedger | None = None,
        material_store: IMaterialStore | None = None,
    ):
        self._ledger = ledger or SQLiteMovementLedger()
        self._materials = material_store or SQLiteMaterialStore(self._ledger)

    async def _locked_material(self, conn: aiosqlite.Connection, material_id: int) -> Material:
        # Caller holds the write lock (BEGIN IMMEDIATE) before this read.
        material = await self._materials.get_material(material_id, conn=conn)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    async def increase(
        self,
        material_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: aiosqlite.Connection | None = None,
    ) -> Material:
        movement = StockMovement(
            direction=MovementDirection.IN,
            source=source,
            quantity=quantity,
            material_id=material_id,
            reference_id=reference_id,
            notes=notes,
        ).check()

        async with join_transaction(conn) as tx:
            material = await self._locked_material(tx, material_id)
            material.stock = quantize(material.stock + movement.quantity)
            await self._write_balance(tx, material)
            await self._ledger.record(movement, conn=tx)

        logger.info(
            "material_stock_increased",
            material_id=material_id,
            quantity=movement.quantity,
            source=movement.source.value,
            balance=material.stock,
        )
        return material

    async def decrease(
        self,
        material_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: aiosqlite.Connection | None = None,
    ) -> Material:
        movement = StockMovement(
            direction=MovementDirection.OUT,
            source=source,
            quantity=quantity,
            material_id=material_id,
            reference_id=reference_id,
            notes=notes,
        ).check()
        requested = quantize(movement.quantity)

        async with join_transaction(conn) as tx:
            material = await self._locked_material(tx, material_id)
            if requested > material.stock:
                logger.warning(
                    "material_stock_insufficient",
                    material_id=material_id,
                    requested=requested,
                    available=material.stock,
                )
                raise InsufficientStockError(
                    "material", material_id, requested, material.stock, material.name
                )
            material.stock = quantize(material.stock - requested)
            await self._write_balance(tx, material)
            await self._ledger.record(movement, conn=tx)

        logger.info(
            "material_stock_decreased",
            material_id=material_id,
            quantity=requested,
            source=movement.source.value,
            balance=material.stock,
        )
        return material

    @staticmethod
    async def _write_balance(conn: aiosqlite.Connection, material: Material) -> None:
        material.updated_at = utc_now()
        await conn.execute(
            "UPDATE materials SET stock = ?, updated_at = ? WHERE id = ?",
            (material.stock, to_db_timestamp(material.updated_at), material.id),
        )

    async def get_balance(
        self, material_id: int, conn: aiosqlite.Connection | None = None
    ) -> float:
        async with join_connection(conn) as c:
            cursor = await c.execute("SELECT stock FROM materials WHERE id = ?", (material_id,))
            row = await cursor.fetchone()
            if row is None:
                raise MaterialNotFoundError(material_id)
            return float(row["stock"])

    async def daily_usage(self, material_id: int, window_days: int = 30) -> float:
        since = utc_now() - timedelta(days=window_days)
        total = await self._ledger.outbound_total(material_id, since)
        return total / window_days
