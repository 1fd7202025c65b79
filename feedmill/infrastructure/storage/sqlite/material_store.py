"""SQLite implementation of the material catalog."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.material import Material, MaterialCategory
from feedmill.core.entities.movement import (
    MovementDirection,
    MovementSource,
    StockMovement,
)
from feedmill.core.exceptions import (
    DuplicateError,
    MaterialInUseError,
    MaterialNotFoundError,
)
from feedmill.core.interfaces.catalog import IMaterialStore
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.infrastructure.storage.sqlite.codec import (
    from_db_date,
    from_db_timestamp,
    to_db_date,
    to_db_timestamp,
)
from feedmill.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    join_connection,
)
from feedmill.infrastructure.storage.sqlite.movement_ledger import SQLiteMovementLedger

logger = get_logger(__name__)

OPENING_BALANCE_NOTE = "opening balance"


class SQLiteMaterialStore(IMaterialStore):
    """Material master data; the balance column is owned by the inventory."""

    def __init__(self, ledger: IMovementLedger | None = None):
        self._ledger = ledger or SQLiteMovementLedger()

    async def create_material(self, material: Material) -> Material:
        """Create a material; a non-zero opening stock is booked as an adjustment."""
        now = utc_now()
        material.created_at = now
        material.updated_at = now
        material.stock = quantize(material.stock)
        async with get_transaction() as conn:
            try:
                cursor = await conn.execute(
                    """
                    INSERT INTO materials (
                        category, name, unit, stock, min_stock, lead_time_days,
                        safety_stock, unit_cost, supplier, expiry_date,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        material.category.value,
                        material.name,
                        material.unit,
                        material.stock,
                        material.min_stock,
                        material.lead_time_days,
                        material.safety_stock,
                        material.unit_cost,
                        material.supplier,
                        to_db_date(material.expiry_date),
                        to_db_timestamp(material.created_at),
                        to_db_timestamp(material.updated_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                if "UNIQUE" in str(e):
                    raise DuplicateError("Material", "name", material.name) from e
                raise
            material.id = cursor.lastrowid

            if material.stock > 0:
                await self._ledger.record(
                    StockMovement(
                        direction=MovementDirection.IN,
                        source=MovementSource.ADJUSTMENT,
                        quantity=material.stock,
                        material_id=material.id,
                        notes=OPENING_BALANCE_NOTE,
                    ),
                    conn=conn,
                )

        logger.info(
            "material_created",
            material_id=material.id,
            name=material.name,
            opening_stock=material.stock,
        )
        return material

    async def get_material(
        self, material_id: int, conn: aiosqlite.Connection | None = None
    ) -> Material | None:
        async with join_connection(conn) as c:
            cursor = await c.execute("SELECT * FROM materials WHERE id = ?", (material_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_material(row)

    async def get_material_by_name(self, name: str) -> Material | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM materials WHERE name = ?", (name,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_material(row)

    async def list_materials(
        self,
        category: MaterialCategory | None = None,
        limit: int = 500,
        offset: int = 0,
    ) -> list[Material]:
        async with get_connection() as conn:
            if category is None:
                cursor = await conn.execute(
                    "SELECT * FROM materials ORDER BY name LIMIT ? OFFSET ?",
                    (limit, offset),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM materials WHERE category = ?
                    ORDER BY name LIMIT ? OFFSET ?
                    """,
                    (MaterialCategory(category).value, limit, offset),
                )
            rows = await cursor.fetchall()
            return [self._row_to_material(row) for row in rows]

    async def update_material(self, material: Material) -> Material:
        """Update master data. The stored balance is left untouched."""
        material.updated_at = utc_now()
        async with get_transaction() as conn:
            try:
                cursor = await conn.execute(
                    """
                    UPDATE materials SET
                        category = ?, name = ?, unit = ?, min_stock = ?,
                        lead_time_days = ?, safety_stock = ?, unit_cost = ?,
                        supplier = ?, expiry_date = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        material.category.value,
                        material.name,
                        material.unit,
                        material.min_stock,
                        material.lead_time_days,
                        material.safety_stock,
                        material.unit_cost,
                        material.supplier,
                        to_db_date(material.expiry_date),
                        to_db_timestamp(material.updated_at),
                        material.id,
                    ),
                )
            except aiosqlite.IntegrityError as e:
                if "UNIQUE" in str(e):
                    raise DuplicateError("Material", "name", material.name) from e
                raise
            if cursor.rowcount == 0:
                raise MaterialNotFoundError(material.id)

            cursor = await conn.execute(
                "SELECT stock FROM materials WHERE id = ?", (material.id,)
            )
            row = await cursor.fetchone()
            material.stock = row["stock"]

        logger.info("material_updated", material_id=material.id)
        return material

    async def delete_material(self, material_id: int) -> bool:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "SELECT stock FROM materials WHERE id = ?", (material_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                raise MaterialNotFoundError(material_id)
            if row["stock"] != 0:
                raise MaterialInUseError(material_id, f"stock is {row['stock']:g}, not zero")

            cursor = await conn.execute(
                """
                SELECT COUNT(*) FROM formula_lines fl
                JOIN formulas f ON f.id = fl.formula_id
                WHERE fl.material_id = ? AND f.is_active = 1
                """,
                (material_id,),
            )
            if (await cursor.fetchone())[0]:
                raise MaterialInUseError(material_id, "used by an active formula")

            try:
                await conn.execute("DELETE FROM materials WHERE id = ?", (material_id,))
            except aiosqlite.IntegrityError as e:
                raise MaterialInUseError(
                    material_id, "referenced by stock movements or inactive formulas"
                ) from e

        logger.info("material_deleted", material_id=material_id)
        return True

    @staticmethod
    def _row_to_material(row: aiosqlite.Row) -> Material:
        return Material(
            id=row["id"],
            category=MaterialCategory(row["category"]),
            name=row["name"],
            unit=row["unit"],
            stock=row["stock"],
            min_stock=row["min_stock"],
            lead_time_days=row["lead_time_days"],
            safety_stock=row["safety_stock"],
            unit_cost=row["unit_cost"],
            supplier=row["supplier"],
            expiry_date=from_db_date(row["expiry_date"]),
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
