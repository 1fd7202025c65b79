"""SQLite implementation of formula (bill of materials) storage."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.formula import FORMULA_BASIS, Formula, FormulaLine
from feedmill.core.exceptions import FormulaNotFoundError, ValidationError
from feedmill.core.interfaces.catalog import IFormulaStore
from feedmill.infrastructure.storage.sqlite.codec import from_db_timestamp, to_db_timestamp
from feedmill.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    join_connection,
)

logger = get_logger(__name__)


class SQLiteFormulaStore(IFormulaStore):
    async def create_formula(self, formula: Formula) -> Formula:
        """Store a formula whose line quantities add up to one unit of output."""
        if not formula.lines:
            raise ValidationError("lines", "formula needs at least one material")
        if not formula.is_balanced:
            raise ValidationError(
                "lines",
                f"line quantities must sum to {FORMULA_BASIS:g}",
                formula.total_quantity,
            )

        now = utc_now()
        formula.created_at = now
        formula.updated_at = now
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO formulas (product_id, name, notes, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    formula.product_id,
                    formula.name,
                    formula.notes,
                    1 if formula.is_active else 0,
                    to_db_timestamp(formula.created_at),
                    to_db_timestamp(formula.updated_at),
                ),
            )
            formula.id = cursor.lastrowid
            await conn.executemany(
                "INSERT INTO formula_lines (formula_id, material_id, quantity) VALUES (?, ?, ?)",
                [(formula.id, line.material_id, line.quantity) for line in formula.lines],
            )

        logger.info(
            "formula_created",
            formula_id=formula.id,
            product_id=formula.product_id,
            lines=len(formula.lines),
        )
        return await self.get_formula(formula.id) or formula

    async def get_formula(
        self, formula_id: int, conn: aiosqlite.Connection | None = None
    ) -> Formula | None:
        async with join_connection(conn) as c:
            cursor = await c.execute("SELECT * FROM formulas WHERE id = ?", (formula_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(c, row)

    async def get_active_formula(self, product_id: int) -> Formula | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM formulas WHERE product_id = ? AND is_active = 1
                ORDER BY updated_at DESC, id DESC LIMIT 1
                """,
                (product_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return await self._load(conn, row)

    async def set_active(self, formula_id: int, is_active: bool) -> None:
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "UPDATE formulas SET is_active = ?, updated_at = ? WHERE id = ?",
                (1 if is_active else 0, to_db_timestamp(utc_now()), formula_id),
            )
            if cursor.rowcount == 0:
                raise FormulaNotFoundError(formula_id)
        logger.info("formula_activation_changed", formula_id=formula_id, is_active=is_active)

    async def list_formulas_using_material(
        self, material_id: int, active_only: bool = True
    ) -> list[Formula]:
        sql = """
            SELECT DISTINCT f.* FROM formulas f
            JOIN formula_lines fl ON fl.formula_id = f.id
            WHERE fl.material_id = ?
        """
        if active_only:
            sql += " AND f.is_active = 1"
        async with get_connection() as conn:
            cursor = await conn.execute(sql + " ORDER BY f.id", (material_id,))
            rows = await cursor.fetchall()
            return [await self._load(conn, row) for row in rows]

    async def _load(self, conn: aiosqlite.Connection, row: aiosqlite.Row) -> Formula:
        cursor = await conn.execute(
            """
            SELECT fl.material_id, fl.quantity, m.name AS material_name, m.unit_cost
            FROM formula_lines fl
            JOIN materials m ON m.id = fl.material_id
            WHERE fl.formula_id = ?
            ORDER BY fl.id
            """,
            (row["id"],),
        )
        lines = [
            FormulaLine(
                material_id=line["material_id"],
                quantity=line["quantity"],
                material_name=line["material_name"],
                unit_cost=line["unit_cost"],
            )
            for line in await cursor.fetchall()
        ]
        return Formula(
            id=row["id"],
            product_id=row["product_id"],
            name=row["name"],
            notes=row["notes"],
            is_active=bool(row["is_active"]),
            lines=lines,
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
