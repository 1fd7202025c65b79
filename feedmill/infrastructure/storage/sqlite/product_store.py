"""SQLite implementation of the product catalog."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.product import Product, ProductCategory
from feedmill.core.exceptions import DuplicateError
from feedmill.core.interfaces.catalog import IProductStore
from feedmill.infrastructure.storage.sqlite.codec import from_db_timestamp, to_db_timestamp
from feedmill.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    join_connection,
)

logger = get_logger(__name__)


class SQLiteProductStore(IProductStore):
    async def create_product(self, product: Product) -> Product:
        now = utc_now()
        product.created_at = now
        product.updated_at = now
        async with get_transaction() as conn:
            try:
                cursor = await conn.execute(
                    """
                    INSERT INTO products (
                        code, name, category, unit, selling_price, description,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        product.code,
                        product.name,
                        product.category.value,
                        product.unit,
                        product.selling_price,
                        product.description,
                        to_db_timestamp(product.created_at),
                        to_db_timestamp(product.updated_at),
                    ),
                )
            except aiosqlite.IntegrityError as e:
                if "UNIQUE" in str(e):
                    raise DuplicateError("Product", "code", product.code) from e
                raise
            product.id = cursor.lastrowid
        logger.info("product_created", product_id=product.id, code=product.code)
        return product

    async def get_product(
        self, product_id: int, conn: aiosqlite.Connection | None = None
    ) -> Product | None:
        async with join_connection(conn) as c:
            cursor = await c.execute("SELECT * FROM products WHERE id = ?", (product_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def get_product_by_code(self, code: str) -> Product | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM products WHERE code = ?", (code,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return self._row_to_product(row)

    async def list_products(self, limit: int = 500, offset: int = 0) -> list[Product]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM products ORDER BY code LIMIT ? OFFSET ?", (limit, offset)
            )
            rows = await cursor.fetchall()
            return [self._row_to_product(row) for row in rows]

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        return Product(
            id=row["id"],
            code=row["code"],
            name=row["name"],
            category=ProductCategory(row["category"]),
            unit=row["unit"],
            selling_price=row["selling_price"],
            description=row["description"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"]),
        )
