"""SQLite implementation of sale storage."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.sale import PaymentMethod, Sale, SaleStatus
from feedmill.core.interfaces.records import ISaleStore
from feedmill.infrastructure.storage.sqlite.codec import (
    from_db_date,
    from_db_timestamp,
    to_db_date,
    to_db_timestamp,
)
from feedmill.infrastructure.storage.sqlite.connection import (
    get_connection,
    join_transaction,
)

logger = get_logger(__name__)


class SQLiteSaleStore(ISaleStore):
    async def create_sale(self, sale: Sale, conn: aiosqlite.Connection | None = None) -> Sale:
        sale.created_at = utc_now()
        async with join_transaction(conn) as tx:
            cursor = await tx.execute(
                """
                INSERT INTO sales (
                    product_id, quantity, unit_price, total_amount, payment_method,
                    status, reference, sale_date, user_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    sale.product_id,
                    sale.quantity,
                    sale.unit_price,
                    sale.total_amount,
                    sale.payment_method.value,
                    sale.status.value,
                    sale.reference,
                    to_db_date(sale.sale_date),
                    sale.user_id,
                    to_db_timestamp(sale.created_at),
                ),
            )
            sale.id = cursor.lastrowid
        logger.info("sale_recorded", sale_id=sale.id, total_amount=sale.total_amount)
        return sale

    async def get_sale(self, sale_id: int) -> Sale | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM sales WHERE id = ?", (sale_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return Sale(
                id=row["id"],
                product_id=row["product_id"],
                quantity=row["quantity"],
                unit_price=row["unit_price"],
                total_amount=row["total_amount"],
                payment_method=PaymentMethod(row["payment_method"]),
                status=SaleStatus(row["status"]),
                reference=row["reference"],
                sale_date=from_db_date(row["sale_date"]),
                user_id=row["user_id"],
                created_at=from_db_timestamp(row["created_at"]),
            )
