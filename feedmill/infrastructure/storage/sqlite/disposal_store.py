"""SQLite implementation of disposal storage."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.disposal import DisposalReason, DisposalRecord
from feedmill.core.interfaces.records import IDisposalStore
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


class SQLiteDisposalStore(IDisposalStore):
    async def create_disposal(
        self, disposal: DisposalRecord, conn: aiosqlite.Connection | None = None
    ) -> DisposalRecord:
        disposal.created_at = utc_now()
        async with join_transaction(conn) as tx:
            cursor = await tx.execute(
                """
                INSERT INTO disposals (
                    batch_id, product_id, quantity, reason, action, reference,
                    disposal_date, loss_amount, user_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    disposal.batch_id,
                    disposal.product_id,
                    disposal.quantity,
                    disposal.reason.value,
                    disposal.action,
                    disposal.reference,
                    to_db_date(disposal.disposal_date),
                    disposal.loss_amount,
                    disposal.user_id,
                    to_db_timestamp(disposal.created_at),
                ),
            )
            disposal.id = cursor.lastrowid
        logger.info(
            "disposal_recorded",
            disposal_id=disposal.id,
            batch_id=disposal.batch_id,
            loss_amount=disposal.loss_amount,
        )
        return disposal

    async def get_disposal(self, disposal_id: int) -> DisposalRecord | None:
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM disposals WHERE id = ?", (disposal_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return DisposalRecord(
                id=row["id"],
                batch_id=row["batch_id"],
                product_id=row["product_id"],
                quantity=row["quantity"],
                reason=DisposalReason(row["reason"]),
                action=row["action"],
                reference=row["reference"],
                disposal_date=from_db_date(row["disposal_date"]),
                loss_amount=row["loss_amount"],
                user_id=row["user_id"],
                created_at=from_db_timestamp(row["created_at"]),
            )
