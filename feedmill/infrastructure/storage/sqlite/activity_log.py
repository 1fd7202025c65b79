"""SQLite audit trail."""

import aiosqlite

from feedmill.config import get_logger
from feedmill.core.entities.activity import ActivityLogEntry
from feedmill.core.entities.common import utc_now
from feedmill.core.interfaces.records import IActivityLog
from feedmill.infrastructure.storage.sqlite.codec import from_db_timestamp, to_db_timestamp
from feedmill.infrastructure.storage.sqlite.connection import get_connection, get_transaction

logger = get_logger(__name__)


class SQLiteActivityLog(IActivityLog):
    """Writes one row per user-visible action in its own short transaction."""

    async def log(self, user_id: int | None, action: str, description: str) -> None:
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO activity_logs (user_id, action, description, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, action, description, to_db_timestamp(utc_now())),
            )
        logger.debug("activity_logged", user_id=user_id, action=action)

    async def list_recent(self, limit: int = 50) -> list[ActivityLogEntry]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM activity_logs ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> ActivityLogEntry:
        return ActivityLogEntry(
            id=row["id"],
            user_id=row["user_id"],
            action=row["action"],
            description=row["description"],
            created_at=from_db_timestamp(row["created_at"]),
        )
