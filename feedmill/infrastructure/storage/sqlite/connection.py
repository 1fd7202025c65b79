"""
Async SQLite connection pool with aiosqlite.

Connections run in autocommit mode; writes go through ``transaction()``,
which opens ``BEGIN IMMEDIATE``. That takes the database write lock before
the first statement of the unit of work, so any balance read inside the
transaction is already protected against concurrent writers. A writer that
cannot get the lock within ``busy_timeout`` fails with BusyError.

Plain ``acquire()`` reads see a consistent WAL snapshot and never block.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from feedmill.config import get_logger, get_settings
from feedmill.core.exceptions import BusyError

logger = get_logger(__name__)

_LOCK_MESSAGES = ("database is locked", "database is busy", "database table is locked")


def is_lock_error(error: Exception) -> bool:
    """True if ``error`` is SQLite reporting lock contention."""
    return isinstance(error, aiosqlite.OperationalError) and any(
        msg in str(error).lower() for msg in _LOCK_MESSAGES
    )


# Applied to every pooled connection. WAL lets readers proceed while a
# writer holds the lock.
_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """
    Fixed-size pool of autocommit aiosqlite connections.

    Connections are opened on first use. ``acquire`` lends one for reads;
    ``transaction`` lends one holding the write lock.
    """

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 30000):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()

    async def _open(self) -> aiosqlite.Connection:
        # isolation_level=None: transactions are opened explicitly
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        for pragma in (*_PRAGMAS, f"PRAGMA busy_timeout={self.busy_timeout}"):
            await conn.execute(pragma)
        conn.row_factory = aiosqlite.Row
        return conn

    async def initialize(self) -> None:
        async with self._lock:
            if self._initialized:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connections = [await self._open() for _ in range(self.pool_size)]
            for conn in self._connections:
                self._pool.put_nowait(conn)
            self._initialized = True

        logger.info(
            "connection_pool_initialized",
            db_path=str(self.db_path),
            pool_size=self.pool_size,
            busy_timeout=self.busy_timeout,
        )

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection; waits while all of them are lent out."""
        if not self._initialized:
            await self.initialize()
        conn = await self._pool.get()
        try:
            yield conn
        finally:
            self._pool.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside ``BEGIN IMMEDIATE``.

        Commits when the block exits cleanly and rolls back on any exception.
        Raises BusyError if the write lock is not granted within the busy
        timeout.
        """
        async with self.acquire() as conn:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except aiosqlite.OperationalError as e:
                if not is_lock_error(e):
                    raise
                logger.warning("write_lock_timeout", busy_timeout=self.busy_timeout)
                raise BusyError("begin transaction", self.busy_timeout) from e

            try:
                yield conn
            except Exception:
                await conn.rollback()
                raise
            await conn.execute("COMMIT")

    async def close(self) -> None:
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections = []
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
        logger.info("connection_pool_closed")


# Global connection pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the global connection pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            db_path=settings.storage.db_path,
            pool_size=settings.storage.pool_size,
            busy_timeout=settings.storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection from the global pool for snapshot reads."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Get a connection holding the write lock for one unit of work."""
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn


@asynccontextmanager
async def join_transaction(
    conn: aiosqlite.Connection | None = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """
    Reuse the caller's transaction, or open a new one.

    Lets inventory operations run standalone or as one step of a workflow
    without nesting transactions.
    """
    if conn is not None:
        yield conn
        return
    async with get_transaction() as tx:
        yield tx


@asynccontextmanager
async def join_connection(
    conn: aiosqlite.Connection | None = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """Reuse the caller's connection for a read, or borrow one from the pool."""
    if conn is not None:
        yield conn
        return
    async with get_connection() as c:
        yield c
