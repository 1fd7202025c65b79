"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from feedmill import __version__
from feedmill.application.dto.responses import HealthResponse
from feedmill.config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Service and database health.

    Runs a trivial query and reports the applied schema version.
    """
    from feedmill.infrastructure.storage.sqlite import get_connection
    from feedmill.infrastructure.storage.sqlite.migrations import get_current_version

    database = "unavailable"
    schema_version = None
    try:
        async with get_connection() as conn:
            await conn.execute("SELECT 1")
            schema_version = await get_current_version(conn)
        database = "ok"
    except Exception as e:
        logger.warning("health_db_check_failed", error=str(e))

    return HealthResponse(
        status="healthy" if database == "ok" else "degraded",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        database=database,
        schema_version=schema_version,
    )
