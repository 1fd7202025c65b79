"""Stock ledger query endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query

from feedmill.api.dependencies import get_ledger
from feedmill.application.dto.responses import StockMovementResponse
from feedmill.core.exceptions import ValidationError
from feedmill.infrastructure.storage.sqlite import SQLiteMovementLedger

router = APIRouter(prefix="/api/movements", tags=["movements"])


@router.get("", response_model=list[StockMovementResponse])
async def list_movements(
    start: datetime,
    end: datetime,
    limit: int = Query(default=500, ge=1, le=5000),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> list[StockMovementResponse]:
    """Movements created in ``[start, end]``, newest first."""
    # Naive query values are taken as UTC
    start = start if start.tzinfo else start.replace(tzinfo=UTC)
    end = end if end.tzinfo else end.replace(tzinfo=UTC)
    if end < start:
        raise ValidationError("end", "must not be before start", end.isoformat())
    movements = await ledger.list_by_date_range(start, end, limit=limit)
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get("/today", response_model=list[StockMovementResponse])
async def list_today(
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> list[StockMovementResponse]:
    return [StockMovementResponse.model_validate(m) for m in await ledger.list_today()]


@router.get("/recent", response_model=list[StockMovementResponse])
async def list_recent(
    days: int = Query(default=7, ge=1, le=365),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> list[StockMovementResponse]:
    return [StockMovementResponse.model_validate(m) for m in await ledger.list_recent(days)]
