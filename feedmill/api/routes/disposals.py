"""Disposal (write-off) endpoints."""

from fastapi import APIRouter, Depends, Query, status

from feedmill.api.dependencies import get_disposal_use_case, get_expiring_batches_use_case
from feedmill.application.dto.requests import BulkDisposalRequest, ExecuteDisposalRequest
from feedmill.application.dto.responses import (
    BulkDisposalResponse,
    DisposalResponse,
    ErrorResponse,
)
from feedmill.application.use_cases import CheckExpiringBatchesUseCase, ExecuteDisposalUseCase
from feedmill.core.entities.planning import ExpiringBatch

router = APIRouter(prefix="/api/disposals", tags=["disposals"])


@router.post(
    "",
    response_model=DisposalResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def create_disposal(
    request: ExecuteDisposalRequest,
    use_case: ExecuteDisposalUseCase = Depends(get_disposal_use_case),
) -> DisposalResponse:
    disposal = await use_case.execute(request)
    return use_case.to_response(disposal)


@router.post("/bulk", response_model=BulkDisposalResponse)
async def create_bulk_disposal(
    request: BulkDisposalRequest,
    use_case: ExecuteDisposalUseCase = Depends(get_disposal_use_case),
) -> BulkDisposalResponse:
    """Each item commits on its own; failures are reported per item."""
    return await use_case.execute_bulk(request)


@router.get("/expiring", response_model=list[ExpiringBatch])
async def list_expiring_batches(
    within_days: int | None = Query(default=None, ge=0, le=365),
    use_case: CheckExpiringBatchesUseCase = Depends(get_expiring_batches_use_case),
) -> list[ExpiringBatch]:
    """Batches with stock left that are expired or expire within the window."""
    return await use_case.execute(within_days)


@router.get(
    "/{disposal_id}",
    response_model=DisposalResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_disposal(
    disposal_id: int,
    use_case: ExecuteDisposalUseCase = Depends(get_disposal_use_case),
) -> DisposalResponse:
    return use_case.to_response(await use_case.get_disposal(disposal_id))
