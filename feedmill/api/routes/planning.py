"""Replenishment planning endpoints."""

from fastapi import APIRouter, Depends, Query

from feedmill.api.dependencies import get_reorder_alerts_use_case, get_safety_stock_use_case
from feedmill.application.dto.responses import ErrorResponse
from feedmill.application.use_cases import (
    GetReorderAlertsUseCase,
    GetSafetyStockRecommendationUseCase,
)
from feedmill.core.entities.planning import (
    ReorderAlert,
    ReorderAlertSummary,
    SafetyStockRecommendation,
    SupplierReorderGroup,
)

router = APIRouter(prefix="/api/planning", tags=["planning"])


@router.get("/reorder-alerts", response_model=list[ReorderAlert])
async def get_reorder_alerts(
    use_case: GetReorderAlertsUseCase = Depends(get_reorder_alerts_use_case),
) -> list[ReorderAlert]:
    """Materials at or below their reorder point, highest priority first."""
    return await use_case.execute()


@router.get("/reorder-alerts/summary", response_model=ReorderAlertSummary)
async def get_reorder_alert_summary(
    use_case: GetReorderAlertsUseCase = Depends(get_reorder_alerts_use_case),
) -> ReorderAlertSummary:
    return await use_case.summary()


@router.get("/reorder-alerts/by-supplier", response_model=list[SupplierReorderGroup])
async def get_reorder_alerts_by_supplier(
    use_case: GetReorderAlertsUseCase = Depends(get_reorder_alerts_use_case),
) -> list[SupplierReorderGroup]:
    return await use_case.by_supplier()


@router.get(
    "/safety-stock/{material_id}",
    response_model=SafetyStockRecommendation,
    responses={404: {"model": ErrorResponse}},
)
async def get_safety_stock_recommendation(
    material_id: int,
    service_level: float | None = Query(default=None, gt=0, lt=1),
    avg_delay_days: float | None = Query(default=None, ge=0),
    use_case: GetSafetyStockRecommendationUseCase = Depends(get_safety_stock_use_case),
) -> SafetyStockRecommendation:
    return await use_case.execute(
        material_id, service_level=service_level, avg_delay_days=avg_delay_days
    )
