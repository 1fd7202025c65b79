"""Application use cases."""

from feedmill.application.use_cases.adjust_material_stock import (
    AdjustMaterialStockUseCase,
    AdjustStockResult,
)
from feedmill.application.use_cases.cancel_production import (
    CancelProductionResult,
    CancelProductionUseCase,
)
from feedmill.application.use_cases.check_expiring_batches import CheckExpiringBatchesUseCase
from feedmill.application.use_cases.execute_disposal import ExecuteDisposalUseCase, parse_reason
from feedmill.application.use_cases.execute_production import (
    ExecuteProductionUseCase,
    ProductionResult,
    material_requirements,
)
from feedmill.application.use_cases.execute_sale import ExecuteSaleUseCase, SaleResult
from feedmill.application.use_cases.get_reorder_alerts import (
    GetReorderAlertsUseCase,
    GetSafetyStockRecommendationUseCase,
)
from feedmill.application.use_cases.plan_production import PlanProductionUseCase

__all__ = [
    "AdjustMaterialStockUseCase",
    "AdjustStockResult",
    "ExecuteProductionUseCase",
    "ProductionResult",
    "material_requirements",
    "CancelProductionUseCase",
    "CancelProductionResult",
    "PlanProductionUseCase",
    "ExecuteSaleUseCase",
    "SaleResult",
    "ExecuteDisposalUseCase",
    "parse_reason",
    "GetReorderAlertsUseCase",
    "GetSafetyStockRecommendationUseCase",
    "CheckExpiringBatchesUseCase",
]
