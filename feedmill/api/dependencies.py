"""
Dependency injection container for FastAPI.

Provides store, service and use case instances to route handlers. Tests
swap any of these through ``app.dependency_overrides``.
"""

from feedmill.application.services import get_reorder_planner
from feedmill.application.use_cases import (
    AdjustMaterialStockUseCase,
    CancelProductionUseCase,
    CheckExpiringBatchesUseCase,
    ExecuteDisposalUseCase,
    ExecuteProductionUseCase,
    ExecuteSaleUseCase,
    GetReorderAlertsUseCase,
    GetSafetyStockRecommendationUseCase,
    PlanProductionUseCase,
)
from feedmill.core.services import ReorderPlanner
from feedmill.infrastructure.storage.sqlite import (
    SQLiteBatchInventory,
    SQLiteMaterialInventory,
    SQLiteMaterialStore,
    SQLiteMovementLedger,
    SQLiteProductionStore,
    SQLiteProductStore,
    get_batch_inventory,
    get_material_inventory,
    get_material_store,
    get_movement_ledger,
    get_product_store,
    get_production_store,
)


# Service dependencies
async def get_planner() -> ReorderPlanner:
    return await get_reorder_planner()


# Use case dependencies
def get_adjust_stock_use_case() -> AdjustMaterialStockUseCase:
    return AdjustMaterialStockUseCase()


def get_production_use_case() -> ExecuteProductionUseCase:
    return ExecuteProductionUseCase()


def get_cancel_production_use_case() -> CancelProductionUseCase:
    return CancelProductionUseCase()


def get_plan_production_use_case() -> PlanProductionUseCase:
    return PlanProductionUseCase()


def get_sale_use_case() -> ExecuteSaleUseCase:
    return ExecuteSaleUseCase()


def get_disposal_use_case() -> ExecuteDisposalUseCase:
    return ExecuteDisposalUseCase()


def get_expiring_batches_use_case() -> CheckExpiringBatchesUseCase:
    return CheckExpiringBatchesUseCase()


def get_reorder_alerts_use_case() -> GetReorderAlertsUseCase:
    return GetReorderAlertsUseCase()


def get_safety_stock_use_case() -> GetSafetyStockRecommendationUseCase:
    return GetSafetyStockRecommendationUseCase()


# Store dependencies
async def get_ledger() -> SQLiteMovementLedger:
    """Get movement ledger."""
    return await get_movement_ledger()


async def get_materials() -> SQLiteMaterialStore:
    """Get material store."""
    return await get_material_store()


async def get_inventory() -> SQLiteMaterialInventory:
    """Get material inventory."""
    return await get_material_inventory()


async def get_products() -> SQLiteProductStore:
    """Get product store."""
    return await get_product_store()


async def get_batches() -> SQLiteBatchInventory:
    """Get product batch inventory."""
    return await get_batch_inventory()


async def get_runs() -> SQLiteProductionStore:
    """Get production run store."""
    return await get_production_store()
