"""Raw material endpoints: catalog, stock changes and replenishment figures."""

from fastapi import APIRouter, Depends, Query, Response, status

from feedmill.api.dependencies import (
    get_adjust_stock_use_case,
    get_inventory,
    get_ledger,
    get_materials,
    get_planner,
    get_safety_stock_use_case,
)
from feedmill.application.dto.requests import (
    AdjustMaterialStockRequest,
    CreateMaterialRequest,
    StockChangeRequest,
    UpdateMaterialRequest,
)
from feedmill.application.dto.responses import (
    DailyUsageResponse,
    ErrorResponse,
    MaterialResponse,
    ReorderPointResponse,
    StockMovementResponse,
)
from feedmill.application.use_cases import (
    AdjustMaterialStockUseCase,
    GetSafetyStockRecommendationUseCase,
)
from feedmill.core.entities.material import Material, MaterialCategory
from feedmill.core.entities.movement import MovementDirection
from feedmill.core.entities.planning import (
    DailyUsage,
    RopDetails,
    SafetyStockRecommendation,
    SafetyStockResult,
)
from feedmill.core.exceptions import MaterialNotFoundError
from feedmill.core.services import ReorderPlanner
from feedmill.infrastructure.storage.sqlite import (
    SQLiteMaterialInventory,
    SQLiteMaterialStore,
    SQLiteMovementLedger,
)

router = APIRouter(prefix="/api/materials", tags=["materials"])


async def _load(store: SQLiteMaterialStore, material_id: int) -> Material:
    material = await store.get_material(material_id)
    if material is None:
        raise MaterialNotFoundError(material_id)
    return material


@router.post(
    "",
    response_model=MaterialResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_material(
    request: CreateMaterialRequest,
    store: SQLiteMaterialStore = Depends(get_materials),
) -> MaterialResponse:
    """Register a material. A non-zero stock is booked as an opening balance."""
    material = await store.create_material(Material(**request.model_dump()))
    return MaterialResponse.model_validate(material)


@router.get("", response_model=list[MaterialResponse])
async def list_materials(
    category: MaterialCategory | None = None,
    limit: int = Query(default=500, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: SQLiteMaterialStore = Depends(get_materials),
) -> list[MaterialResponse]:
    materials = await store.list_materials(category=category, limit=limit, offset=offset)
    return [MaterialResponse.model_validate(m) for m in materials]


@router.get(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_material(
    material_id: int,
    store: SQLiteMaterialStore = Depends(get_materials),
) -> MaterialResponse:
    return MaterialResponse.model_validate(await _load(store, material_id))


@router.patch(
    "/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_material(
    material_id: int,
    request: UpdateMaterialRequest,
    store: SQLiteMaterialStore = Depends(get_materials),
) -> MaterialResponse:
    """Update master data. Balances change only through increase/decrease."""
    material = await _load(store, material_id)
    updated = material.model_copy(update=request.model_dump(exclude_unset=True))
    return MaterialResponse.model_validate(await store.update_material(updated))


@router.delete(
    "/{material_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_material(
    material_id: int,
    store: SQLiteMaterialStore = Depends(get_materials),
) -> Response:
    await store.delete_material(material_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{material_id}/increase",
    response_model=MaterialResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def increase_stock(
    material_id: int,
    request: StockChangeRequest,
    use_case: AdjustMaterialStockUseCase = Depends(get_adjust_stock_use_case),
) -> MaterialResponse:
    """Book inbound stock (purchase receipt, stock-take surplus)."""
    result = await use_case.execute(
        AdjustMaterialStockRequest(
            material_id=material_id,
            direction=MovementDirection.IN,
            **request.model_dump(),
        )
    )
    return use_case.to_response(result)


@router.post(
    "/{material_id}/decrease",
    response_model=MaterialResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def decrease_stock(
    material_id: int,
    request: StockChangeRequest,
    use_case: AdjustMaterialStockUseCase = Depends(get_adjust_stock_use_case),
) -> MaterialResponse:
    """Book outbound stock. Rejected with 409 when the balance is too low."""
    result = await use_case.execute(
        AdjustMaterialStockRequest(
            material_id=material_id,
            direction=MovementDirection.OUT,
            **request.model_dump(),
        )
    )
    return use_case.to_response(result)


@router.get("/{material_id}/daily-usage", response_model=DailyUsageResponse)
async def get_daily_usage(
    material_id: int,
    window_days: int = Query(default=30, ge=1, le=365),
    store: SQLiteMaterialStore = Depends(get_materials),
    inventory: SQLiteMaterialInventory = Depends(get_inventory),
) -> DailyUsageResponse:
    await _load(store, material_id)
    usage = await inventory.daily_usage(material_id, window_days=window_days)
    return DailyUsageResponse(
        material_id=material_id, window_days=window_days, daily_usage=usage
    )


@router.get("/{material_id}/usage-history", response_model=list[DailyUsage])
async def get_usage_history(
    material_id: int,
    days: int = Query(default=30, ge=1, le=365),
    store: SQLiteMaterialStore = Depends(get_materials),
    planner: ReorderPlanner = Depends(get_planner),
) -> list[DailyUsage]:
    await _load(store, material_id)
    return await planner.usage_history(material_id, days=days)


@router.get(
    "/{material_id}/rop",
    response_model=RopDetails,
    responses={404: {"model": ErrorResponse}},
)
async def get_reorder_point(
    material_id: int,
    planner: ReorderPlanner = Depends(get_planner),
) -> RopDetails:
    return await planner.rop_details(material_id)


@router.get(
    "/{material_id}/needs-restock",
    response_model=ReorderPointResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_needs_restock(
    material_id: int,
    planner: ReorderPlanner = Depends(get_planner),
) -> ReorderPointResponse:
    details = await planner.rop_details(material_id)
    return ReorderPointResponse(
        material_id=material_id,
        reorder_point=details.reorder_point,
        needs_restock=details.needs_restock,
    )


@router.get("/{material_id}/movements", response_model=list[StockMovementResponse])
async def get_movements(
    material_id: int,
    direction: MovementDirection | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    store: SQLiteMaterialStore = Depends(get_materials),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> list[StockMovementResponse]:
    """Ledger entries for the material, newest first."""
    await _load(store, material_id)
    movements = await ledger.list_by_material(material_id, direction=direction, limit=limit)
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get(
    "/{material_id}/safety-stock",
    response_model=SafetyStockResult,
    responses={404: {"model": ErrorResponse}},
)
async def get_safety_stock(
    material_id: int,
    service_level: float | None = Query(default=None, gt=0, lt=1),
    planner: ReorderPlanner = Depends(get_planner),
) -> SafetyStockResult:
    """Adaptive safety stock; ``status`` says whether it is the statistical value."""
    return await planner.adaptive_safety_stock(material_id, service_level=service_level)


@router.get(
    "/{material_id}/safety-stock/recommendation",
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
