"""Production endpoints."""

from fastapi import APIRouter, Depends, status

from feedmill.api.dependencies import (
    get_cancel_production_use_case,
    get_plan_production_use_case,
    get_production_use_case,
    get_runs,
)
from feedmill.application.dto.requests import (
    CheckProductionRequest,
    ExecuteProductionRequest,
    ProductionActionRequest,
)
from feedmill.application.dto.responses import (
    ErrorResponse,
    ProductionResponse,
    ProductionRunResponse,
)
from feedmill.application.use_cases import (
    CancelProductionUseCase,
    ExecuteProductionUseCase,
    PlanProductionUseCase,
)
from feedmill.core.entities.planning import MaxProducible, ProductionCheck
from feedmill.core.exceptions import ProductionRunNotFoundError
from feedmill.infrastructure.storage.sqlite import SQLiteProductionStore

router = APIRouter(prefix="/api/production", tags=["production"])

_WORKFLOW_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/execute",
    response_model=ProductionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WORKFLOW_ERRORS,
)
async def execute_production(
    request: ExecuteProductionRequest,
    use_case: ExecuteProductionUseCase = Depends(get_production_use_case),
) -> ProductionResponse:
    """Consume materials, complete the run and create its batch atomically."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post(
    "/start",
    response_model=ProductionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WORKFLOW_ERRORS,
)
async def start_production(
    request: ExecuteProductionRequest,
    use_case: ExecuteProductionUseCase = Depends(get_production_use_case),
) -> ProductionResponse:
    """Consume materials and leave the run pending."""
    result = await use_case.start(request)
    return use_case.to_response(result)


@router.post(
    "/{run_id}/complete",
    response_model=ProductionResponse,
    responses=_WORKFLOW_ERRORS,
)
async def complete_production(
    run_id: int,
    request: ProductionActionRequest | None = None,
    use_case: ExecuteProductionUseCase = Depends(get_production_use_case),
) -> ProductionResponse:
    result = await use_case.complete(run_id, request)
    return use_case.to_response(result)


@router.post(
    "/{run_id}/cancel",
    response_model=ProductionResponse,
    responses=_WORKFLOW_ERRORS,
)
async def cancel_production(
    run_id: int,
    request: ProductionActionRequest | None = None,
    use_case: CancelProductionUseCase = Depends(get_cancel_production_use_case),
) -> ProductionResponse:
    """Cancel a pending run and return its materials to stock."""
    result = await use_case.execute(run_id, request)
    return use_case.to_response(result)


@router.post("/check", response_model=ProductionCheck, responses={404: {"model": ErrorResponse}})
async def check_materials(
    request: CheckProductionRequest,
    use_case: PlanProductionUseCase = Depends(get_plan_production_use_case),
) -> ProductionCheck:
    """Simulate a production request without touching stock."""
    return await use_case.check(request)


@router.get(
    "/formulas/{formula_id}/max-producible",
    response_model=MaxProducible,
    responses={404: {"model": ErrorResponse}},
)
async def max_producible(
    formula_id: int,
    use_case: PlanProductionUseCase = Depends(get_plan_production_use_case),
) -> MaxProducible:
    return await use_case.max_producible(formula_id)


@router.get(
    "/{run_id}",
    response_model=ProductionRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_production_run(
    run_id: int,
    store: SQLiteProductionStore = Depends(get_runs),
) -> ProductionRunResponse:
    run = await store.get_run(run_id)
    if run is None:
        raise ProductionRunNotFoundError(run_id)
    return ProductionRunResponse.model_validate(run)
