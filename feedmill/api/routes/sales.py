"""Sales endpoints."""

from fastapi import APIRouter, Depends, status

from feedmill.api.dependencies import get_sale_use_case
from feedmill.application.dto.requests import ExecuteSaleRequest
from feedmill.application.dto.responses import ErrorResponse, SaleResponse, SaleResultResponse
from feedmill.application.use_cases import ExecuteSaleUseCase

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.post(
    "",
    response_model=SaleResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def create_sale(
    request: ExecuteSaleRequest,
    use_case: ExecuteSaleUseCase = Depends(get_sale_use_case),
) -> SaleResultResponse:
    """Sell from the oldest batches first. 409 when stock is short."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.get("/{sale_id}", response_model=SaleResponse, responses={404: {"model": ErrorResponse}})
async def get_sale(
    sale_id: int,
    use_case: ExecuteSaleUseCase = Depends(get_sale_use_case),
) -> SaleResponse:
    return SaleResponse.model_validate(await use_case.get_sale(sale_id))
