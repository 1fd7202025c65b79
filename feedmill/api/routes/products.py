"""Finished product endpoints: catalog and batch-tracked stock."""

from fastapi import APIRouter, Depends, Query, status

from feedmill.api.dependencies import get_batches, get_ledger, get_products
from feedmill.application.dto.requests import (
    ConsumeStockRequest,
    CreateBatchRequest,
    CreateProductRequest,
)
from feedmill.application.dto.responses import (
    BatchResponse,
    ErrorResponse,
    ProductAvailabilityResponse,
    ProductResponse,
    StockMovementResponse,
)
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.movement import MovementDirection
from feedmill.core.entities.product import Product, expiry_date_for
from feedmill.core.exceptions import ProductNotFoundError
from feedmill.infrastructure.storage.sqlite import (
    SQLiteBatchInventory,
    SQLiteMovementLedger,
    SQLiteProductStore,
)

router = APIRouter(prefix="/api/products", tags=["products"])


async def _load(store: SQLiteProductStore, product_id: int) -> Product:
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    store: SQLiteProductStore = Depends(get_products),
) -> ProductResponse:
    product = await store.create_product(Product(**request.model_dump()))
    return ProductResponse.model_validate(product)


@router.get("", response_model=list[ProductResponse])
async def list_products(
    limit: int = Query(default=500, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    store: SQLiteProductStore = Depends(get_products),
) -> list[ProductResponse]:
    products = await store.list_products(limit=limit, offset=offset)
    return [ProductResponse.model_validate(p) for p in products]


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: int,
    store: SQLiteProductStore = Depends(get_products),
) -> ProductResponse:
    return ProductResponse.model_validate(await _load(store, product_id))


@router.get("/{product_id}/batches", response_model=list[BatchResponse])
async def list_batches(
    product_id: int,
    available_only: bool = True,
    store: SQLiteProductStore = Depends(get_products),
    batches: SQLiteBatchInventory = Depends(get_batches),
) -> list[BatchResponse]:
    """Batches in FIFO order, oldest first."""
    await _load(store, product_id)
    items = await batches.list_batches(product_id, available_only=available_only)
    return [BatchResponse.model_validate(b) for b in items]


@router.post(
    "/{product_id}/batches",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}},
)
async def create_batch(
    product_id: int,
    request: CreateBatchRequest,
    store: SQLiteProductStore = Depends(get_products),
    batches: SQLiteBatchInventory = Depends(get_batches),
) -> BatchResponse:
    """Book a batch directly, e.g. goods bought in ready-made."""
    product = await _load(store, product_id)
    expiry = request.expiry_date or expiry_date_for(product.category, utc_now().date())
    batch = await batches.create_batch(
        product_id,
        request.production_run_id,
        request.quantity,
        expiry_date=expiry,
        source=request.source,
    )
    return BatchResponse.model_validate(batch)


@router.get(
    "/{product_id}/available",
    response_model=ProductAvailabilityResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_available(
    product_id: int,
    store: SQLiteProductStore = Depends(get_products),
    batches: SQLiteBatchInventory = Depends(get_batches),
) -> ProductAvailabilityResponse:
    await _load(store, product_id)
    return ProductAvailabilityResponse(
        product_id=product_id,
        total_available=await batches.total_available(product_id),
        batches=[BatchResponse.model_validate(b) for b in await batches.list_batches(product_id)],
    )


@router.post(
    "/{product_id}/consume",
    response_model=list[StockMovementResponse],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def consume_stock(
    product_id: int,
    request: ConsumeStockRequest,
    store: SQLiteProductStore = Depends(get_products),
    batches: SQLiteBatchInventory = Depends(get_batches),
) -> list[StockMovementResponse]:
    """Deduct stock oldest batch first; one movement per batch touched."""
    await _load(store, product_id)
    movements = await batches.consume_fifo(
        product_id,
        request.quantity,
        request.source,
        reference_id=request.reference_id,
        notes=request.notes,
    )
    return [StockMovementResponse.model_validate(m) for m in movements]


@router.get("/{product_id}/movements", response_model=list[StockMovementResponse])
async def get_movements(
    product_id: int,
    direction: MovementDirection | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    store: SQLiteProductStore = Depends(get_products),
    ledger: SQLiteMovementLedger = Depends(get_ledger),
) -> list[StockMovementResponse]:
    await _load(store, product_id)
    movements = await ledger.list_by_product(product_id, direction=direction, limit=limit)
    return [StockMovementResponse.model_validate(m) for m in movements]
