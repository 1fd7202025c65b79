"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from feedmill.core.entities.disposal import DisposalReason
from feedmill.core.entities.material import MaterialCategory
from feedmill.core.entities.movement import MovementDirection, MovementSource
from feedmill.core.entities.product import ProductCategory
from feedmill.core.entities.production import ProductionStatus
from feedmill.core.entities.sale import PaymentMethod, SaleStatus


class MaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: MaterialCategory
    name: str
    unit: str
    stock: float
    min_stock: float
    lead_time_days: int
    safety_stock: float
    unit_cost: float
    supplier: str | None = None
    expiry_date: date | None = None
    created_at: datetime
    updated_at: datetime


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    category: ProductCategory
    unit: str
    selling_price: float
    description: str | None = None


class BatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    production_run_id: int | None = None
    initial_quantity: float
    quantity: float
    expiry_date: date | None = None
    created_at: datetime


class StockMovementResponse(BaseModel):
    """Stock movement response DTO."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    direction: MovementDirection
    source: MovementSource
    quantity: float
    material_id: int | None = None
    batch_id: int | None = None
    product_id: int | None = None
    reference_id: int | None = None
    notes: str | None = None
    created_at: datetime


class ProductAvailabilityResponse(BaseModel):
    product_id: int
    total_available: float
    batches: list[BatchResponse] = Field(default_factory=list)


class DailyUsageResponse(BaseModel):
    material_id: int
    window_days: int
    daily_usage: float


class ReorderPointResponse(BaseModel):
    material_id: int
    reorder_point: float
    needs_restock: bool


class ProductionRunResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    formula_id: int | None = None
    quantity: float
    unit: str
    production_date: date
    expiry_date: date | None = None
    status: ProductionStatus
    user_id: int | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ProductionResponse(BaseModel):
    """Outcome of a production workflow step."""

    run: ProductionRunResponse
    batch: BatchResponse | None = None
    movements: list[StockMovementResponse] = Field(default_factory=list)
    restock_warnings: list[int] = Field(
        default_factory=list, description="Material ids now at or below their ROP"
    )


class SaleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: float
    unit_price: float
    total_amount: float
    payment_method: PaymentMethod
    status: SaleStatus
    reference: str | None = None
    sale_date: date
    user_id: int | None = None
    created_at: datetime


class SaleResultResponse(BaseModel):
    sale: SaleResponse
    movements: list[StockMovementResponse] = Field(default_factory=list)


class DisposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    batch_id: int
    product_id: int
    quantity: float
    reason: DisposalReason
    action: str | None = None
    reference: str | None = None
    disposal_date: date
    loss_amount: float
    user_id: int | None = None
    created_at: datetime


class BulkDisposalItemResponse(BaseModel):
    batch_id: int
    success: bool
    disposal: DisposalResponse | None = None
    error_code: str | None = None
    message: str | None = None


class BulkDisposalResponse(BaseModel):
    succeeded: int
    failed: int
    total_loss: float
    results: list[BulkDisposalItemResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: str
    schema_version: str | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict | None = Field(default=None, description="Structured error details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
