"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

The acting user is always passed explicitly as ``user_id``.
"""

from datetime import date

from pydantic import BaseModel, Field

from feedmill.core.entities.material import MaterialCategory
from feedmill.core.entities.movement import MovementDirection, MovementSource
from feedmill.core.entities.product import ProductCategory
from feedmill.core.entities.sale import PaymentMethod


# =============================================================================
# Catalog
# =============================================================================


class CreateMaterialRequest(BaseModel):
    """Request to register a raw material."""

    name: str = Field(..., min_length=1, max_length=200)
    category: MaterialCategory = MaterialCategory.FEED
    unit: str = Field(default="kg", max_length=20)
    stock: float = Field(default=0.0, ge=0, description="Opening balance")
    min_stock: float = Field(default=0.0, ge=0)
    lead_time_days: int = Field(default=7, ge=0)
    safety_stock: float = Field(default=0.0, ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    supplier: str | None = None
    expiry_date: date | None = None


class UpdateMaterialRequest(BaseModel):
    """Partial update of material master data. The balance is not editable here."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    category: MaterialCategory | None = None
    unit: str | None = Field(default=None, max_length=20)
    min_stock: float | None = Field(default=None, ge=0)
    lead_time_days: int | None = Field(default=None, ge=0)
    safety_stock: float | None = Field(default=None, ge=0)
    unit_cost: float | None = Field(default=None, ge=0)
    supplier: str | None = None
    expiry_date: date | None = None


class CreateProductRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    category: ProductCategory = ProductCategory.FEED
    unit: str = Field(default="kg", max_length=20)
    selling_price: float = Field(default=0.0, ge=0)
    description: str | None = None


# =============================================================================
# Stock
# =============================================================================


class StockChangeRequest(BaseModel):
    """Request to increase or decrease a material balance."""

    quantity: float = Field(..., gt=0)
    source: MovementSource = MovementSource.ADJUSTMENT
    reference_id: int | None = None
    notes: str | None = Field(default=None, max_length=500)
    user_id: int | None = Field(default=None, description="Acting user")


class AdjustMaterialStockRequest(StockChangeRequest):
    """Manual adjustment (purchase receipt, stock take) of a material."""

    material_id: int
    direction: MovementDirection


class CreateBatchRequest(BaseModel):
    production_run_id: int | None = None
    quantity: float = Field(..., gt=0)
    expiry_date: date | None = None
    source: MovementSource = MovementSource.PRODUCTION
    user_id: int | None = None


class ConsumeStockRequest(BaseModel):
    """Request to consume product stock oldest batch first."""

    quantity: float = Field(..., gt=0)
    source: MovementSource = MovementSource.INTERNAL_USE
    reference_id: int | None = None
    notes: str | None = Field(default=None, max_length=500)
    user_id: int | None = None


# =============================================================================
# Workflows
# =============================================================================


class ExecuteProductionRequest(BaseModel):
    """Request to produce ``quantity`` units with a formula."""

    formula_id: int
    quantity: float = Field(..., gt=0)
    production_date: date | None = Field(
        default=None, description="Defaults to today"
    )
    expiry_date: date | None = Field(
        default=None, description="Defaults to production date plus category shelf life"
    )
    notes: str | None = Field(default=None, max_length=500)
    user_id: int | None = None


class ProductionActionRequest(BaseModel):
    """Complete or cancel a pending production run."""

    user_id: int | None = None
    notes: str | None = Field(default=None, max_length=500)


class CheckProductionRequest(BaseModel):
    formula_id: int
    quantity: float = Field(..., gt=0)


class ExecuteSaleRequest(BaseModel):
    """Request to sell a product from its oldest batches."""

    product_id: int
    quantity: float = Field(..., gt=0)
    unit_price: float | None = Field(
        default=None, ge=0, description="Defaults to the product selling price"
    )
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference: str | None = Field(default=None, max_length=100)
    sale_date: date | None = None
    user_id: int | None = None


class ExecuteDisposalRequest(BaseModel):
    """Request to write off part of a batch."""

    batch_id: int
    quantity: float = Field(..., gt=0)
    reason: str = Field(..., description="expired, damaged, lost or other")
    action: str | None = Field(default=None, max_length=500, description="Corrective action taken")
    reference: str | None = Field(default=None, max_length=100)
    disposal_date: date | None = None
    user_id: int | None = None


class BulkDisposalRequest(BaseModel):
    items: list[ExecuteDisposalRequest] = Field(..., min_length=1)
