"""Sale transaction entity."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CREDIT = "credit"


class SaleStatus(str, Enum):
    COMPLETED = "completed"


class Sale(BaseModel):
    """A sale of a product, fulfilled from its batches oldest first."""

    id: int | None = None
    product_id: int
    quantity: float = Field(gt=0)
    unit_price: float = Field(ge=0)
    total_amount: float = Field(ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    status: SaleStatus = SaleStatus.COMPLETED
    reference: str | None = None
    sale_date: date
    user_id: int | None = None
    created_at: datetime = Field(default_factory=utc_now)
