"""
Product and product batch entities.

Finished products are tracked per batch: every production run yields one
batch that is depleted first-in first-out.
"""

import calendar
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now


class ProductCategory(str, Enum):
    """Closed set of product categories."""

    FEED = "feed"
    MEDICINE = "medicine"
    SUPPLEMENT = "supplement"
    OTHER = "other"


# Shelf life in months, one entry per category.
SHELF_LIFE_MONTHS: dict[ProductCategory, int] = {
    ProductCategory.FEED: 6,
    ProductCategory.MEDICINE: 24,
    ProductCategory.SUPPLEMENT: 18,
    ProductCategory.OTHER: 12,
}


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shelf_life_months(category: ProductCategory) -> int:
    return SHELF_LIFE_MONTHS[ProductCategory(category)]


def expiry_date_for(category: ProductCategory, produced_on: date) -> date:
    """Expiry date of goods of ``category`` produced on ``produced_on``."""
    return add_months(produced_on, shelf_life_months(category))


class Product(BaseModel):
    """A finished product sold in batches."""

    id: int | None = None
    code: str
    name: str
    category: ProductCategory = ProductCategory.FEED
    unit: str = "kg"
    selling_price: float = Field(default=0.0, ge=0)
    description: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ProductBatch(BaseModel):
    """
    One production run's yield of a product.

    ``quantity`` is the remaining amount; it only ever decreases after the
    batch is created and never exceeds ``initial_quantity``.
    """

    id: int | None = None
    product_id: int
    production_run_id: int | None = None
    initial_quantity: float = Field(gt=0)
    quantity: float = Field(ge=0)
    expiry_date: date | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def consumed(self) -> float:
        return round(self.initial_quantity - self.quantity, 2)

    @property
    def is_depleted(self) -> bool:
        return self.quantity <= 0
