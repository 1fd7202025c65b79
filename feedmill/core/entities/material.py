"""
Material domain entity.

A material is a raw input (corn meal, bran, fish meal, minerals, drugs) held
as a single running balance.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now


class MaterialCategory(str, Enum):
    """Closed set of material categories."""

    FEED = "feed"
    MEDICINE = "medicine"
    VITAMIN = "vitamin"
    MINERAL = "mineral"
    SUPPLEMENT = "supplement"
    OTHER = "other"


class Material(BaseModel):
    """Raw material with its running balance and replenishment parameters."""

    id: int | None = None
    category: MaterialCategory = MaterialCategory.FEED
    name: str
    unit: str = "kg"
    stock: float = Field(default=0.0, ge=0)
    min_stock: float = Field(default=0.0, ge=0)
    lead_time_days: int = Field(default=7, ge=0)
    safety_stock: float = Field(default=0.0, ge=0)
    unit_cost: float = Field(default=0.0, ge=0)
    supplier: str | None = None
    expiry_date: date | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def stock_value(self) -> float:
        return self.stock * self.unit_cost
