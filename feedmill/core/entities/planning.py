"""
Planning read models.

Results of reorder point, safety stock and production feasibility
calculations. None of these are persisted.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class StockStatus(str, Enum):
    """Replenishment status of a material."""

    OUT_OF_STOCK = "out_of_stock"
    CRITICAL = "critical"
    NEED_REORDER = "need_reorder"
    WARNING = "warning"
    SAFE = "safe"


class SafetyStockStatus(str, Enum):
    READY = "ready"
    INSUFFICIENT_DATA = "insufficient_data"


class SafetyStockAction(str, Enum):
    OK = "ok"
    INCREASE_CRITICAL = "increase_critical"
    INCREASE_RECOMMENDED = "increase_recommended"
    DECREASE_RECOMMENDED = "decrease_recommended"
    REVIEW = "review"


class AlertPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DailyUsage(BaseModel):
    day: date
    quantity: float


class RopDetails(BaseModel):
    """Reorder point breakdown for one material."""

    material_id: int
    material_name: str
    unit: str
    current_stock: float
    daily_usage: float
    lead_time_days: int
    safety_stock: float
    reorder_point: float
    days_until_stockout: float | None
    needs_restock: bool
    status: StockStatus


class SafetyStockResult(BaseModel):
    """
    Adaptive safety stock for one material.

    When ``status`` is ``insufficient_data`` the value is the fallback
    (a fraction of the minimum stock), not the statistical estimate.
    """

    material_id: int
    status: SafetyStockStatus
    value: float
    service_level: float
    z_score: float | None = None
    std_dev: float | None = None
    sample_count: int = 0
    outbound_transactions: int = 0


class SafetyStockRecommendation(BaseModel):
    material_id: int
    material_name: str
    current_safety_stock: float
    recommended_safety_stock: float
    status: SafetyStockStatus
    variance: float
    variance_percent: float
    action: SafetyStockAction
    delay_buffer: float
    total_recommended: float
    detail: SafetyStockResult


class ReorderAlert(BaseModel):
    """A material at or below its reorder point."""

    material_id: int
    material_name: str
    unit: str
    supplier: str | None = None
    current_stock: float
    safety_stock: float
    reorder_point: float
    daily_usage: float
    days_until_stockout: float | None
    priority_score: int
    priority: AlertPriority
    suggested_order_qty: float
    estimated_cost: float


class ReorderAlertSummary(BaseModel):
    total_alerts: int
    by_priority: dict[AlertPriority, int] = Field(default_factory=dict)
    critical_count: int = 0
    urgent_count: int = 0
    estimated_order_value: float = 0.0
    top_alerts: list[ReorderAlert] = Field(default_factory=list)


class SupplierReorderGroup(BaseModel):
    supplier: str
    alerts: list[ReorderAlert] = Field(default_factory=list)
    estimated_cost: float = 0.0


class MaterialRequirement(BaseModel):
    """How much of one material a production request needs."""

    material_id: int
    material_name: str
    unit: str = "kg"
    per_unit: float
    needed: float
    available: float
    unit_cost: float
    cost: float
    is_sufficient: bool
    shortage: float


class ProductionCheck(BaseModel):
    formula_id: int
    product_id: int
    quantity: float
    requirements: list[MaterialRequirement] = Field(default_factory=list)
    total_cost: float = 0.0
    cost_per_unit: float = 0.0
    can_produce: bool = True

    @property
    def shortages(self) -> list[MaterialRequirement]:
        return [r for r in self.requirements if not r.is_sufficient]


class MaxProducible(BaseModel):
    formula_id: int
    max_quantity: float
    limiting_material_id: int | None = None
    limiting_material_name: str | None = None


class ExpiringBatch(BaseModel):
    batch_id: int
    product_id: int
    product_name: str
    quantity: float
    expiry_date: date
    days_until_expiry: int
    status: str  # "expired" or "near_expiry"
