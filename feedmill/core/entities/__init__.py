"""Core domain entities."""

from feedmill.core.entities.activity import ActivityLogEntry
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.disposal import DisposalReason, DisposalRecord
from feedmill.core.entities.formula import (
    FORMULA_BASIS,
    FORMULA_BASIS_TOLERANCE,
    Formula,
    FormulaLine,
)
from feedmill.core.entities.material import Material, MaterialCategory
from feedmill.core.entities.movement import (
    MovementDirection,
    MovementSource,
    StockMovement,
)
from feedmill.core.entities.planning import (
    AlertPriority,
    DailyUsage,
    ExpiringBatch,
    MaterialRequirement,
    MaxProducible,
    ProductionCheck,
    ReorderAlert,
    ReorderAlertSummary,
    RopDetails,
    SafetyStockAction,
    SafetyStockRecommendation,
    SafetyStockResult,
    SafetyStockStatus,
    StockStatus,
    SupplierReorderGroup,
)
from feedmill.core.entities.product import (
    SHELF_LIFE_MONTHS,
    Product,
    ProductBatch,
    ProductCategory,
    add_months,
    expiry_date_for,
    shelf_life_months,
)
from feedmill.core.entities.production import (
    ALLOWED_TRANSITIONS,
    ProductionRun,
    ProductionStatus,
)
from feedmill.core.entities.sale import PaymentMethod, Sale, SaleStatus

__all__ = [
    # Activity
    "ActivityLogEntry",
    # Common
    "quantize",
    "utc_now",
    # Disposal
    "DisposalReason",
    "DisposalRecord",
    # Formula
    "FORMULA_BASIS",
    "FORMULA_BASIS_TOLERANCE",
    "Formula",
    "FormulaLine",
    # Material
    "Material",
    "MaterialCategory",
    # Movement
    "MovementDirection",
    "MovementSource",
    "StockMovement",
    # Planning
    "AlertPriority",
    "DailyUsage",
    "ExpiringBatch",
    "MaterialRequirement",
    "MaxProducible",
    "ProductionCheck",
    "ReorderAlert",
    "ReorderAlertSummary",
    "RopDetails",
    "SafetyStockAction",
    "SafetyStockRecommendation",
    "SafetyStockResult",
    "SafetyStockStatus",
    "StockStatus",
    "SupplierReorderGroup",
    # Product
    "SHELF_LIFE_MONTHS",
    "Product",
    "ProductBatch",
    "ProductCategory",
    "add_months",
    "expiry_date_for",
    "shelf_life_months",
    # Production
    "ALLOWED_TRANSITIONS",
    "ProductionRun",
    "ProductionStatus",
    # Sale
    "PaymentMethod",
    "Sale",
    "SaleStatus",
]
