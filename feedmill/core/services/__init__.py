"""Core services - layer-pure business logic over core interfaces."""

from feedmill.core.services.reorder_planner import (
    DEFAULT_Z_SCORE,
    Z_SCORES,
    ReorderPlanner,
    days_until_stockout,
    priority_bucket,
    priority_score,
    reorder_point,
    safety_stock_action,
    sample_std_dev,
    stock_status,
    suggested_order_quantity,
    z_score,
)

__all__ = [
    "DEFAULT_Z_SCORE",
    "Z_SCORES",
    "ReorderPlanner",
    "days_until_stockout",
    "priority_bucket",
    "priority_score",
    "reorder_point",
    "safety_stock_action",
    "sample_std_dev",
    "stock_status",
    "suggested_order_quantity",
    "z_score",
]
