"""Reorder alert use cases: prioritised alerts and safety stock review."""

from feedmill.config import get_logger
from feedmill.core.entities.planning import (
    ReorderAlert,
    ReorderAlertSummary,
    SafetyStockRecommendation,
    SupplierReorderGroup,
)
from feedmill.core.services.reorder_planner import ReorderPlanner

logger = get_logger(__name__)


class GetReorderAlertsUseCase:
    """Read-only view of every material that needs replenishing."""

    def __init__(self, planner: ReorderPlanner | None = None):
        self._planner = planner

    async def _get_planner(self) -> ReorderPlanner:
        if self._planner is None:
            from feedmill.application.services import get_reorder_planner

            self._planner = await get_reorder_planner()
        return self._planner

    async def execute(self) -> list[ReorderAlert]:
        """Alerts sorted by priority score, highest first."""
        return await (await self._get_planner()).reorder_alerts()

    async def summary(self) -> ReorderAlertSummary:
        summary = await (await self._get_planner()).alert_summary()
        logger.info(
            "reorder_alert_summary",
            total=summary.total_alerts,
            critical=summary.critical_count,
            urgent=summary.urgent_count,
        )
        return summary

    async def by_supplier(self) -> list[SupplierReorderGroup]:
        return await (await self._get_planner()).alerts_by_supplier()


class GetSafetyStockRecommendationUseCase:
    """Compare a material's configured safety stock against the adaptive estimate."""

    def __init__(self, planner: ReorderPlanner | None = None):
        self._planner = planner

    async def _get_planner(self) -> ReorderPlanner:
        if self._planner is None:
            from feedmill.application.services import get_reorder_planner

            self._planner = await get_reorder_planner()
        return self._planner

    async def execute(
        self,
        material_id: int,
        service_level: float | None = None,
        avg_delay_days: float | None = None,
    ) -> SafetyStockRecommendation:
        planner = await self._get_planner()
        recommendation = await planner.safety_stock_recommendation(
            material_id, service_level=service_level, avg_delay_days=avg_delay_days
        )
        logger.info(
            "safety_stock_recommendation",
            material_id=material_id,
            status=recommendation.status.value,
            action=recommendation.action.value,
            recommended=recommendation.recommended_safety_stock,
        )
        return recommendation
