"""
Reorder planning service.

Computes daily usage, reorder points, adaptive safety stock and prioritised
reorder alerts from the movement ledger. Stateless: every figure is derived
from the ledger and material master data at call time, read without locks.

Formulas:
    daily usage   = outbound quantity over the trailing window / window days
    ROP           = lead time days x daily usage + safety stock
    safety stock  = z(service level) x sample std dev(daily usage) x sqrt(lead time)

The statistical safety stock assumes roughly normal daily usage and a fixed
lead time.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable
from datetime import date, datetime, timedelta

import numpy as np

from feedmill.config import get_logger
from feedmill.config.settings import PlanningSettings, get_settings
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.material import Material
from feedmill.core.entities.planning import (
    AlertPriority,
    DailyUsage,
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
from feedmill.core.exceptions import MaterialNotFoundError
from feedmill.core.interfaces.catalog import IMaterialStore
from feedmill.core.interfaces.ledger import IMovementLedger

logger = get_logger(__name__)

Z_SCORES: dict[float, float] = {
    0.90: 1.28,
    0.95: 1.65,
    0.97: 1.88,
    0.99: 2.33,
    0.995: 2.58,
}
DEFAULT_Z_SCORE = 1.65

URGENT_DAYS = 3
TOP_ALERTS = 5
UNKNOWN_SUPPLIER = "Unknown"


# ---------------------------------------------------------------------------
# Pure calculations
# ---------------------------------------------------------------------------


def z_score(service_level: float) -> float:
    """Z value for a service level; unlisted levels get 1.65."""
    return Z_SCORES.get(round(service_level, 3), DEFAULT_Z_SCORE)


def sample_std_dev(samples: list[float]) -> float:
    """Sample standard deviation (n - 1 denominator); 0 for fewer than two samples."""
    if len(samples) < 2:
        return 0.0
    return float(np.std(np.asarray(samples, dtype=float), ddof=1))


def reorder_point(lead_time_days: int, daily_usage: float, safety_stock: float) -> float:
    return quantize(lead_time_days * daily_usage + safety_stock)


def days_until_stockout(stock: float, daily_usage: float) -> float | None:
    """Whole days of cover left, or None when there is no usage to project from."""
    if daily_usage <= 0:
        return None
    return float(round(stock / daily_usage))


def stock_status(
    stock: float,
    safety_stock: float,
    rop: float,
    days_left: float | None,
    warning_days: int = 7,
) -> StockStatus:
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= safety_stock:
        return StockStatus.CRITICAL
    if stock <= rop:
        return StockStatus.NEED_REORDER
    if days_left is not None and days_left <= warning_days:
        return StockStatus.WARNING
    return StockStatus.SAFE


def priority_score(
    stock: float,
    safety_stock: float,
    rop: float,
    days_left: float | None,
    daily_usage: float,
) -> int:
    """
    Alert priority on a 0-100 scale.

    Stock level contributes up to 40 points, days of cover up to 40 and the
    usage rate up to 20.
    """
    score = 0

    if stock <= 0:
        score += 40
    elif stock <= safety_stock:
        score += 35
    elif stock <= rop * 0.5:
        score += 30
    elif stock <= rop:
        score += 20

    if days_left is not None:
        if days_left <= 1:
            score += 40
        elif days_left <= 3:
            score += 35
        elif days_left <= 7:
            score += 25
        elif days_left <= 14:
            score += 15

    if daily_usage > 10:
        score += 20
    elif daily_usage > 5:
        score += 15
    elif daily_usage > 0:
        score += 10

    return min(100, score)


def priority_bucket(score: int) -> AlertPriority:
    if score >= 90:
        return AlertPriority.CRITICAL
    if score >= 70:
        return AlertPriority.HIGH
    if score >= 50:
        return AlertPriority.MEDIUM
    return AlertPriority.LOW


def suggested_order_quantity(
    stock: float, daily_usage: float, lead_time_days: int, safety_stock: float
) -> float:
    """Order enough to cover two lead times plus safety stock."""
    target = daily_usage * lead_time_days * 2 + safety_stock
    return quantize(max(0.0, target - stock))


def safety_stock_action(variance: float, variance_percent: float) -> SafetyStockAction:
    if abs(variance_percent) < 10:
        return SafetyStockAction.OK
    if variance > 0 and variance_percent > 20:
        return SafetyStockAction.INCREASE_CRITICAL
    if variance > 0:
        return SafetyStockAction.INCREASE_RECOMMENDED
    if variance < 0 and variance_percent < -20:
        return SafetyStockAction.DECREASE_RECOMMENDED
    return SafetyStockAction.REVIEW


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ReorderPlanner:
    """
    Layer-pure planning service.

    Depends only on core interfaces. ``clock`` returns the current UTC time
    and anchors every trailing window.
    """

    def __init__(
        self,
        material_store: IMaterialStore,
        ledger: IMovementLedger,
        settings: PlanningSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._materials = material_store
        self._ledger = ledger
        self._settings = settings or get_settings().planning
        self._clock = clock

    async def _material(self, material_id: int) -> Material:
        material = await self._materials.get_material(material_id)
        if material is None:
            raise MaterialNotFoundError(material_id)
        return material

    async def daily_usage(self, material_id: int, window_days: int | None = None) -> float:
        """Average outbound quantity per day over the trailing window."""
        window = window_days or self._settings.usage_window_days
        since = self._clock() - timedelta(days=window)
        total = await self._ledger.outbound_total(material_id, since)
        return total / window

    async def reorder_point(self, material_id: int) -> float:
        material = await self._material(material_id)
        usage = await self.daily_usage(material_id)
        return reorder_point(material.lead_time_days, usage, material.safety_stock)

    async def needs_restock(self, material_id: int) -> bool:
        material = await self._material(material_id)
        return material.stock <= await self.reorder_point(material_id)

    async def days_until_stockout(self, material_id: int) -> float | None:
        material = await self._material(material_id)
        return days_until_stockout(material.stock, await self.daily_usage(material_id))

    async def rop_details(self, material_id: int) -> RopDetails:
        material = await self._material(material_id)
        return await self._details_for(material)

    async def _details_for(self, material: Material) -> RopDetails:
        usage = await self.daily_usage(material.id)
        rop = reorder_point(material.lead_time_days, usage, material.safety_stock)
        days_left = days_until_stockout(material.stock, usage)
        return RopDetails(
            material_id=material.id,
            material_name=material.name,
            unit=material.unit,
            current_stock=material.stock,
            daily_usage=quantize(usage),
            lead_time_days=material.lead_time_days,
            safety_stock=material.safety_stock,
            reorder_point=rop,
            days_until_stockout=days_left,
            needs_restock=material.stock <= rop,
            status=stock_status(
                material.stock,
                material.safety_stock,
                rop,
                days_left,
                self._settings.warning_days,
            ),
        )

    async def usage_history(self, material_id: int, days: int = 30) -> list[DailyUsage]:
        """Outbound quantity for each of the last ``days`` days, oldest first."""
        today = self._clock().date()
        daily = await self._daily_samples(material_id, days)
        return [
            DailyUsage(day=day, quantity=quantize(daily.get(day, 0.0)))
            for day in (today - timedelta(days=offset) for offset in range(days - 1, -1, -1))
        ]

    async def _daily_samples(self, material_id: int, days: int) -> dict[date, float]:
        now = self._clock()
        start_of_window = datetime.combine(
            (now - timedelta(days=days - 1)).date(), datetime.min.time(), tzinfo=now.tzinfo
        )
        return await self._ledger.daily_outbound(material_id, start_of_window)

    async def has_enough_data(self, material_id: int) -> bool:
        since = self._clock() - timedelta(days=self._settings.usage_window_days)
        count = await self._ledger.outbound_count(material_id, since)
        return count >= self._settings.min_outbound_transactions

    async def adaptive_safety_stock(
        self, material_id: int, service_level: float | None = None
    ) -> SafetyStockResult:
        """
        Statistical safety stock, or the minimum-stock fallback.

        Qualifies only with enough outbound transactions in the usage window
        and enough non-zero usage days in the sample window. Otherwise the
        result carries ``insufficient_data`` and half the minimum stock.
        """
        level = service_level or self._settings.service_level
        material = await self._material(material_id)

        since = self._clock() - timedelta(days=self._settings.usage_window_days)
        outbound = await self._ledger.outbound_count(material_id, since)
        daily = await self._daily_samples(material_id, self._settings.sample_window_days)
        samples = [qty for qty in daily.values() if qty > 0]

        if (
            outbound < self._settings.min_outbound_transactions
            or len(samples) < self._settings.min_usage_samples
        ):
            fallback = quantize(material.min_stock * self._settings.fallback_min_stock_ratio)
            logger.info(
                "safety_stock_insufficient_data",
                material_id=material_id,
                outbound_transactions=outbound,
                samples=len(samples),
                fallback=fallback,
            )
            return SafetyStockResult(
                material_id=material_id,
                status=SafetyStockStatus.INSUFFICIENT_DATA,
                value=fallback,
                service_level=level,
                sample_count=len(samples),
                outbound_transactions=outbound,
            )

        z = z_score(level)
        std_dev = sample_std_dev(samples)
        value = quantize(z * std_dev * math.sqrt(material.lead_time_days))
        return SafetyStockResult(
            material_id=material_id,
            status=SafetyStockStatus.READY,
            value=value,
            service_level=level,
            z_score=z,
            std_dev=round(std_dev, 4),
            sample_count=len(samples),
            outbound_transactions=outbound,
        )

    async def delay_buffer(self, material_id: int, avg_delay_days: float | None = None) -> float:
        """Extra cover for late supplier deliveries."""
        delay = self._settings.supplier_delay_days if avg_delay_days is None else avg_delay_days
        return quantize(await self.daily_usage(material_id) * delay)

    async def safety_stock_recommendation(
        self,
        material_id: int,
        service_level: float | None = None,
        avg_delay_days: float | None = None,
    ) -> SafetyStockRecommendation:
        material = await self._material(material_id)
        result = await self.adaptive_safety_stock(material_id, service_level)

        current = material.safety_stock
        variance = result.value - current
        if current > 0:
            variance_percent = variance / current * 100
        else:
            variance_percent = 100.0 if variance > 0 else 0.0

        if result.status == SafetyStockStatus.READY:
            action = safety_stock_action(variance, variance_percent)
            base = result.value
        else:
            action = SafetyStockAction.REVIEW
            base = current

        buffer = await self.delay_buffer(material_id, avg_delay_days)
        return SafetyStockRecommendation(
            material_id=material_id,
            material_name=material.name,
            current_safety_stock=current,
            recommended_safety_stock=result.value,
            status=result.status,
            variance=quantize(variance),
            variance_percent=round(variance_percent, 2),
            action=action,
            delay_buffer=buffer,
            total_recommended=quantize(base + buffer),
            detail=result,
        )

    async def reorder_alerts(self) -> list[ReorderAlert]:
        """Every material at or below its ROP, highest priority first."""
        alerts: list[ReorderAlert] = []
        for material in await self._materials.list_materials():
            details = await self._details_for(material)
            if not details.needs_restock:
                continue
            score = priority_score(
                material.stock,
                material.safety_stock,
                details.reorder_point,
                details.days_until_stockout,
                details.daily_usage,
            )
            order_qty = suggested_order_quantity(
                material.stock,
                details.daily_usage,
                material.lead_time_days,
                material.safety_stock,
            )
            alerts.append(
                ReorderAlert(
                    material_id=details.material_id,
                    material_name=material.name,
                    unit=material.unit,
                    supplier=material.supplier,
                    current_stock=material.stock,
                    safety_stock=material.safety_stock,
                    reorder_point=details.reorder_point,
                    daily_usage=details.daily_usage,
                    days_until_stockout=details.days_until_stockout,
                    priority_score=score,
                    priority=priority_bucket(score),
                    suggested_order_qty=order_qty,
                    estimated_cost=quantize(order_qty * material.unit_cost),
                )
            )

        alerts.sort(key=lambda a: a.priority_score, reverse=True)
        logger.info("reorder_alerts_evaluated", total=len(alerts))
        return alerts

    async def alerts_by_priority(self) -> dict[AlertPriority, list[ReorderAlert]]:
        grouped: dict[AlertPriority, list[ReorderAlert]] = {p: [] for p in AlertPriority}
        for alert in await self.reorder_alerts():
            grouped[alert.priority].append(alert)
        return grouped

    async def alerts_by_supplier(self) -> list[SupplierReorderGroup]:
        groups: dict[str, SupplierReorderGroup] = {}
        for alert in await self.reorder_alerts():
            supplier = alert.supplier or UNKNOWN_SUPPLIER
            group = groups.setdefault(supplier, SupplierReorderGroup(supplier=supplier))
            group.alerts.append(alert)
            group.estimated_cost = quantize(group.estimated_cost + alert.estimated_cost)
        return list(groups.values())

    async def alert_summary(self) -> ReorderAlertSummary:
        alerts = await self.reorder_alerts()
        counts = Counter(alert.priority for alert in alerts)
        return ReorderAlertSummary(
            total_alerts=len(alerts),
            by_priority={p: counts.get(p, 0) for p in AlertPriority},
            critical_count=sum(1 for a in alerts if a.current_stock <= a.safety_stock),
            urgent_count=sum(
                1
                for a in alerts
                if a.days_until_stockout is not None and a.days_until_stockout <= URGENT_DAYS
            ),
            estimated_order_value=quantize(sum(a.estimated_cost for a in alerts)),
            top_alerts=alerts[:TOP_ALERTS],
        )
