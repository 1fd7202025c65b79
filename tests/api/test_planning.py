"""API tests for replenishment planning endpoints."""

from unittest.mock import AsyncMock

import pytest

from feedmill.api.dependencies import get_reorder_alerts_use_case, get_safety_stock_use_case
from feedmill.application.use_cases.get_reorder_alerts import (
    GetReorderAlertsUseCase,
    GetSafetyStockRecommendationUseCase,
)
from feedmill.core.entities.planning import (
    AlertPriority,
    ReorderAlert,
    ReorderAlertSummary,
    SafetyStockAction,
    SafetyStockRecommendation,
    SafetyStockResult,
    SafetyStockStatus,
    SupplierReorderGroup,
)
from feedmill.core.exceptions import MaterialNotFoundError


def _alert(material_id: int, score: int, priority: AlertPriority) -> ReorderAlert:
    return ReorderAlert(
        material_id=material_id,
        material_name=f"Material {material_id}",
        unit="kg",
        supplier="CV Tani Makmur",
        current_stock=5,
        safety_stock=10,
        reorder_point=24,
        daily_usage=2,
        days_until_stockout=2.5,
        priority_score=score,
        priority=priority,
        suggested_order_qty=43,
        estimated_cost=215000,
    )


@pytest.fixture
def alerts_use_case():
    uc = AsyncMock(spec=GetReorderAlertsUseCase)
    alerts = [_alert(2, 90, AlertPriority.CRITICAL), _alert(1, 45, AlertPriority.MEDIUM)]
    uc.execute.return_value = alerts
    uc.summary.return_value = ReorderAlertSummary(
        total_alerts=2,
        by_priority={AlertPriority.CRITICAL: 1, AlertPriority.MEDIUM: 1},
        critical_count=1,
        urgent_count=1,
        estimated_order_value=430000,
        top_alerts=alerts,
    )
    uc.by_supplier.return_value = [
        SupplierReorderGroup(supplier="CV Tani Makmur", alerts=alerts, estimated_cost=430000)
    ]
    return uc


@pytest.fixture
def safety_stock_use_case():
    uc = AsyncMock(spec=GetSafetyStockRecommendationUseCase)
    uc.execute.return_value = SafetyStockRecommendation(
        material_id=1,
        material_name="Jagung Giling",
        current_safety_stock=10,
        recommended_safety_stock=16.45,
        status=SafetyStockStatus.READY,
        variance=6.45,
        variance_percent=64.5,
        action=SafetyStockAction.INCREASE_CRITICAL,
        delay_buffer=4,
        total_recommended=20.45,
        detail=SafetyStockResult(
            material_id=1,
            status=SafetyStockStatus.READY,
            value=16.45,
            service_level=0.95,
            z_score=1.645,
            std_dev=3.78,
            sample_count=12,
            outbound_transactions=20,
        ),
    )
    return uc


class TestReorderAlertsAPI:
    """Tests for /api/planning/reorder-alerts."""

    async def test_alerts_keep_priority_order(self, make_client, alerts_use_case):
        async with make_client({get_reorder_alerts_use_case: alerts_use_case}) as client:
            response = await client.get("/api/planning/reorder-alerts")

        assert response.status_code == 200
        assert [a["priority_score"] for a in response.json()] == [90, 45]

    async def test_summary(self, make_client, alerts_use_case):
        async with make_client({get_reorder_alerts_use_case: alerts_use_case}) as client:
            response = await client.get("/api/planning/reorder-alerts/summary")

        data = response.json()
        assert data["total_alerts"] == 2
        assert data["by_priority"] == {"critical": 1, "medium": 1}
        assert data["urgent_count"] == 1

    async def test_by_supplier(self, make_client, alerts_use_case):
        async with make_client({get_reorder_alerts_use_case: alerts_use_case}) as client:
            response = await client.get("/api/planning/reorder-alerts/by-supplier")

        groups = response.json()
        assert groups[0]["supplier"] == "CV Tani Makmur"
        assert len(groups[0]["alerts"]) == 2


class TestSafetyStockAPI:
    """Tests for safety stock recommendation endpoints."""

    async def test_recommendation(self, make_client, safety_stock_use_case):
        async with make_client({get_safety_stock_use_case: safety_stock_use_case}) as client:
            response = await client.get(
                "/api/planning/safety-stock/1",
                params={"service_level": 0.95, "avg_delay_days": 2},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["action"] == "increase_critical"
        assert data["detail"]["sample_count"] == 12
        safety_stock_use_case.execute.assert_awaited_once_with(
            1, service_level=0.95, avg_delay_days=2.0
        )

    async def test_material_route_shares_use_case(self, make_client, safety_stock_use_case):
        async with make_client({get_safety_stock_use_case: safety_stock_use_case}) as client:
            response = await client.get("/api/materials/1/safety-stock/recommendation")

        assert response.status_code == 200
        safety_stock_use_case.execute.assert_awaited_once_with(
            1, service_level=None, avg_delay_days=None
        )

    async def test_service_level_out_of_range(self, make_client, safety_stock_use_case):
        async with make_client({get_safety_stock_use_case: safety_stock_use_case}) as client:
            response = await client.get(
                "/api/planning/safety-stock/1", params={"service_level": 1.5}
            )

        assert response.status_code == 422
        safety_stock_use_case.execute.assert_not_called()

    async def test_unknown_material(self, make_client, safety_stock_use_case):
        safety_stock_use_case.execute.side_effect = MaterialNotFoundError(9)
        async with make_client({get_safety_stock_use_case: safety_stock_use_case}) as client:
            response = await client.get("/api/planning/safety-stock/9")

        assert response.status_code == 404
