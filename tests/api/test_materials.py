"""API tests for material endpoints."""

from unittest.mock import AsyncMock

import pytest

from feedmill.api.dependencies import (
    get_adjust_stock_use_case,
    get_inventory,
    get_ledger,
    get_materials,
    get_planner,
)
from feedmill.application.use_cases.adjust_material_stock import (
    AdjustMaterialStockUseCase,
    AdjustStockResult,
)
from feedmill.core.entities import Material
from feedmill.core.entities.movement import MovementDirection, MovementSource, StockMovement
from feedmill.core.entities.planning import RopDetails, StockStatus
from feedmill.core.exceptions import (
    InsufficientStockError,
    MaterialInUseError,
    MaterialNotFoundError,
)
from feedmill.core.services import ReorderPlanner


def _corn(**overrides) -> Material:
    data = dict(id=1, name="Jagung Giling", stock=100, min_stock=20, unit_cost=5000)
    data.update(overrides)
    return Material(**data)


@pytest.fixture
def material_store():
    store = AsyncMock()
    store.get_material.return_value = _corn()
    store.create_material.side_effect = lambda m: m.model_copy(update={"id": 7})
    store.list_materials.return_value = [_corn(), _corn(id=2, name="Dedak Halus")]
    store.update_material.side_effect = lambda m: m
    return store


@pytest.fixture
def adjust_use_case():
    uc = AsyncMock(spec=AdjustMaterialStockUseCase)
    result = AdjustStockResult(
        material=_corn(stock=130), direction=MovementDirection.IN, quantity=30
    )
    uc.execute.return_value = result
    uc.to_response.return_value = AdjustMaterialStockUseCase().to_response(result)
    return uc


class TestMaterialCatalogAPI:
    """Tests for material CRUD endpoints."""

    async def test_create_returns_201(self, make_client, material_store):
        async with make_client({get_materials: material_store}) as client:
            response = await client.post(
                "/api/materials",
                json={"name": "Tepung Ikan", "stock": 40, "unit_cost": 12000},
            )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 7
        assert data["stock"] == 40
        created = material_store.create_material.call_args.args[0]
        assert created.name == "Tepung Ikan"

    async def test_create_rejects_negative_stock(self, make_client, material_store):
        async with make_client({get_materials: material_store}) as client:
            response = await client.post("/api/materials", json={"name": "X", "stock": -1})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        material_store.create_material.assert_not_called()

    async def test_list(self, make_client, material_store):
        async with make_client({get_materials: material_store}) as client:
            response = await client.get("/api/materials", params={"category": "feed"})

        assert response.status_code == 200
        assert [m["name"] for m in response.json()] == ["Jagung Giling", "Dedak Halus"]

    async def test_get_unknown_returns_404(self, make_client, material_store):
        material_store.get_material.return_value = None
        async with make_client({get_materials: material_store}) as client:
            response = await client.get("/api/materials/99")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "MATERIAL_NOT_FOUND"
        assert data["details"] == {"id": 99}
        assert data["hint"]

    async def test_patch_leaves_stock_alone(self, make_client, material_store):
        async with make_client({get_materials: material_store}) as client:
            response = await client.patch(
                "/api/materials/1", json={"min_stock": 35, "stock": 999}
            )

        assert response.status_code == 200
        data = response.json()
        assert data["min_stock"] == 35
        assert data["stock"] == 100

    async def test_delete_returns_204(self, make_client, material_store):
        async with make_client({get_materials: material_store}) as client:
            response = await client.delete("/api/materials/1")

        assert response.status_code == 204
        material_store.delete_material.assert_awaited_once_with(1)

    async def test_delete_in_use_returns_409(self, make_client, material_store):
        material_store.delete_material.side_effect = MaterialInUseError(1, "stock is not zero")
        async with make_client({get_materials: material_store}) as client:
            response = await client.delete("/api/materials/1")

        assert response.status_code == 409
        assert response.json()["error_code"] == "MATERIAL_IN_USE"


class TestMaterialStockAPI:
    """Tests for increase/decrease endpoints."""

    async def test_increase(self, make_client, adjust_use_case):
        async with make_client({get_adjust_stock_use_case: adjust_use_case}) as client:
            response = await client.post(
                "/api/materials/1/increase",
                json={"quantity": 30, "source": "purchase", "user_id": 4},
            )

        assert response.status_code == 200
        assert response.json()["stock"] == 130
        request = adjust_use_case.execute.call_args.args[0]
        assert request.material_id == 1
        assert request.direction == MovementDirection.IN
        assert request.source == MovementSource.PURCHASE
        assert request.user_id == 4

    async def test_decrease_passes_direction(self, make_client, adjust_use_case):
        async with make_client({get_adjust_stock_use_case: adjust_use_case}) as client:
            await client.post("/api/materials/1/decrease", json={"quantity": 5})

        request = adjust_use_case.execute.call_args.args[0]
        assert request.direction == MovementDirection.OUT
        assert request.source == MovementSource.ADJUSTMENT

    async def test_decrease_short_returns_409(self, make_client, adjust_use_case):
        adjust_use_case.execute.side_effect = InsufficientStockError(
            "material", 1, requested=150, available=100, name="Jagung Giling"
        )
        async with make_client({get_adjust_stock_use_case: adjust_use_case}) as client:
            response = await client.post("/api/materials/1/decrease", json={"quantity": 150})

        assert response.status_code == 409
        data = response.json()
        assert data["error_code"] == "INSUFFICIENT_STOCK"
        assert data["details"]["available"] == 100

    async def test_zero_quantity_rejected(self, make_client, adjust_use_case):
        async with make_client({get_adjust_stock_use_case: adjust_use_case}) as client:
            response = await client.post("/api/materials/1/increase", json={"quantity": 0})

        assert response.status_code == 422
        adjust_use_case.execute.assert_not_called()


class TestMaterialPlanningAPI:
    """Tests for usage and reorder point endpoints."""

    @pytest.fixture
    def planner(self):
        planner = AsyncMock(spec=ReorderPlanner)
        planner.rop_details.return_value = RopDetails(
            material_id=1,
            material_name="Jagung Giling",
            unit="kg",
            current_stock=10,
            daily_usage=2.0,
            lead_time_days=7,
            safety_stock=0,
            reorder_point=14,
            days_until_stockout=5,
            needs_restock=True,
            status=StockStatus.CRITICAL,
        )
        return planner

    async def test_daily_usage(self, make_client, material_store):
        inventory = AsyncMock()
        inventory.daily_usage.return_value = 2.5
        overrides = {get_materials: material_store, get_inventory: inventory}
        async with make_client(overrides) as client:
            response = await client.get(
                "/api/materials/1/daily-usage", params={"window_days": 14}
            )

        assert response.status_code == 200
        assert response.json() == {"material_id": 1, "window_days": 14, "daily_usage": 2.5}
        inventory.daily_usage.assert_awaited_once_with(1, window_days=14)

    async def test_rop(self, make_client, planner):
        async with make_client({get_planner: planner}) as client:
            response = await client.get("/api/materials/1/rop")

        assert response.status_code == 200
        data = response.json()
        assert data["reorder_point"] == 14
        assert data["status"] == "critical"

    async def test_needs_restock(self, make_client, planner):
        async with make_client({get_planner: planner}) as client:
            response = await client.get("/api/materials/1/needs-restock")

        assert response.json() == {"material_id": 1, "reorder_point": 14, "needs_restock": True}

    async def test_rop_unknown_material(self, make_client, planner):
        planner.rop_details.side_effect = MaterialNotFoundError(42)
        async with make_client({get_planner: planner}) as client:
            response = await client.get("/api/materials/42/rop")

        assert response.status_code == 404

    async def test_movements(self, make_client, material_store):
        ledger = AsyncMock()
        ledger.list_by_material.return_value = [
            StockMovement(
                id=3,
                direction=MovementDirection.OUT,
                source=MovementSource.PRODUCTION,
                quantity=60,
                material_id=1,
                reference_id=9,
            )
        ]
        overrides = {get_materials: material_store, get_ledger: ledger}
        async with make_client(overrides) as client:
            response = await client.get(
                "/api/materials/1/movements", params={"direction": "out"}
            )

        assert response.status_code == 200
        assert response.json()[0]["source"] == "production"
        ledger.list_by_material.assert_awaited_once_with(
            1, direction=MovementDirection.OUT, limit=100
        )
