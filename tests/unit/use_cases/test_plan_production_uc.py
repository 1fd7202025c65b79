"""Tests for PlanProductionUseCase."""

from unittest.mock import AsyncMock

import pytest

from feedmill.application.dto.requests import CheckProductionRequest
from feedmill.application.use_cases.plan_production import PlanProductionUseCase
from feedmill.core.entities import Formula, FormulaLine, Material
from feedmill.core.exceptions import FormulaNotFoundError


@pytest.fixture
def formula() -> Formula:
    return Formula(
        id=1,
        product_id=1,
        name="Starter",
        lines=[
            FormulaLine(material_id=1, quantity=0.6, material_name="Jagung Giling"),
            FormulaLine(material_id=2, quantity=0.4, material_name="Dedak Halus"),
        ],
    )


@pytest.fixture
def materials() -> dict[int, Material]:
    return {
        1: Material(id=1, name="Jagung Giling", stock=1000, unit_cost=5000),
        2: Material(id=2, name="Dedak Halus", stock=500, unit_cost=2500),
    }


@pytest.fixture
def use_case(formula, materials):
    formula_store = AsyncMock()
    formula_store.get_formula.return_value = formula
    material_store = AsyncMock()
    material_store.get_material.side_effect = lambda material_id, conn=None: materials.get(
        material_id
    )
    return PlanProductionUseCase(formula_store=formula_store, material_store=material_store)


class TestCheck:
    """Tests for the production feasibility check."""

    async def test_feasible(self, use_case):
        check = await use_case.check(CheckProductionRequest(formula_id=1, quantity=100))

        assert check.can_produce
        assert check.total_cost == 400000.0
        assert check.cost_per_unit == 4000.0
        assert [r.needed for r in check.requirements] == [60.0, 40.0]
        assert check.shortages == []

    async def test_shortage(self, use_case):
        check = await use_case.check(CheckProductionRequest(formula_id=1, quantity=2000))

        assert not check.can_produce
        short = {r.material_id: r.shortage for r in check.shortages}
        assert short == {1: 200.0, 2: 300.0}

    async def test_inactive_formula_cannot_produce(self, use_case, formula):
        formula.is_active = False
        check = await use_case.check(CheckProductionRequest(formula_id=1, quantity=1))
        assert not check.can_produce

    async def test_unknown_formula(self, use_case):
        use_case._formula_store.get_formula.return_value = None
        with pytest.raises(FormulaNotFoundError):
            await use_case.check(CheckProductionRequest(formula_id=9, quantity=1))


class TestMaxProducible:
    async def test_limited_by_scarcest_material(self, use_case):
        result = await use_case.max_producible(1)
        assert result.max_quantity == 1250.0
        assert result.limiting_material_id == 2
        assert result.limiting_material_name == "Dedak Halus"

    async def test_rounds_down(self, use_case, materials):
        materials[2].stock = 0.5
        result = await use_case.max_producible(1)
        assert result.max_quantity == 1.0

    async def test_out_of_stock(self, use_case, materials):
        materials[1].stock = 0.0
        result = await use_case.max_producible(1)
        assert result.max_quantity == 0.0
        assert result.limiting_material_id == 1
