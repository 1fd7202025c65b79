"""Tests for the SQLite formula store."""

import pytest

from feedmill.core.entities import Formula, FormulaLine, Material
from feedmill.core.exceptions import FormulaNotFoundError, ValidationError
from feedmill.infrastructure.storage.sqlite import SQLiteFormulaStore


@pytest.fixture
def formula_store(db) -> SQLiteFormulaStore:
    return SQLiteFormulaStore()


@pytest.fixture
async def bran(material_store) -> Material:
    return await material_store.create_material(
        Material(name="Dedak Halus", stock=50, unit_cost=2500)
    )


def _formula(product, corn, bran, corn_qty=0.6, bran_qty=0.4, name="Starter") -> Formula:
    return Formula(
        product_id=product.id,
        name=name,
        lines=[
            FormulaLine(material_id=corn.id, quantity=corn_qty),
            FormulaLine(material_id=bran.id, quantity=bran_qty),
        ],
    )


class TestCreateFormula:
    async def test_lines_joined_with_materials(self, formula_store, product, corn, bran):
        formula = await formula_store.create_formula(_formula(product, corn, bran))

        assert formula.id is not None
        assert [line.material_name for line in formula.lines] == ["Jagung Giling", "Dedak Halus"]
        assert formula.unit_cost == 4000.0
        assert formula.is_active

    async def test_unbalanced_rejected(self, formula_store, product, corn, bran):
        with pytest.raises(ValidationError):
            await formula_store.create_formula(_formula(product, corn, bran, 0.6, 0.3))

    async def test_empty_rejected(self, formula_store, product):
        with pytest.raises(ValidationError):
            await formula_store.create_formula(Formula(product_id=product.id, name="Empty"))


class TestActivation:
    async def test_active_formula_for_product(self, formula_store, product, corn, bran):
        first = await formula_store.create_formula(_formula(product, corn, bran))
        second = await formula_store.create_formula(
            _formula(product, corn, bran, 0.5, 0.5, name="Grower")
        )

        await formula_store.set_active(second.id, False)

        active = await formula_store.get_active_formula(product.id)
        assert active.id == first.id
        assert not (await formula_store.get_formula(second.id)).is_active

    async def test_set_active_unknown(self, formula_store):
        with pytest.raises(FormulaNotFoundError):
            await formula_store.set_active(404, True)

    async def test_formulas_using_material(self, formula_store, product, corn, bran):
        formula = await formula_store.create_formula(_formula(product, corn, bran))
        assert [f.id for f in await formula_store.list_formulas_using_material(corn.id)] == [
            formula.id
        ]

        await formula_store.set_active(formula.id, False)
        assert await formula_store.list_formulas_using_material(corn.id) == []
        everything = await formula_store.list_formulas_using_material(corn.id, active_only=False)
        assert len(everything) == 1
