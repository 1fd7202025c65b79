"""Tests for the SQLite material catalog."""

import pytest

from feedmill.core.entities import (
    Formula,
    FormulaLine,
    Material,
    MaterialCategory,
    MovementSource,
)
from feedmill.core.exceptions import (
    DuplicateError,
    MaterialInUseError,
    MaterialNotFoundError,
)
from feedmill.infrastructure.storage.sqlite import SQLiteFormulaStore
from feedmill.infrastructure.storage.sqlite.material_store import OPENING_BALANCE_NOTE


class TestCreateMaterial:
    async def test_opening_balance_is_booked(self, material_store, ledger, corn):
        """A non-zero opening stock appears in the ledger as an adjustment."""
        assert corn.id is not None
        movements = await ledger.list_by_material(corn.id)
        assert len(movements) == 1
        assert movements[0].source == MovementSource.ADJUSTMENT
        assert movements[0].quantity == 100.0
        assert movements[0].notes == OPENING_BALANCE_NOTE

    async def test_zero_opening_balance_has_no_movement(self, material_store, ledger):
        material = await material_store.create_material(Material(name="Mineral Mix"))
        assert await ledger.list_by_material(material.id) == []

    async def test_duplicate_name(self, material_store, corn):
        with pytest.raises(DuplicateError):
            await material_store.create_material(Material(name="Jagung Giling"))

    async def test_roundtrip(self, material_store):
        created = await material_store.create_material(
            Material(
                name="Vitamin B Kompleks",
                category=MaterialCategory.VITAMIN,
                unit="g",
                lead_time_days=14,
                supplier="PT Nutrisi Ternak",
            )
        )
        loaded = await material_store.get_material(created.id)
        assert loaded.category == MaterialCategory.VITAMIN
        assert loaded.unit == "g"
        assert loaded.lead_time_days == 14
        assert loaded.supplier == "PT Nutrisi Ternak"
        assert (await material_store.get_material_by_name("Vitamin B Kompleks")).id == created.id


class TestListAndUpdate:
    async def test_list_by_category(self, material_store, corn):
        await material_store.create_material(
            Material(name="Mineral Mix", category=MaterialCategory.MINERAL)
        )
        assert len(await material_store.list_materials()) == 2
        minerals = await material_store.list_materials(category=MaterialCategory.MINERAL)
        assert [m.name for m in minerals] == ["Mineral Mix"]

    async def test_update_keeps_balance(self, material_store, material_inventory, corn):
        """Master data edits never change the stored stock."""
        await material_inventory.decrease(corn.id, 40, MovementSource.PRODUCTION)
        corn.stock = 999
        corn.unit_cost = 5500

        updated = await material_store.update_material(corn)

        assert updated.stock == 60.0
        assert (await material_store.get_material(corn.id)).unit_cost == 5500.0

    async def test_update_unknown(self, material_store, db):
        with pytest.raises(MaterialNotFoundError):
            await material_store.update_material(Material(id=404, name="Ghost"))


class TestDeleteMaterial:
    """Deletion rules."""

    async def test_delete_unused(self, material_store):
        material = await material_store.create_material(Material(name="Mineral Mix"))
        assert await material_store.delete_material(material.id)
        assert await material_store.get_material(material.id) is None

    async def test_stock_left(self, material_store, corn):
        with pytest.raises(MaterialInUseError, match="not zero"):
            await material_store.delete_material(corn.id)

    async def test_ledger_history(self, material_store, material_inventory, corn):
        await material_inventory.decrease(corn.id, 100, MovementSource.ADJUSTMENT)
        with pytest.raises(MaterialInUseError):
            await material_store.delete_material(corn.id)
        assert await material_store.get_material(corn.id) is not None

    async def test_active_formula(self, material_store, product):
        material = await material_store.create_material(Material(name="Mineral Mix"))
        await SQLiteFormulaStore().create_formula(
            Formula(
                product_id=product.id,
                name="Mineral",
                lines=[FormulaLine(material_id=material.id, quantity=1.0)],
            )
        )
        with pytest.raises(MaterialInUseError, match="active formula"):
            await material_store.delete_material(material.id)

    async def test_unknown(self, material_store, db):
        with pytest.raises(MaterialNotFoundError):
            await material_store.delete_material(404)
