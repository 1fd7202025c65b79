"""Pytest fixtures for SQLite storage tests."""

from pathlib import Path

import pytest

from feedmill.core.entities import Material, Product
from feedmill.infrastructure.storage.sqlite import (
    SQLiteBatchInventory,
    SQLiteMaterialInventory,
    SQLiteMaterialStore,
    SQLiteMovementLedger,
    SQLiteProductStore,
)


@pytest.fixture
def ledger(db: Path) -> SQLiteMovementLedger:
    return SQLiteMovementLedger()


@pytest.fixture
def material_store(ledger) -> SQLiteMaterialStore:
    return SQLiteMaterialStore(ledger)


@pytest.fixture
def material_inventory(ledger, material_store) -> SQLiteMaterialInventory:
    return SQLiteMaterialInventory(ledger, material_store)


@pytest.fixture
def batch_inventory(ledger) -> SQLiteBatchInventory:
    return SQLiteBatchInventory(ledger)


@pytest.fixture
async def corn(material_store) -> Material:
    """Material with an opening balance of 100 kg."""
    return await material_store.create_material(
        Material(name="Jagung Giling", stock=100, min_stock=20, unit_cost=5000)
    )


@pytest.fixture
async def product(db: Path) -> Product:
    return await SQLiteProductStore().create_product(
        Product(code="PKN-001", name="Pakan Kambing Starter", selling_price=15000)
    )
