"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import pytest

from feedmill.application.services import reset_services
from feedmill.config import reset_settings
from feedmill.core.entities import Formula, FormulaLine, Material, Product
from feedmill.infrastructure.storage.sqlite import (
    close_pool,
    get_formula_store,
    get_material_store,
    get_product_store,
)
from feedmill.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Point storage at a per-test directory and drop cached singletons."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_services()
    yield
    reset_settings()
    reset_services()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Database path matching the isolated settings."""
    return tmp_path / "data" / "feedmill.db"


@pytest.fixture
async def db(temp_db_path: Path) -> AsyncGenerator[Path, None]:
    """Migrated database behind the global connection pool."""
    await initialize_database(temp_db_path, create_backup_before=False)
    yield temp_db_path
    await close_pool()


@dataclass
class Catalog:
    """Demo catalog: two materials and a product with a 0.6/0.4 formula."""

    corn: Material
    bran: Material
    product: Product
    formula: Formula


@pytest.fixture
async def catalog(db: Path) -> Catalog:
    materials = await get_material_store()
    corn = await materials.create_material(
        Material(name="Jagung Giling", stock=1000, min_stock=100, unit_cost=5000)
    )
    bran = await materials.create_material(
        Material(name="Dedak Halus", stock=500, min_stock=50, unit_cost=2500)
    )
    product = await (await get_product_store()).create_product(
        Product(code="PKN-001", name="Pakan Kambing Starter", selling_price=15000)
    )
    formula = await (await get_formula_store()).create_formula(
        Formula(
            product_id=product.id,
            name="Starter",
            lines=[
                FormulaLine(material_id=corn.id, quantity=0.6),
                FormulaLine(material_id=bran.id, quantity=0.4),
            ],
        )
    )
    return Catalog(corn=corn, bran=bran, product=product, formula=formula)


@pytest.fixture
def fake_transaction():
    """Transaction factory for use case unit tests; yields a sentinel connection."""
    conn = object()

    @asynccontextmanager
    async def factory():
        yield conn

    factory.conn = conn
    return factory
