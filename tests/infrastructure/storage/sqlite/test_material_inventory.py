"""Tests for the SQLite material inventory."""

import asyncio

import pytest

from feedmill.core.entities import MovementDirection, MovementSource
from feedmill.core.exceptions import (
    InsufficientStockError,
    InvalidMovementError,
    MaterialNotFoundError,
)
from feedmill.infrastructure.storage.sqlite import get_transaction
from feedmill.infrastructure.storage.sqlite.migrations import reconcile_ledger


class TestIncreaseDecrease:
    """Balance changes and their ledger entries."""

    async def test_increase(self, material_inventory, ledger, corn):
        material = await material_inventory.increase(
            corn.id, 50, MovementSource.PURCHASE, reference_id=3, notes="PO-3"
        )
        assert material.stock == 150.0
        assert await material_inventory.get_balance(corn.id) == 150.0

        latest = (await ledger.list_by_material(corn.id, limit=1))[0]
        assert latest.direction == MovementDirection.IN
        assert latest.source == MovementSource.PURCHASE
        assert latest.reference_id == 3
        assert latest.notes == "PO-3"

    async def test_decrease(self, material_inventory, ledger, corn):
        material = await material_inventory.decrease(corn.id, 30.5, MovementSource.PRODUCTION)
        assert material.stock == 69.5

        latest = (await ledger.list_by_material(corn.id, limit=1))[0]
        assert latest.direction == MovementDirection.OUT
        assert latest.quantity == 30.5

    async def test_decrease_to_zero(self, material_inventory, corn):
        material = await material_inventory.decrease(corn.id, 100, MovementSource.ADJUSTMENT)
        assert material.stock == 0.0

    async def test_insufficient_stock_changes_nothing(self, material_inventory, ledger, corn):
        before = await ledger.list_by_material(corn.id)

        with pytest.raises(InsufficientStockError) as exc_info:
            await material_inventory.decrease(corn.id, 100.01, MovementSource.PRODUCTION)

        assert exc_info.value.details["available"] == 100.0
        assert await material_inventory.get_balance(corn.id) == 100.0
        assert len(await ledger.list_by_material(corn.id)) == len(before)

    async def test_invalid_quantity(self, material_inventory, corn):
        with pytest.raises(InvalidMovementError):
            await material_inventory.increase(corn.id, 0, MovementSource.PURCHASE)

    async def test_unknown_material(self, material_inventory, db):
        with pytest.raises(MaterialNotFoundError):
            await material_inventory.decrease(404, 1, MovementSource.PRODUCTION)
        with pytest.raises(MaterialNotFoundError):
            await material_inventory.get_balance(404)

    async def test_rolled_back_with_outer_transaction(self, material_inventory, ledger, corn):
        with pytest.raises(RuntimeError):
            async with get_transaction() as conn:
                await material_inventory.decrease(
                    corn.id, 40, MovementSource.PRODUCTION, conn=conn
                )
                raise RuntimeError("later step failed")

        assert await material_inventory.get_balance(corn.id) == 100.0
        assert len(await ledger.list_by_material(corn.id)) == 1


class TestConservation:
    async def test_balance_equals_ledger(self, material_inventory, corn, db):
        await material_inventory.increase(corn.id, 25.25, MovementSource.PURCHASE)
        await material_inventory.decrease(corn.id, 10.1, MovementSource.PRODUCTION)
        await material_inventory.decrease(corn.id, 0.01, MovementSource.INTERNAL_USE)

        drift = await reconcile_ledger(db)
        assert drift == {"materials": [], "batches": []}
        assert await material_inventory.get_balance(corn.id) == 115.14

    async def test_concurrent_decrements_never_oversell(self, material_inventory, corn, db):
        """Ten competing 15 kg withdrawals from 100 kg: exactly six succeed."""
        results = await asyncio.gather(
            *(
                material_inventory.decrease(corn.id, 15, MovementSource.PRODUCTION)
                for _ in range(10)
            ),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(succeeded) == 6
        assert all(isinstance(e, InsufficientStockError) for e in failed)
        assert await material_inventory.get_balance(corn.id) == 10.0
        assert (await reconcile_ledger(db))["materials"] == []


async def test_daily_usage(material_inventory, corn):
    await material_inventory.decrease(corn.id, 30, MovementSource.PRODUCTION)
    assert await material_inventory.daily_usage(corn.id, window_days=30) == 1.0
