"""Tests for FIFO product batch inventory."""

import asyncio
from datetime import date

import pytest

from feedmill.core.entities import MovementDirection, MovementSource
from feedmill.core.exceptions import (
    BatchNotFoundError,
    InsufficientStockError,
    InvalidMovementError,
    ProductNotFoundError,
)
from feedmill.infrastructure.storage.sqlite.migrations import reconcile_ledger


@pytest.fixture
async def three_batches(batch_inventory, product):
    """Three batches of 5 units, oldest first."""
    return [
        await batch_inventory.create_batch(product.id, None, 5, expiry_date=date(2026, 1, d))
        for d in (10, 20, 30)
    ]


class TestCreateBatch:
    async def test_records_inbound_movement(self, batch_inventory, ledger, product):
        batch = await batch_inventory.create_batch(product.id, None, 12.5)

        assert batch.id is not None
        assert batch.initial_quantity == batch.quantity == 12.5
        movements = await ledger.list_by_product(product.id)
        assert len(movements) == 1
        assert movements[0].direction == MovementDirection.IN
        assert movements[0].batch_id == batch.id
        assert movements[0].product_id == product.id

    async def test_unknown_product(self, batch_inventory, db):
        with pytest.raises(ProductNotFoundError):
            await batch_inventory.create_batch(404, None, 1)

    async def test_non_positive_quantity(self, batch_inventory, product):
        with pytest.raises(InvalidMovementError):
            await batch_inventory.create_batch(product.id, None, 0)


class TestConsumeFifo:
    """Oldest batches are depleted first."""

    async def test_spans_batches_in_order(self, batch_inventory, product, three_batches):
        movements = await batch_inventory.consume_fifo(
            product.id, 7, MovementSource.SALE, reference_id=1
        )

        assert [(m.batch_id, m.quantity) for m in movements] == [
            (three_batches[0].id, 5.0),
            (three_batches[1].id, 2.0),
        ]
        remaining = [b.quantity for b in await batch_inventory.list_batches(product.id, False)]
        assert remaining == [0.0, 3.0, 5.0]
        assert await batch_inventory.total_available(product.id) == 8.0

    async def test_depleted_batches_hidden(self, batch_inventory, product, three_batches):
        await batch_inventory.consume_fifo(product.id, 5, MovementSource.SALE)
        available = await batch_inventory.list_batches(product.id)
        assert [b.id for b in available] == [three_batches[1].id, three_batches[2].id]

    async def test_exact_total(self, batch_inventory, product, three_batches):
        movements = await batch_inventory.consume_fifo(product.id, 15, MovementSource.SALE)
        assert len(movements) == 3
        assert await batch_inventory.total_available(product.id) == 0.0

    async def test_insufficient_is_all_or_nothing(
        self, batch_inventory, ledger, product, three_batches
    ):
        """No batch is touched when the total cannot be covered."""
        with pytest.raises(InsufficientStockError) as exc_info:
            await batch_inventory.consume_fifo(product.id, 16, MovementSource.SALE)

        assert exc_info.value.details["available"] == 15.0
        remaining = [b.quantity for b in await batch_inventory.list_batches(product.id)]
        assert remaining == [5.0, 5.0, 5.0]
        assert len(await ledger.list_by_product(product.id)) == 3

    async def test_ledger_stays_balanced(self, batch_inventory, product, three_batches, db):
        await batch_inventory.consume_fifo(product.id, 6.25, MovementSource.INTERNAL_USE)
        await batch_inventory.consume_fifo(product.id, 0.75, MovementSource.SALE)
        assert await reconcile_ledger(db) == {"materials": [], "batches": []}

    async def test_concurrent_consumers_never_oversell(
        self, batch_inventory, product, three_batches, db
    ):
        """Eight competing 4-unit withdrawals from 15 units: exactly three succeed."""
        results = await asyncio.gather(
            *(
                batch_inventory.consume_fifo(product.id, 4, MovementSource.SALE)
                for _ in range(8)
            ),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(succeeded) == 3
        assert all(isinstance(e, InsufficientStockError) for e in failed)

        remaining = [b.quantity for b in await batch_inventory.list_batches(product.id, False)]
        assert remaining == [0.0, 0.0, 3.0]
        assert await reconcile_ledger(db) == {"materials": [], "batches": []}


class TestConsumeBatch:
    async def test_consume_specific_batch(self, batch_inventory, product, three_batches):
        target = three_batches[2]
        batch = await batch_inventory.consume_batch(target.id, 2, MovementSource.DISPOSAL)

        assert batch.quantity == 3.0
        # Older batches are untouched
        assert (await batch_inventory.get_batch(three_batches[0].id)).quantity == 5.0

    async def test_more_than_batch_holds(self, batch_inventory, three_batches):
        with pytest.raises(InsufficientStockError):
            await batch_inventory.consume_batch(three_batches[0].id, 6, MovementSource.DISPOSAL)
        assert (await batch_inventory.get_batch(three_batches[0].id)).quantity == 5.0

    async def test_unknown_batch(self, batch_inventory, db):
        with pytest.raises(BatchNotFoundError):
            await batch_inventory.consume_batch(404, 1, MovementSource.DISPOSAL)


async def test_list_expiring(batch_inventory, product, three_batches):
    expiring = await batch_inventory.list_expiring(date(2026, 1, 20))
    assert [b.id for b in expiring] == [three_batches[0].id, three_batches[1].id]


async def test_get_batch_missing(batch_inventory, db):
    assert await batch_inventory.get_batch(404) is None
