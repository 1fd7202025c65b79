"""Integration tests: production workflow against a migrated database."""

from unittest.mock import AsyncMock

import pytest

from feedmill.application.dto.requests import ExecuteProductionRequest
from feedmill.application.use_cases import (
    CancelProductionUseCase,
    ExecuteProductionUseCase,
)
from feedmill.core.entities import MovementDirection, MovementSource, ProductionStatus
from feedmill.core.exceptions import (
    FormulaInactiveError,
    InsufficientMaterialsError,
    InvalidStateTransitionError,
)
from feedmill.infrastructure.storage.sqlite import (
    get_activity_log,
    get_batch_inventory,
    get_connection,
    get_formula_store,
    get_material_inventory,
    get_movement_ledger,
)
from feedmill.infrastructure.storage.sqlite.migrations import reconcile_ledger


async def _balances(catalog) -> tuple[float, float]:
    inventory = await get_material_inventory()
    return (
        await inventory.get_balance(catalog.corn.id),
        await inventory.get_balance(catalog.bran.id),
    )


async def _run_count() -> int:
    async with get_connection() as conn:
        cursor = await conn.execute("SELECT COUNT(*) FROM production_runs")
        return (await cursor.fetchone())[0]


class TestExecuteProduction:
    """Produce and complete in one transaction."""

    async def test_materials_consumed_and_batch_created(self, catalog, db):
        result = await ExecuteProductionUseCase().execute(
            ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=100, user_id=1)
        )

        assert result.run.status == ProductionStatus.COMPLETED
        assert result.batch.quantity == 100.0
        assert result.batch.production_run_id == result.run.id
        assert await _balances(catalog) == (940.0, 460.0)

        consumed = [m for m in result.movements if m.direction == MovementDirection.OUT]
        assert {(m.material_id, m.quantity) for m in consumed} == {
            (catalog.corn.id, 60.0),
            (catalog.bran.id, 40.0),
        }
        assert await reconcile_ledger(db) == {"materials": [], "batches": []}

    async def test_shortage_writes_nothing(self, catalog):
        """A request the stock cannot cover leaves every balance untouched."""
        with pytest.raises(InsufficientMaterialsError) as exc_info:
            await ExecuteProductionUseCase().execute(
                ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=2000)
            )

        short = {s["material_id"] for s in exc_info.value.shortages}
        assert short == {catalog.corn.id, catalog.bran.id}
        assert await _balances(catalog) == (1000.0, 500.0)
        assert await _run_count() == 0

    async def test_failure_after_deduction_rolls_back(self, catalog):
        """A failing batch insert undoes the run and every material deduction."""
        failing_batches = AsyncMock()
        failing_batches.create_batch.side_effect = RuntimeError("disk I/O error")

        with pytest.raises(RuntimeError):
            await ExecuteProductionUseCase(batch_inventory=failing_batches).execute(
                ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=100)
            )

        assert await _balances(catalog) == (1000.0, 500.0)
        assert await _run_count() == 0
        ledger = await get_movement_ledger()
        assert len(await ledger.list_by_material(catalog.corn.id)) == 1

    async def test_inactive_formula(self, catalog):
        await (await get_formula_store()).set_active(catalog.formula.id, False)
        with pytest.raises(FormulaInactiveError):
            await ExecuteProductionUseCase().execute(
                ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=1)
            )

    async def test_audit_entry_written(self, catalog):
        await ExecuteProductionUseCase().execute(
            ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=10, user_id=7)
        )
        entries = await (await get_activity_log()).list_recent()
        assert entries[0].action == "production_completed"
        assert entries[0].user_id == 7


class TestTwoStepProduction:
    """Start, then complete or cancel."""

    async def test_start_then_complete(self, catalog):
        use_case = ExecuteProductionUseCase()
        started = await use_case.start(
            ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=50)
        )
        assert started.run.status == ProductionStatus.PENDING
        assert await _balances(catalog) == (970.0, 480.0)
        batches = await get_batch_inventory()
        assert await batches.total_available(catalog.product.id) == 0.0

        completed = await use_case.complete(started.run.id)
        assert completed.run.status == ProductionStatus.COMPLETED
        assert await batches.total_available(catalog.product.id) == 50.0

    async def test_cancel_returns_materials(self, catalog, db):
        started = await ExecuteProductionUseCase().start(
            ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=50)
        )

        result = await CancelProductionUseCase().execute(started.run.id)

        assert result.run.status == ProductionStatus.CANCELLED
        assert await _balances(catalog) == (1000.0, 500.0)
        assert {m.source for m in result.returned} == {MovementSource.PRODUCTION_CANCELLED}
        assert {m.quantity for m in result.returned} == {30.0, 20.0}
        assert await reconcile_ledger(db) == {"materials": [], "batches": []}

    async def test_completed_run_cannot_be_cancelled(self, catalog):
        done = await ExecuteProductionUseCase().execute(
            ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=10)
        )
        with pytest.raises(InvalidStateTransitionError):
            await CancelProductionUseCase().execute(done.run.id)
        assert await _balances(catalog) == (994.0, 496.0)

    async def test_cancel_twice(self, catalog):
        started = await ExecuteProductionUseCase().start(
            ExecuteProductionRequest(formula_id=catalog.formula.id, quantity=10)
        )
        await CancelProductionUseCase().execute(started.run.id)
        with pytest.raises(InvalidStateTransitionError):
            await CancelProductionUseCase().execute(started.run.id)
        assert await _balances(catalog) == (1000.0, 500.0)
