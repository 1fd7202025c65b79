"""
Execute Production Use Case.

Runs a formula for a requested output quantity:

1. Load the formula; it must be active.
2. Under the write lock, compute every material requirement and reject the
   whole request if any material is short, naming all of them.
3. In the same transaction: create the run (pending), deduct each material,
   mark the run completed and create the product batch.

Any failure in step 3 rolls back every write. ``start`` stops after the
material deduction, leaving the run pending for ``complete`` or cancellation.
"""

from dataclasses import dataclass, field
from typing import Any

from feedmill.application.dto.requests import (
    ExecuteProductionRequest,
    ProductionActionRequest,
)
from feedmill.application.dto.responses import (
    BatchResponse,
    ProductionResponse,
    ProductionRunResponse,
    StockMovementResponse,
)
from feedmill.application.use_cases.audit import (
    TransactionFactory,
    default_transaction,
    record_activity,
)
from feedmill.config import get_logger
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.formula import Formula
from feedmill.core.entities.movement import MovementSource, StockMovement
from feedmill.core.entities.planning import MaterialRequirement
from feedmill.core.entities.product import ProductBatch, expiry_date_for
from feedmill.core.entities.production import ProductionRun, ProductionStatus
from feedmill.core.exceptions import (
    FormulaInactiveError,
    FormulaNotFoundError,
    InsufficientMaterialsError,
    MaterialNotFoundError,
    ProductNotFoundError,
    ProductionRunNotFoundError,
)
from feedmill.core.interfaces.catalog import IFormulaStore, IMaterialStore, IProductStore
from feedmill.core.interfaces.inventory import IBatchInventory, IMaterialInventory
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.core.interfaces.records import IActivityLog, IProductionStore
from feedmill.core.services.reorder_planner import ReorderPlanner

logger = get_logger(__name__)


@dataclass
class ProductionResult:
    """Result of a production workflow step."""

    run: ProductionRun
    batch: ProductBatch | None = None
    movements: list[StockMovement] = field(default_factory=list)
    restock_warnings: list[int] = field(default_factory=list)


async def material_requirements(
    formula: Formula,
    quantity: float,
    material_store: IMaterialStore,
    conn: Any = None,
) -> list[MaterialRequirement]:
    """Needed vs available for every formula line at ``quantity`` units of output."""
    requirements = []
    for line in formula.lines:
        material = await material_store.get_material(line.material_id, conn=conn)
        if material is None:
            raise MaterialNotFoundError(line.material_id)
        needed = quantize(line.quantity * quantity)
        requirements.append(
            MaterialRequirement(
                material_id=line.material_id,
                material_name=material.name,
                unit=material.unit,
                per_unit=line.quantity,
                needed=needed,
                available=material.stock,
                unit_cost=material.unit_cost,
                cost=quantize(needed * material.unit_cost),
                is_sufficient=material.stock >= needed,
                shortage=quantize(max(0.0, needed - material.stock)),
            )
        )
    return requirements


class ExecuteProductionUseCase:
    """Production run workflow: start, complete, or both in one transaction."""

    def __init__(
        self,
        formula_store: IFormulaStore | None = None,
        product_store: IProductStore | None = None,
        material_store: IMaterialStore | None = None,
        material_inventory: IMaterialInventory | None = None,
        batch_inventory: IBatchInventory | None = None,
        production_store: IProductionStore | None = None,
        ledger: IMovementLedger | None = None,
        planner: ReorderPlanner | None = None,
        activity_log: IActivityLog | None = None,
        transaction: TransactionFactory | None = None,
    ):
        self._formula_store = formula_store
        self._product_store = product_store
        self._material_store = material_store
        self._material_inventory = material_inventory
        self._batch_inventory = batch_inventory
        self._production_store = production_store
        self._ledger = ledger
        self._planner = planner
        self._activity_log = activity_log
        self._transaction = transaction or default_transaction

    async def _get_formula_store(self) -> IFormulaStore:
        if self._formula_store is None:
            from feedmill.infrastructure.storage.sqlite import get_formula_store

            self._formula_store = await get_formula_store()
        return self._formula_store

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from feedmill.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_material_store(self) -> IMaterialStore:
        if self._material_store is None:
            from feedmill.infrastructure.storage.sqlite import get_material_store

            self._material_store = await get_material_store()
        return self._material_store

    async def _get_material_inventory(self) -> IMaterialInventory:
        if self._material_inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_material_inventory

            self._material_inventory = await get_material_inventory()
        return self._material_inventory

    async def _get_batch_inventory(self) -> IBatchInventory:
        if self._batch_inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_batch_inventory

            self._batch_inventory = await get_batch_inventory()
        return self._batch_inventory

    async def _get_production_store(self) -> IProductionStore:
        if self._production_store is None:
            from feedmill.infrastructure.storage.sqlite import get_production_store

            self._production_store = await get_production_store()
        return self._production_store

    async def _get_ledger(self) -> IMovementLedger:
        if self._ledger is None:
            from feedmill.infrastructure.storage.sqlite import get_movement_ledger

            self._ledger = await get_movement_ledger()
        return self._ledger

    async def _get_planner(self) -> ReorderPlanner:
        if self._planner is None:
            from feedmill.application.services import get_reorder_planner

            self._planner = await get_reorder_planner()
        return self._planner

    async def execute(self, request: ExecuteProductionRequest) -> ProductionResult:
        """Produce and complete in a single transaction."""
        return await self._produce(request, complete=True)

    async def start(self, request: ExecuteProductionRequest) -> ProductionResult:
        """Consume materials and leave the run pending."""
        return await self._produce(request, complete=False)

    async def _produce(
        self, request: ExecuteProductionRequest, complete: bool
    ) -> ProductionResult:
        logger.info(
            "production_started",
            formula_id=request.formula_id,
            quantity=request.quantity,
            complete=complete,
            user_id=request.user_id,
        )

        formula_store = await self._get_formula_store()
        product_store = await self._get_product_store()
        material_store = await self._get_material_store()
        inventory = await self._get_material_inventory()
        production_store = await self._get_production_store()
        ledger = await self._get_ledger()

        formula = await formula_store.get_formula(request.formula_id)
        if formula is None:
            raise FormulaNotFoundError(request.formula_id)
        if not formula.is_active:
            logger.warning("production_formula_inactive", formula_id=formula.id)
            raise FormulaInactiveError(request.formula_id)

        product = await product_store.get_product(formula.product_id)
        if product is None:
            raise ProductNotFoundError(formula.product_id)

        quantity = quantize(request.quantity)
        production_date = request.production_date or utc_now().date()
        expiry = request.expiry_date or expiry_date_for(product.category, production_date)

        async with self._transaction() as conn:
            # Balances read here are under the write lock
            requirements = await material_requirements(formula, quantity, material_store, conn)
            shortages = [r for r in requirements if not r.is_sufficient]
            if shortages:
                logger.warning(
                    "production_insufficient_materials",
                    formula_id=formula.id,
                    quantity=quantity,
                    short=[s.material_id for s in shortages],
                )
                raise InsufficientMaterialsError(
                    [
                        {
                            "material_id": s.material_id,
                            "name": s.material_name,
                            "needed": s.needed,
                            "available": s.available,
                            "shortage": s.shortage,
                        }
                        for s in shortages
                    ]
                )

            run = await production_store.create_run(
                ProductionRun(
                    product_id=product.id,
                    formula_id=formula.id,
                    quantity=quantity,
                    unit=product.unit,
                    production_date=production_date,
                    expiry_date=expiry,
                    status=ProductionStatus.PENDING,
                    user_id=request.user_id,
                    notes=request.notes,
                ),
                conn=conn,
            )

            for requirement in requirements:
                if requirement.needed <= 0:
                    continue
                await inventory.decrease(
                    requirement.material_id,
                    requirement.needed,
                    MovementSource.PRODUCTION,
                    reference_id=run.id,
                    notes=f"production run {run.id}",
                    conn=conn,
                )

            batch = None
            if complete:
                run, batch = await self._complete(run, conn)

            movements = await ledger.list_by_reference(
                MovementSource.PRODUCTION, run.id, conn=conn
            )

        logger.info(
            "production_complete" if complete else "production_pending",
            run_id=run.id,
            batch_id=batch.id if batch else None,
            materials=len(requirements),
        )

        warnings = await self._restock_warnings(formula)
        await record_activity(
            self._activity_log,
            request.user_id,
            "production_completed" if complete else "production_started",
            f"Run {run.id}: {quantity:g} {product.unit} of {product.name} "
            f"with formula '{formula.name}'",
        )
        return ProductionResult(
            run=run, batch=batch, movements=movements, restock_warnings=warnings
        )

    async def complete(
        self, run_id: int, request: ProductionActionRequest | None = None
    ) -> ProductionResult:
        """Move a pending run to completed and create its batch."""
        request = request or ProductionActionRequest()
        production_store = await self._get_production_store()
        ledger = await self._get_ledger()

        async with self._transaction() as conn:
            run = await production_store.get_run(run_id, conn=conn)
            if run is None:
                raise ProductionRunNotFoundError(run_id)
            run, batch = await self._complete(run, conn)
            movements = await ledger.list_by_reference(
                MovementSource.PRODUCTION, run_id, conn=conn
            )

        logger.info("production_complete", run_id=run_id, batch_id=batch.id)
        await record_activity(
            self._activity_log,
            request.user_id,
            "production_completed",
            f"Run {run_id} completed, batch {batch.id} of {run.quantity:g} {run.unit}",
        )
        return ProductionResult(run=run, batch=batch, movements=movements)

    async def _complete(
        self, run: ProductionRun, conn: Any
    ) -> tuple[ProductionRun, ProductBatch]:
        production_store = await self._get_production_store()
        batches = await self._get_batch_inventory()

        completed = run.transition_to(ProductionStatus.COMPLETED)
        await production_store.update_status(run.id, ProductionStatus.COMPLETED, conn=conn)
        batch = await batches.create_batch(
            run.product_id,
            run.id,
            run.quantity,
            expiry_date=run.expiry_date,
            conn=conn,
        )
        return completed, batch

    async def _restock_warnings(self, formula: Formula) -> list[int]:
        """Materials now at or below their reorder point. Advisory only."""
        warnings: list[int] = []
        try:
            planner = await self._get_planner()
            for line in formula.lines:
                if await planner.needs_restock(line.material_id):
                    warnings.append(line.material_id)
                    logger.warning(
                        "stock_below_rop",
                        material_id=line.material_id,
                        material_name=line.material_name,
                    )
        except Exception:
            logger.warning("restock_check_failed", formula_id=formula.id, exc_info=True)
        return warnings

    def to_response(self, result: ProductionResult) -> ProductionResponse:
        """Convert result to API response."""
        return ProductionResponse(
            run=ProductionRunResponse.model_validate(result.run),
            batch=BatchResponse.model_validate(result.batch) if result.batch else None,
            movements=[StockMovementResponse.model_validate(m) for m in result.movements],
            restock_warnings=result.restock_warnings,
        )

