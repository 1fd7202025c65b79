"""
Cancel Production Use Case.

Only a pending run can be cancelled. Every material the run consumed is
returned through the inventory with source ``production_cancelled``.
"""

from dataclasses import dataclass, field

from feedmill.application.dto.requests import ProductionActionRequest
from feedmill.application.dto.responses import (
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
from feedmill.core.entities.movement import MovementDirection, MovementSource, StockMovement
from feedmill.core.entities.production import ProductionRun, ProductionStatus
from feedmill.core.exceptions import ProductionRunNotFoundError
from feedmill.core.interfaces.inventory import IMaterialInventory
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.core.interfaces.records import IActivityLog, IProductionStore

logger = get_logger(__name__)


@dataclass
class CancelProductionResult:
    run: ProductionRun
    returned: list[StockMovement] = field(default_factory=list)


class CancelProductionUseCase:
    def __init__(
        self,
        production_store: IProductionStore | None = None,
        material_inventory: IMaterialInventory | None = None,
        ledger: IMovementLedger | None = None,
        activity_log: IActivityLog | None = None,
        transaction: TransactionFactory | None = None,
    ):
        self._production_store = production_store
        self._material_inventory = material_inventory
        self._ledger = ledger
        self._activity_log = activity_log
        self._transaction = transaction or default_transaction

    async def _get_production_store(self) -> IProductionStore:
        if self._production_store is None:
            from feedmill.infrastructure.storage.sqlite import get_production_store

            self._production_store = await get_production_store()
        return self._production_store

    async def _get_material_inventory(self) -> IMaterialInventory:
        if self._material_inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_material_inventory

            self._material_inventory = await get_material_inventory()
        return self._material_inventory

    async def _get_ledger(self) -> IMovementLedger:
        if self._ledger is None:
            from feedmill.infrastructure.storage.sqlite import get_movement_ledger

            self._ledger = await get_movement_ledger()
        return self._ledger

    async def execute(
        self, run_id: int, request: ProductionActionRequest | None = None
    ) -> CancelProductionResult:
        request = request or ProductionActionRequest()
        logger.info("cancel_production_started", run_id=run_id, user_id=request.user_id)

        production_store = await self._get_production_store()
        inventory = await self._get_material_inventory()
        ledger = await self._get_ledger()

        async with self._transaction() as conn:
            run = await production_store.get_run(run_id, conn=conn)
            if run is None:
                raise ProductionRunNotFoundError(run_id)
            cancelled = run.transition_to(ProductionStatus.CANCELLED)

            consumed = [
                m
                for m in await ledger.list_by_reference(
                    MovementSource.PRODUCTION, run_id, conn=conn
                )
                if m.material_id is not None and m.direction == MovementDirection.OUT
            ]
            for movement in consumed:
                await inventory.increase(
                    movement.material_id,
                    movement.quantity,
                    MovementSource.PRODUCTION_CANCELLED,
                    reference_id=run_id,
                    notes=request.notes or f"production run {run_id} cancelled",
                    conn=conn,
                )
            await production_store.update_status(run_id, ProductionStatus.CANCELLED, conn=conn)
            returned = await ledger.list_by_reference(
                MovementSource.PRODUCTION_CANCELLED, run_id, conn=conn
            )

        logger.info(
            "cancel_production_complete",
            run_id=run_id,
            materials_returned=len(returned),
        )
        await record_activity(
            self._activity_log,
            request.user_id,
            "production_cancelled",
            f"Run {run_id} cancelled, {len(returned)} material(s) returned",
        )
        return CancelProductionResult(run=cancelled, returned=returned)

    def to_response(self, result: CancelProductionResult) -> ProductionResponse:
        return ProductionResponse(
            run=ProductionRunResponse.model_validate(result.run),
            movements=[StockMovementResponse.model_validate(m) for m in result.returned],
        )
