"""
Execute Disposal Use Case.

Writes off part of one batch (expired, damaged or lost goods). The loss is
valued at the batch formula's current unit cost; batches without a formula
are written off at zero cost.
"""

from typing import Any

from feedmill.application.dto.requests import BulkDisposalRequest, ExecuteDisposalRequest
from feedmill.application.dto.responses import (
    BulkDisposalItemResponse,
    BulkDisposalResponse,
    DisposalResponse,
)
from feedmill.application.use_cases.audit import (
    TransactionFactory,
    default_transaction,
    record_activity,
)
from feedmill.config import get_logger
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.disposal import DisposalReason, DisposalRecord
from feedmill.core.entities.movement import MovementSource
from feedmill.core.entities.product import ProductBatch
from feedmill.core.exceptions import (
    BatchNotFoundError,
    DisposalNotFoundError,
    FeedmillError,
    InsufficientStockError,
    InvalidReasonError,
)
from feedmill.core.interfaces.catalog import IFormulaStore
from feedmill.core.interfaces.inventory import IBatchInventory
from feedmill.core.interfaces.records import IActivityLog, IDisposalStore, IProductionStore

logger = get_logger(__name__)


def parse_reason(reason: str) -> DisposalReason:
    """Map free text onto the closed reason set."""
    try:
        return DisposalReason(reason.strip().lower())
    except ValueError:
        raise InvalidReasonError(reason, [r.value for r in DisposalReason]) from None


class ExecuteDisposalUseCase:
    """Write off batch stock, one disposal per transaction."""

    def __init__(
        self,
        batch_inventory: IBatchInventory | None = None,
        disposal_store: IDisposalStore | None = None,
        production_store: IProductionStore | None = None,
        formula_store: IFormulaStore | None = None,
        activity_log: IActivityLog | None = None,
        transaction: TransactionFactory | None = None,
    ):
        self._batch_inventory = batch_inventory
        self._disposal_store = disposal_store
        self._production_store = production_store
        self._formula_store = formula_store
        self._activity_log = activity_log
        self._transaction = transaction or default_transaction

    async def _get_batch_inventory(self) -> IBatchInventory:
        if self._batch_inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_batch_inventory

            self._batch_inventory = await get_batch_inventory()
        return self._batch_inventory

    async def _get_disposal_store(self) -> IDisposalStore:
        if self._disposal_store is None:
            from feedmill.infrastructure.storage.sqlite import get_disposal_store

            self._disposal_store = await get_disposal_store()
        return self._disposal_store

    async def _get_production_store(self) -> IProductionStore:
        if self._production_store is None:
            from feedmill.infrastructure.storage.sqlite import get_production_store

            self._production_store = await get_production_store()
        return self._production_store

    async def _get_formula_store(self) -> IFormulaStore:
        if self._formula_store is None:
            from feedmill.infrastructure.storage.sqlite import get_formula_store

            self._formula_store = await get_formula_store()
        return self._formula_store

    async def execute(self, request: ExecuteDisposalRequest) -> DisposalRecord:
        reason = parse_reason(request.reason)
        logger.info(
            "disposal_started",
            batch_id=request.batch_id,
            quantity=request.quantity,
            reason=reason.value,
            user_id=request.user_id,
        )

        batches = await self._get_batch_inventory()
        disposal_store = await self._get_disposal_store()
        quantity = quantize(request.quantity)

        async with self._transaction() as conn:
            batch = await batches.get_batch(request.batch_id, conn=conn)
            if batch is None:
                raise BatchNotFoundError(request.batch_id)
            if quantity > batch.quantity:
                logger.warning(
                    "disposal_insufficient_stock",
                    batch_id=batch.id,
                    requested=quantity,
                    available=batch.quantity,
                )
                raise InsufficientStockError("batch", batch.id, quantity, batch.quantity)

            loss = await self._loss(batch, quantity, conn)
            disposal = await disposal_store.create_disposal(
                DisposalRecord(
                    batch_id=batch.id,
                    product_id=batch.product_id,
                    quantity=quantity,
                    reason=reason,
                    action=request.action,
                    reference=request.reference,
                    disposal_date=request.disposal_date or utc_now().date(),
                    loss_amount=loss,
                    user_id=request.user_id,
                ),
                conn=conn,
            )
            await batches.consume_batch(
                batch.id,
                quantity,
                MovementSource.DISPOSAL,
                reference_id=disposal.id,
                notes=f"disposal {disposal.id}: {reason.value}",
                conn=conn,
            )

        logger.info(
            "disposal_complete",
            disposal_id=disposal.id,
            batch_id=batch.id,
            loss_amount=disposal.loss_amount,
        )
        await record_activity(
            self._activity_log,
            request.user_id,
            "stock_disposed",
            f"Disposal {disposal.id}: {quantity:g} from batch {batch.id} "
            f"({reason.value}), loss {disposal.loss_amount:,.2f}",
        )
        return disposal

    async def _loss(self, batch: ProductBatch, quantity: float, conn: Any) -> float:
        """Material cost of the disposed quantity, 0 when the batch cannot be traced."""
        if batch.production_run_id is None:
            return 0.0
        run = await (await self._get_production_store()).get_run(
            batch.production_run_id, conn=conn
        )
        if run is None or run.formula_id is None:
            return 0.0
        formula = await (await self._get_formula_store()).get_formula(run.formula_id, conn=conn)
        if formula is None:
            return 0.0
        return formula.cost_of(quantity)

    async def execute_bulk(self, request: BulkDisposalRequest) -> BulkDisposalResponse:
        """
        Dispose several batches independently.

        Each item commits on its own; a failed item is reported and the rest
        still run.
        """
        results: list[BulkDisposalItemResponse] = []
        total_loss = 0.0
        for item in request.items:
            try:
                disposal = await self.execute(item)
            except FeedmillError as e:
                logger.warning(
                    "bulk_disposal_item_failed",
                    batch_id=item.batch_id,
                    error_code=e.code,
                )
                results.append(
                    BulkDisposalItemResponse(
                        batch_id=item.batch_id,
                        success=False,
                        error_code=e.code,
                        message=e.message,
                    )
                )
                continue
            total_loss += disposal.loss_amount
            results.append(
                BulkDisposalItemResponse(
                    batch_id=item.batch_id,
                    success=True,
                    disposal=DisposalResponse.model_validate(disposal),
                )
            )

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "bulk_disposal_complete",
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )
        return BulkDisposalResponse(
            succeeded=succeeded,
            failed=len(results) - succeeded,
            total_loss=quantize(total_loss),
            results=results,
        )

    async def get_disposal(self, disposal_id: int) -> DisposalRecord:
        disposal = await (await self._get_disposal_store()).get_disposal(disposal_id)
        if disposal is None:
            raise DisposalNotFoundError(disposal_id)
        return disposal

    def to_response(self, disposal: DisposalRecord) -> DisposalResponse:
        return DisposalResponse.model_validate(disposal)
