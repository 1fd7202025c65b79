"""
Execute Sale Use Case.

A sale is fulfilled from the product's batches oldest first. The sale
record and every batch deduction commit together or not at all.
"""

from dataclasses import dataclass, field

from feedmill.application.dto.requests import ExecuteSaleRequest
from feedmill.application.dto.responses import (
    SaleResponse,
    SaleResultResponse,
    StockMovementResponse,
)
from feedmill.application.use_cases.audit import (
    TransactionFactory,
    default_transaction,
    record_activity,
)
from feedmill.config import get_logger
from feedmill.core.entities.common import quantize, utc_now
from feedmill.core.entities.movement import MovementSource, StockMovement
from feedmill.core.entities.sale import Sale, SaleStatus
from feedmill.core.exceptions import (
    InsufficientStockError,
    ProductNotFoundError,
    SaleNotFoundError,
)
from feedmill.core.interfaces.catalog import IProductStore
from feedmill.core.interfaces.inventory import IBatchInventory
from feedmill.core.interfaces.records import IActivityLog, ISaleStore

logger = get_logger(__name__)


@dataclass
class SaleResult:
    sale: Sale
    movements: list[StockMovement] = field(default_factory=list)


class ExecuteSaleUseCase:
    """Sell a product from stock."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        batch_inventory: IBatchInventory | None = None,
        sale_store: ISaleStore | None = None,
        activity_log: IActivityLog | None = None,
        transaction: TransactionFactory | None = None,
    ):
        self._product_store = product_store
        self._batch_inventory = batch_inventory
        self._sale_store = sale_store
        self._activity_log = activity_log
        self._transaction = transaction or default_transaction

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from feedmill.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_batch_inventory(self) -> IBatchInventory:
        if self._batch_inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_batch_inventory

            self._batch_inventory = await get_batch_inventory()
        return self._batch_inventory

    async def _get_sale_store(self) -> ISaleStore:
        if self._sale_store is None:
            from feedmill.infrastructure.storage.sqlite import get_sale_store

            self._sale_store = await get_sale_store()
        return self._sale_store

    async def execute(self, request: ExecuteSaleRequest) -> SaleResult:
        logger.info(
            "sale_started",
            product_id=request.product_id,
            quantity=request.quantity,
            user_id=request.user_id,
        )

        product_store = await self._get_product_store()
        batches = await self._get_batch_inventory()
        sale_store = await self._get_sale_store()

        quantity = quantize(request.quantity)

        async with self._transaction() as conn:
            product = await product_store.get_product(request.product_id, conn=conn)
            if product is None:
                raise ProductNotFoundError(request.product_id)

            available = await batches.total_available(product.id, conn=conn)
            if available < quantity:
                logger.warning(
                    "sale_insufficient_stock",
                    product_id=product.id,
                    requested=quantity,
                    available=available,
                )
                raise InsufficientStockError(
                    "product", product.id, quantity, available, name=product.name
                )

            unit_price = (
                request.unit_price if request.unit_price is not None else product.selling_price
            )
            sale = await sale_store.create_sale(
                Sale(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=quantize(unit_price),
                    total_amount=quantize(quantity * unit_price),
                    payment_method=request.payment_method,
                    status=SaleStatus.COMPLETED,
                    reference=request.reference,
                    sale_date=request.sale_date or utc_now().date(),
                    user_id=request.user_id,
                ),
                conn=conn,
            )
            movements = await batches.consume_fifo(
                product.id,
                quantity,
                MovementSource.SALE,
                reference_id=sale.id,
                notes=request.reference or f"sale {sale.id}",
                conn=conn,
            )

        logger.info(
            "sale_complete",
            sale_id=sale.id,
            product_id=product.id,
            total_amount=sale.total_amount,
            batches=len(movements),
        )
        await record_activity(
            self._activity_log,
            request.user_id,
            "sale_completed",
            f"Sale {sale.id}: {quantity:g} {product.unit} of {product.name}, "
            f"total {sale.total_amount:,.2f} ({sale.payment_method.value})",
        )
        return SaleResult(sale=sale, movements=movements)

    async def get_sale(self, sale_id: int) -> Sale:
        sale = await (await self._get_sale_store()).get_sale(sale_id)
        if sale is None:
            raise SaleNotFoundError(sale_id)
        return sale

    def to_response(self, result: SaleResult) -> SaleResultResponse:
        return SaleResultResponse(
            sale=SaleResponse.model_validate(result.sale),
            movements=[StockMovementResponse.model_validate(m) for m in result.movements],
        )
