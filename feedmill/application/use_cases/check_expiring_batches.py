"""
Check Expiring Batches Use Case.

Lists product batches with stock left that are already expired or expire
within the warning window.
"""

from collections.abc import Callable
from datetime import date, timedelta

from feedmill.config import get_logger, get_settings
from feedmill.core.entities.common import utc_now
from feedmill.core.entities.planning import ExpiringBatch
from feedmill.core.interfaces.catalog import IProductStore
from feedmill.core.interfaces.inventory import IBatchInventory

logger = get_logger(__name__)


class CheckExpiringBatchesUseCase:
    def __init__(
        self,
        batch_inventory: IBatchInventory | None = None,
        product_store: IProductStore | None = None,
        today: Callable[[], date] | None = None,
    ):
        self._batch_inventory = batch_inventory
        self._product_store = product_store
        self._today = today or (lambda: utc_now().date())

    async def _get_batch_inventory(self) -> IBatchInventory:
        if self._batch_inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_batch_inventory

            self._batch_inventory = await get_batch_inventory()
        return self._batch_inventory

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from feedmill.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def execute(self, within_days: int | None = None) -> list[ExpiringBatch]:
        """
        Batches expiring on or before today + ``within_days``, soonest first.

        Args:
            within_days: Look-ahead window; defaults to the planning setting.
        """
        if within_days is None:
            within_days = get_settings().planning.expiry_warning_days
        today = self._today()

        batches = await (await self._get_batch_inventory()).list_expiring(
            today + timedelta(days=within_days)
        )
        product_store = await self._get_product_store()

        names: dict[int, str] = {}
        result = []
        for batch in batches:
            if batch.expiry_date is None or batch.id is None:
                continue
            if batch.product_id not in names:
                product = await product_store.get_product(batch.product_id)
                names[batch.product_id] = product.name if product else f"#{batch.product_id}"
            days_left = (batch.expiry_date - today).days
            result.append(
                ExpiringBatch(
                    batch_id=batch.id,
                    product_id=batch.product_id,
                    product_name=names[batch.product_id],
                    quantity=batch.quantity,
                    expiry_date=batch.expiry_date,
                    days_until_expiry=days_left,
                    status="expired" if days_left < 0 else "near_expiry",
                )
            )

        logger.info(
            "expiry_check_complete",
            within_days=within_days,
            expired=sum(1 for b in result if b.status == "expired"),
            near_expiry=sum(1 for b in result if b.status == "near_expiry"),
        )
        return result
