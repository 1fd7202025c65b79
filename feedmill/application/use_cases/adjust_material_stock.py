"""Adjust Material Stock Use Case - purchases, stock takes and corrections."""

from dataclasses import dataclass

from feedmill.application.dto.requests import AdjustMaterialStockRequest
from feedmill.application.dto.responses import MaterialResponse
from feedmill.application.use_cases.audit import record_activity
from feedmill.config import get_logger
from feedmill.core.entities.material import Material
from feedmill.core.entities.movement import MovementDirection
from feedmill.core.interfaces.inventory import IMaterialInventory
from feedmill.core.interfaces.records import IActivityLog

logger = get_logger(__name__)


@dataclass
class AdjustStockResult:
    material: Material
    direction: MovementDirection
    quantity: float


class AdjustMaterialStockUseCase:
    """Increase or decrease a material balance through the inventory."""

    def __init__(
        self,
        material_inventory: IMaterialInventory | None = None,
        activity_log: IActivityLog | None = None,
    ):
        self._inventory = material_inventory
        self._activity_log = activity_log

    async def _get_inventory(self) -> IMaterialInventory:
        if self._inventory is None:
            from feedmill.infrastructure.storage.sqlite import get_material_inventory

            self._inventory = await get_material_inventory()
        return self._inventory

    async def execute(self, request: AdjustMaterialStockRequest) -> AdjustStockResult:
        logger.info(
            "adjust_material_stock_started",
            material_id=request.material_id,
            direction=request.direction.value,
            quantity=request.quantity,
            user_id=request.user_id,
        )
        inventory = await self._get_inventory()

        if request.direction == MovementDirection.IN:
            material = await inventory.increase(
                request.material_id,
                request.quantity,
                request.source,
                reference_id=request.reference_id,
                notes=request.notes,
            )
        else:
            material = await inventory.decrease(
                request.material_id,
                request.quantity,
                request.source,
                reference_id=request.reference_id,
                notes=request.notes,
            )

        logger.info(
            "adjust_material_stock_complete",
            material_id=material.id,
            balance=material.stock,
        )
        sign = "+" if request.direction == MovementDirection.IN else "-"
        await record_activity(
            self._activity_log,
            request.user_id,
            "material_stock_adjusted",
            f"{material.name}: {sign}{request.quantity:g} {material.unit} "
            f"({request.source.value}), balance {material.stock:g}",
        )
        return AdjustStockResult(
            material=material,
            direction=request.direction,
            quantity=request.quantity,
        )

    def to_response(self, result: AdjustStockResult) -> MaterialResponse:
        return MaterialResponse.model_validate(result.material)
