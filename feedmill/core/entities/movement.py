"""Stock movement ledger entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now
from feedmill.core.exceptions import InvalidMovementError

MIN_MOVEMENT_QUANTITY = 0.01


class MovementDirection(str, Enum):
    """Direction of a stock movement."""

    IN = "in"
    OUT = "out"


class MovementSource(str, Enum):
    """What caused a stock movement."""

    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"
    PRODUCTION = "production"
    PRODUCTION_CANCELLED = "production_cancelled"
    SALE = "sale"
    DISPOSAL = "disposal"
    INTERNAL_USE = "internal_use"


class StockMovement(BaseModel):
    """
    Immutable ledger entry.

    Exactly one of ``material_id`` or ``batch_id`` is set. Corrections are
    recorded as new offsetting movements, never as edits.
    """

    id: int | None = None
    direction: MovementDirection
    source: MovementSource
    quantity: float
    material_id: int | None = None
    batch_id: int | None = None
    reference_id: int | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    # Filled by joins on read
    product_id: int | None = None

    def check(self) -> "StockMovement":
        """Raise InvalidMovementError if the entry is malformed."""
        if self.quantity < MIN_MOVEMENT_QUANTITY:
            raise InvalidMovementError(
                f"quantity must be at least {MIN_MOVEMENT_QUANTITY}",
                quantity=self.quantity,
            )
        if self.material_id is None and self.batch_id is None:
            raise InvalidMovementError("either material_id or batch_id is required")
        if self.material_id is not None and self.batch_id is not None:
            raise InvalidMovementError(
                "material_id and batch_id are mutually exclusive",
                material_id=self.material_id,
                batch_id=self.batch_id,
            )
        return self

    @property
    def signed_quantity(self) -> float:
        return self.quantity if self.direction == MovementDirection.IN else -self.quantity
