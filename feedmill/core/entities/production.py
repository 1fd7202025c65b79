"""Production run entity and its state machine."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now
from feedmill.core.exceptions import InvalidStateTransitionError


class ProductionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[ProductionStatus, frozenset[ProductionStatus]] = {
    ProductionStatus.PENDING: frozenset(
        {ProductionStatus.COMPLETED, ProductionStatus.CANCELLED}
    ),
    ProductionStatus.COMPLETED: frozenset(),
    ProductionStatus.CANCELLED: frozenset(),
}


class ProductionRun(BaseModel):
    """One execution of a formula for a given output quantity."""

    id: int | None = None
    product_id: int
    formula_id: int | None = None
    quantity: float = Field(gt=0)
    unit: str = "kg"
    production_date: date
    expiry_date: date | None = None
    status: ProductionStatus = ProductionStatus.PENDING
    user_id: int | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def can_transition_to(self, target: ProductionStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: ProductionStatus) -> "ProductionRun":
        """Return a copy in ``target`` state or raise InvalidStateTransitionError."""
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                "production run", self.id, self.status.value, target.value
            )
        return self.model_copy(update={"status": target, "updated_at": utc_now()})
