"""Stock disposal entity."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now


class DisposalReason(str, Enum):
    """Why goods were written off."""

    EXPIRED = "expired"
    DAMAGED = "damaged"
    LOST = "lost"
    OTHER = "other"


class DisposalRecord(BaseModel):
    """Write-off of part of a product batch."""

    id: int | None = None
    batch_id: int
    product_id: int
    quantity: float = Field(gt=0)
    reason: DisposalReason
    action: str | None = None
    reference: str | None = None
    disposal_date: date
    loss_amount: float = 0.0
    user_id: int | None = None
    created_at: datetime = Field(default_factory=utc_now)
