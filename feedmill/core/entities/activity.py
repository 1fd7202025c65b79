"""Audit trail entry."""

from datetime import datetime

from pydantic import BaseModel, Field

from feedmill.core.entities.common import utc_now


class ActivityLogEntry(BaseModel):
    id: int | None = None
    user_id: int | None = None
    action: str
    description: str
    created_at: datetime = Field(default_factory=utc_now)
