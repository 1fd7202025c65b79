"""Abstract interface for the stock movement ledger."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any

from feedmill.core.entities.movement import (
    MovementDirection,
    MovementSource,
    StockMovement,
)


class IMovementLedger(ABC):
    """
    Append-only record of every stock change.

    ``record`` never touches balances; callers mutate the balance and record
    the movement in the same transaction by passing its handle as ``conn``.
    """

    @abstractmethod
    async def record(self, movement: StockMovement, conn: Any = None) -> StockMovement:
        """Validate and append a movement. Raises InvalidMovementError."""
        pass

    @abstractmethod
    async def list_by_material(
        self,
        material_id: int,
        direction: MovementDirection | None = None,
        limit: int = 100,
    ) -> list[StockMovement]:
        """Movements of a material, newest first."""
        pass

    @abstractmethod
    async def list_by_product(
        self,
        product_id: int,
        direction: MovementDirection | None = None,
        limit: int = 100,
    ) -> list[StockMovement]:
        """Movements of every batch of a product, newest first."""
        pass

    @abstractmethod
    async def list_by_date_range(
        self, start: datetime, end: datetime, limit: int = 500
    ) -> list[StockMovement]:
        """Movements created in [start, end)."""
        pass

    @abstractmethod
    async def list_today(self, limit: int = 500) -> list[StockMovement]:
        pass

    @abstractmethod
    async def list_recent(self, days: int = 7, limit: int = 500) -> list[StockMovement]:
        pass

    @abstractmethod
    async def list_by_reference(
        self, source: MovementSource, reference_id: int, conn: Any = None
    ) -> list[StockMovement]:
        """Movements linked to one production run, sale or disposal."""
        pass

    @abstractmethod
    async def outbound_total(self, material_id: int, since: datetime) -> float:
        """Sum of outbound quantities of a material since ``since``."""
        pass

    @abstractmethod
    async def outbound_count(self, material_id: int, since: datetime) -> int:
        """Number of outbound movements of a material since ``since``."""
        pass

    @abstractmethod
    async def daily_outbound(
        self, material_id: int, since: datetime
    ) -> dict[date, float]:
        """Outbound quantity per UTC day since ``since``; days without usage are absent."""
        pass
