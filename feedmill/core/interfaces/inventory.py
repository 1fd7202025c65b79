"""Abstract interfaces for the two inventories."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any

from feedmill.core.entities.material import Material
from feedmill.core.entities.movement import MovementSource, StockMovement
from feedmill.core.entities.product import ProductBatch


class IMaterialInventory(ABC):
    """Running balance per material, mutated only together with a ledger entry."""

    @abstractmethod
    async def increase(
        self,
        material_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: Any = None,
    ) -> Material:
        pass

    @abstractmethod
    async def decrease(
        self,
        material_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: Any = None,
    ) -> Material:
        """Raises InsufficientStockError if quantity exceeds the balance."""
        pass

    @abstractmethod
    async def get_balance(self, material_id: int, conn: Any = None) -> float:
        pass

    @abstractmethod
    async def daily_usage(self, material_id: int, window_days: int = 30) -> float:
        """Outbound quantity over the trailing window divided by its length."""
        pass


class IBatchInventory(ABC):
    """Per-production batches of finished products, depleted FIFO."""

    @abstractmethod
    async def create_batch(
        self,
        product_id: int,
        production_run_id: int | None,
        quantity: float,
        expiry_date: date | None = None,
        source: MovementSource = MovementSource.PRODUCTION,
        conn: Any = None,
    ) -> ProductBatch:
        pass

    @abstractmethod
    async def consume_fifo(
        self,
        product_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: Any = None,
    ) -> list[StockMovement]:
        """
        Deduct ``quantity`` from the oldest batches first.

        Returns one outbound movement per batch touched. Raises
        InsufficientStockError without touching anything if the product's
        batches cannot cover the request.
        """
        pass

    @abstractmethod
    async def consume_batch(
        self,
        batch_id: int,
        quantity: float,
        source: MovementSource,
        reference_id: int | None = None,
        notes: str | None = None,
        conn: Any = None,
    ) -> ProductBatch:
        """Deduct from one specific batch."""
        pass

    @abstractmethod
    async def total_available(self, product_id: int, conn: Any = None) -> float:
        pass

    @abstractmethod
    async def get_batch(self, batch_id: int, conn: Any = None) -> ProductBatch | None:
        pass

    @abstractmethod
    async def list_batches(
        self, product_id: int, available_only: bool = True
    ) -> list[ProductBatch]:
        """Batches of a product in FIFO order."""
        pass

    @abstractmethod
    async def list_expiring(self, before: date) -> list[ProductBatch]:
        """Batches with stock left whose expiry date is on or before ``before``."""
        pass
