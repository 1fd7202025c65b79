"""Abstract interfaces for workflow records and the audit trail."""

from abc import ABC, abstractmethod
from typing import Any

from feedmill.core.entities.activity import ActivityLogEntry
from feedmill.core.entities.disposal import DisposalRecord
from feedmill.core.entities.production import ProductionRun, ProductionStatus
from feedmill.core.entities.sale import Sale


class IProductionStore(ABC):
    @abstractmethod
    async def create_run(self, run: ProductionRun, conn: Any = None) -> ProductionRun:
        pass

    @abstractmethod
    async def get_run(self, run_id: int, conn: Any = None) -> ProductionRun | None:
        pass

    @abstractmethod
    async def update_status(
        self, run_id: int, status: ProductionStatus, conn: Any = None
    ) -> None:
        pass


class ISaleStore(ABC):
    @abstractmethod
    async def create_sale(self, sale: Sale, conn: Any = None) -> Sale:
        pass

    @abstractmethod
    async def get_sale(self, sale_id: int) -> Sale | None:
        pass


class IDisposalStore(ABC):
    @abstractmethod
    async def create_disposal(
        self, disposal: DisposalRecord, conn: Any = None
    ) -> DisposalRecord:
        pass

    @abstractmethod
    async def get_disposal(self, disposal_id: int) -> DisposalRecord | None:
        pass


class IActivityLog(ABC):
    """Audit sink. Writes happen after the business transaction commits."""

    @abstractmethod
    async def log(self, user_id: int | None, action: str, description: str) -> None:
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 50) -> list[ActivityLogEntry]:
        pass
