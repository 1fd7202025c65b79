"""Core interfaces (ports) for dependency injection."""

from feedmill.core.interfaces.catalog import IFormulaStore, IMaterialStore, IProductStore
from feedmill.core.interfaces.inventory import IBatchInventory, IMaterialInventory
from feedmill.core.interfaces.ledger import IMovementLedger
from feedmill.core.interfaces.records import (
    IActivityLog,
    IDisposalStore,
    IProductionStore,
    ISaleStore,
)

__all__ = [
    "IActivityLog",
    "IBatchInventory",
    "IDisposalStore",
    "IFormulaStore",
    "IMaterialInventory",
    "IMaterialStore",
    "IMovementLedger",
    "IProductStore",
    "IProductionStore",
    "ISaleStore",
]
