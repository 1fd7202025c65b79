"""SQLite storage implementations."""

from feedmill.infrastructure.storage.sqlite.activity_log import SQLiteActivityLog
from feedmill.infrastructure.storage.sqlite.batch_inventory import SQLiteBatchInventory
from feedmill.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    join_connection,
    join_transaction,
)
from feedmill.infrastructure.storage.sqlite.disposal_store import SQLiteDisposalStore
from feedmill.infrastructure.storage.sqlite.formula_store import SQLiteFormulaStore
from feedmill.infrastructure.storage.sqlite.material_inventory import SQLiteMaterialInventory
from feedmill.infrastructure.storage.sqlite.material_store import SQLiteMaterialStore
from feedmill.infrastructure.storage.sqlite.movement_ledger import SQLiteMovementLedger
from feedmill.infrastructure.storage.sqlite.product_store import SQLiteProductStore
from feedmill.infrastructure.storage.sqlite.production_store import SQLiteProductionStore
from feedmill.infrastructure.storage.sqlite.sale_store import SQLiteSaleStore

# Singleton instances
_ledger: SQLiteMovementLedger | None = None
_material_store: SQLiteMaterialStore | None = None
_material_inventory: SQLiteMaterialInventory | None = None
_product_store: SQLiteProductStore | None = None
_batch_inventory: SQLiteBatchInventory | None = None
_formula_store: SQLiteFormulaStore | None = None
_production_store: SQLiteProductionStore | None = None
_sale_store: SQLiteSaleStore | None = None
_disposal_store: SQLiteDisposalStore | None = None
_activity_log: SQLiteActivityLog | None = None


async def get_movement_ledger() -> SQLiteMovementLedger:
    """Get singleton movement ledger instance."""
    global _ledger
    if _ledger is None:
        _ledger = SQLiteMovementLedger()
    return _ledger


async def get_material_store() -> SQLiteMaterialStore:
    """Get singleton material store instance."""
    global _material_store
    if _material_store is None:
        _material_store = SQLiteMaterialStore(await get_movement_ledger())
    return _material_store


async def get_material_inventory() -> SQLiteMaterialInventory:
    """Get singleton material inventory instance."""
    global _material_inventory
    if _material_inventory is None:
        _material_inventory = SQLiteMaterialInventory(
            await get_movement_ledger(), await get_material_store()
        )
    return _material_inventory


async def get_product_store() -> SQLiteProductStore:
    """Get singleton product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = SQLiteProductStore()
    return _product_store


async def get_batch_inventory() -> SQLiteBatchInventory:
    """Get singleton batch inventory instance."""
    global _batch_inventory
    if _batch_inventory is None:
        _batch_inventory = SQLiteBatchInventory(await get_movement_ledger())
    return _batch_inventory


async def get_formula_store() -> SQLiteFormulaStore:
    """Get singleton formula store instance."""
    global _formula_store
    if _formula_store is None:
        _formula_store = SQLiteFormulaStore()
    return _formula_store


async def get_production_store() -> SQLiteProductionStore:
    """Get singleton production store instance."""
    global _production_store
    if _production_store is None:
        _production_store = SQLiteProductionStore()
    return _production_store


async def get_sale_store() -> SQLiteSaleStore:
    """Get singleton sale store instance."""
    global _sale_store
    if _sale_store is None:
        _sale_store = SQLiteSaleStore()
    return _sale_store


async def get_disposal_store() -> SQLiteDisposalStore:
    """Get singleton disposal store instance."""
    global _disposal_store
    if _disposal_store is None:
        _disposal_store = SQLiteDisposalStore()
    return _disposal_store


async def get_activity_log() -> SQLiteActivityLog:
    """Get singleton activity log instance."""
    global _activity_log
    if _activity_log is None:
        _activity_log = SQLiteActivityLog()
    return _activity_log


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "join_connection",
    "join_transaction",
    # Store classes
    "SQLiteActivityLog",
    "SQLiteBatchInventory",
    "SQLiteDisposalStore",
    "SQLiteFormulaStore",
    "SQLiteMaterialInventory",
    "SQLiteMaterialStore",
    "SQLiteMovementLedger",
    "SQLiteProductStore",
    "SQLiteProductionStore",
    "SQLiteSaleStore",
    # Factory functions
    "get_activity_log",
    "get_batch_inventory",
    "get_disposal_store",
    "get_formula_store",
    "get_material_inventory",
    "get_material_store",
    "get_movement_ledger",
    "get_product_store",
    "get_production_store",
    "get_sale_store",
]
