"""
Service factory functions for dependency injection.

Wires the SQLite stores to core services. Use cases and API dependencies
import from here.
"""

from typing import TYPE_CHECKING

from feedmill.core.services import ReorderPlanner

if TYPE_CHECKING:
    from feedmill.config.settings import PlanningSettings
    from feedmill.core.interfaces import IMaterialStore, IMovementLedger


# Singleton service instances
_reorder_planner: ReorderPlanner | None = None


async def get_reorder_planner(
    material_store: "IMaterialStore | None" = None,
    ledger: "IMovementLedger | None" = None,
    settings: "PlanningSettings | None" = None,
) -> ReorderPlanner:
    """
    Get or create the ReorderPlanner.

    Any override produces a fresh, uncached instance.
    """
    global _reorder_planner

    overridden = material_store is not None or ledger is not None or settings is not None
    if _reorder_planner is not None and not overridden:
        return _reorder_planner

    # Lazy import infrastructure
    from feedmill.infrastructure.storage.sqlite import get_material_store, get_movement_ledger

    planner = ReorderPlanner(
        material_store=material_store or await get_material_store(),
        ledger=ledger or await get_movement_ledger(),
        settings=settings,
    )

    if not overridden:
        _reorder_planner = planner

    return planner


def reset_services() -> None:
    """Reset all service singletons (for testing)."""
    global _reorder_planner
    _reorder_planner = None
