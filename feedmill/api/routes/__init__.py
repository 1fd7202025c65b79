"""API route modules."""

from feedmill.api.routes.disposals import router as disposals_router
from feedmill.api.routes.health import router as health_router
from feedmill.api.routes.materials import router as materials_router
from feedmill.api.routes.movements import router as movements_router
from feedmill.api.routes.planning import router as planning_router
from feedmill.api.routes.production import router as production_router
from feedmill.api.routes.products import router as products_router
from feedmill.api.routes.sales import router as sales_router

__all__ = [
    "health_router",
    "materials_router",
    "products_router",
    "production_router",
    "sales_router",
    "disposals_router",
    "planning_router",
    "movements_router",
]
