"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedmill import __version__
from feedmill.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from feedmill.api.middleware.error_handler import setup_exception_handlers
from feedmill.api.routes import (
    disposals_router,
    health_router,
    materials_router,
    movements_router,
    planning_router,
    production_router,
    products_router,
    sales_router,
)
from feedmill.config import configure_logging, get_logger, get_settings
from feedmill.core.exceptions import ConfigurationError
from feedmill.infrastructure.storage.sqlite import close_pool, get_pool
from feedmill.infrastructure.storage.sqlite.migrations import (
    initialize_database,
    reconcile_ledger,
)

logger = get_logger(__name__)

ROUTERS = (
    health_router,
    materials_router,
    products_router,
    production_router,
    sales_router,
    disposals_router,
    planning_router,
    movements_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Migrate, open the pool and check the ledger on startup; close on shutdown.

    A failed migration aborts startup. Ledger drift is only reported, the
    service still starts so the drift can be inspected.
    """
    configure_logging()
    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        db_path=str(settings.storage.db_path),
    )

    results = await initialize_database()
    failed = [r for r in results if not r.success]
    if failed:
        raise ConfigurationError(
            f"Migration v{failed[0].version} failed: {failed[0].error}",
            details={"version": failed[0].version},
        )
    logger.info("database_ready", migrations_applied=len(results))

    await get_pool()
    drift = await reconcile_ledger()
    if drift["materials"] or drift["batches"]:
        logger.warning(
            "startup_ledger_drift",
            materials=[d["material_id"] for d in drift["materials"]],
            batches=[d["batch_id"] for d in drift["batches"]],
        )

    logger.info("application_started")
    try:
        yield
    finally:
        await close_pool()
        logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Stock ledger, reorder planning and production/sales/disposal workflows",
        version=__version__,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # The middleware added last runs outermost, so logging sees error responses
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "Retry-After"],
        )

    setup_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"name": settings.app_name, "version": __version__, "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "feedmill.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )
