"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate stores and core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for stock-mutating API handlers.
"""

from feedmill.application.dto.requests import (
    AdjustMaterialStockRequest,
    BulkDisposalRequest,
    CheckProductionRequest,
    ExecuteDisposalRequest,
    ExecuteProductionRequest,
    ExecuteSaleRequest,
    ProductionActionRequest,
)
from feedmill.application.dto.responses import (
    ErrorResponse,
    HealthResponse,
    ProductionResponse,
    SaleResultResponse,
)
from feedmill.application.services import get_reorder_planner, reset_services
from feedmill.application.use_cases import (
    AdjustMaterialStockUseCase,
    CancelProductionUseCase,
    ExecuteDisposalUseCase,
    ExecuteProductionUseCase,
    ExecuteSaleUseCase,
    PlanProductionUseCase,
)

__all__ = [
    # Request DTOs
    "AdjustMaterialStockRequest",
    "ExecuteProductionRequest",
    "ProductionActionRequest",
    "CheckProductionRequest",
    "ExecuteSaleRequest",
    "ExecuteDisposalRequest",
    "BulkDisposalRequest",
    # Response DTOs
    "ProductionResponse",
    "SaleResultResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "AdjustMaterialStockUseCase",
    "ExecuteProductionUseCase",
    "CancelProductionUseCase",
    "PlanProductionUseCase",
    "ExecuteSaleUseCase",
    "ExecuteDisposalUseCase",
    # Service factories
    "get_reorder_planner",
    "reset_services",
]
