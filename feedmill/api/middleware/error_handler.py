"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from feedmill.application.dto.responses import ErrorResponse
from feedmill.config import get_logger
from feedmill.core.exceptions import (
    BusyError,
    ConfigurationError,
    DatabaseError,
    DuplicateError,
    FeedmillError,
    FormulaInactiveError,
    InsufficientMaterialsError,
    InsufficientStockError,
    InvalidMovementError,
    InvalidReasonError,
    InvalidStateTransitionError,
    MaterialInUseError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)

# Seconds a client should wait before retrying after BUSY
RETRY_AFTER_SECONDS = 1


# Map exceptions to HTTP status codes. First match wins.
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    InvalidMovementError: status.HTTP_400_BAD_REQUEST,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidReasonError: status.HTTP_400_BAD_REQUEST,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    InsufficientMaterialsError: status.HTTP_409_CONFLICT,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
    FormulaInactiveError: status.HTTP_409_CONFLICT,
    MaterialInUseError: status.HTTP_409_CONFLICT,
    DuplicateError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    BusyError: status.HTTP_503_SERVICE_UNAVAILABLE,
    DatabaseError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "INSUFFICIENT_STOCK": "Reduce the quantity or replenish stock first.",
    "INSUFFICIENT_MATERIALS": "Restock the listed materials or lower the production quantity.",
    "INVALID_MOVEMENT": "Quantity must be at least 0.01 and target exactly one material or batch.",
    "INVALID_STATE_TRANSITION": "Only pending production runs can be completed or cancelled.",
    "FORMULA_INACTIVE": "Activate the formula or use the product's active formula.",
    "INVALID_REASON": "Use one of: expired, damaged, lost, other.",
    "MATERIAL_IN_USE": "Bring the balance to zero and remove the material from formulas first.",
    "DUPLICATE": "A record with the same unique value already exists.",
    "MATERIAL_NOT_FOUND": "Check the material ID and try GET /api/materials to list materials.",
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/products to list products.",
    "BATCH_NOT_FOUND": "Check the batch ID and try GET /api/products/{id}/batches.",
    "FORMULA_NOT_FOUND": "Check the formula ID.",
    "PRODUCTION_RUN_NOT_FOUND": "Check the production run ID.",
    "BUSY": "The stock ledger is busy. Retry the request shortly.",
    "VALIDATION_ERROR": "Check the request fields against the API schema.",
    "DATABASE_ERROR": "The database rejected the operation; nothing was committed.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the quantities and identifiers in the request.",
    404: "No record with that ID. List the collection to find valid IDs.",
    405: "This path does not accept that HTTP method.",
    409: "The request conflicts with the current stock state.",
    422: "Check field types and ranges; quantities must be positive.",
    500: "Internal error. No stock change was committed; check server logs.",
    503: "The stock ledger is busy. Retry after the Retry-After delay.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON error response."""
    status_code = _status_for(exc)

    if isinstance(exc, FeedmillError):
        error_code = exc.code
        message = exc.message
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        message = "Internal server error"
        details = None

    if status_code >= 500:
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=error_code,
            error=str(exc),
            traceback=traceback.format_exc(),
        )
    else:
        logger.warning(
            "request_rejected",
            path=request.url.path,
            error_code=error_code,
            error=str(exc),
        )

    body = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        details=details,
        path=request.url.path,
    )
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if isinstance(exc, BusyError) else None
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Last line of defence for exceptions no handler claimed.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(FeedmillError)
    async def feedmill_exception_handler(
        request: Request,
        exc: FeedmillError,
    ) -> JSONResponse:
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Pydantic rejections, e.g. a zero quantity or an unknown payment method."""
        fields = [
            {
                "field": ".".join(str(part) for part in error["loc"] if part != "body"),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        logger.info("request_invalid", path=request.url.path, fields=[f["field"] for f in fields])

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint=_get_hint("VALIDATION_ERROR", 422),
                detail="; ".join(f"{f['field']}: {f['message']}" for f in fields),
                details={"fields": fields},
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Routing errors (unknown path, wrong method) in the same format."""
        error_code = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}.get(
            exc.status_code, "HTTP_ERROR"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=str(exc.detail) if exc.detail else "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
            headers=getattr(exc, "headers", None),
        )
