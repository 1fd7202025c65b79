"""
Domain exceptions for the feedmill engine.

Every rejection a caller can observe is one of these. None of them is retried
inside the engine; ``BusyError`` is the only one where repeating the identical
call is safe, because nothing was applied.
"""

from typing import Any


class FeedmillError(Exception):
    """Base exception for all feedmill errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Ledger Exceptions
class InvalidMovementError(FeedmillError):
    """Malformed ledger entry."""

    def __init__(self, reason: str, **details: Any):
        super().__init__(
            f"Invalid stock movement: {reason}",
            code="INVALID_MOVEMENT",
            details={"reason": reason, **details},
        )


# Business rule rejections
class InsufficientStockError(FeedmillError):
    """Requested quantity exceeds what is on hand."""

    def __init__(
        self,
        item_type: str,
        item_id: int,
        requested: float,
        available: float,
        name: str | None = None,
    ):
        label = name or f"{item_type} {item_id}"
        super().__init__(
            f"Insufficient stock for {label}: requested {requested:g}, "
            f"available {available:g}, short by {round(requested - available, 2):g}",
            code="INSUFFICIENT_STOCK",
            details={
                "item_type": item_type,
                "item_id": item_id,
                "name": name,
                "requested": requested,
                "available": available,
                "shortage": round(requested - available, 2),
            },
        )


class InsufficientMaterialsError(FeedmillError):
    """One or more formula materials cannot cover a production request."""

    def __init__(self, shortages: list[dict[str, Any]]):
        names = ", ".join(
            f"{s.get('name') or s['material_id']} (short {s['shortage']:g})"
            for s in shortages
        )
        super().__init__(
            f"Insufficient materials: {names}",
            code="INSUFFICIENT_MATERIALS",
            details={"shortages": shortages},
        )
        self.shortages = shortages


class InvalidStateTransitionError(FeedmillError):
    """Workflow state change that the state machine does not allow."""

    def __init__(self, entity: str, entity_id: int | None, current: str, target: str):
        super().__init__(
            f"Cannot move {entity} {entity_id} from '{current}' to '{target}'",
            code="INVALID_STATE_TRANSITION",
            details={
                "entity": entity,
                "entity_id": entity_id,
                "current": current,
                "target": target,
            },
        )


class FormulaInactiveError(FeedmillError):
    """Formula exists but is not active."""

    def __init__(self, formula_id: int):
        super().__init__(
            f"Formula {formula_id} is not active",
            code="FORMULA_INACTIVE",
            details={"formula_id": formula_id},
        )


class InvalidReasonError(FeedmillError):
    """Disposal reason outside the allowed set."""

    def __init__(self, reason: str, allowed: list[str]):
        super().__init__(
            f"Invalid disposal reason '{reason}'. Allowed: {', '.join(allowed)}",
            code="INVALID_REASON",
            details={"reason": reason, "allowed": allowed},
        )


class MaterialInUseError(FeedmillError):
    """Material cannot be deleted while it still has stock or references."""

    def __init__(self, material_id: int, reason: str):
        super().__init__(
            f"Material {material_id} cannot be deleted: {reason}",
            code="MATERIAL_IN_USE",
            details={"material_id": material_id, "reason": reason},
        )


class DuplicateError(FeedmillError):
    """Unique catalog attribute already taken."""

    def __init__(self, entity: str, field: str, value: Any):
        super().__init__(
            f"{entity} with {field} '{value}' already exists",
            code="DUPLICATE",
            details={"entity": entity, "field": field, "value": value},
        )


# Not found
class NotFoundError(FeedmillError):
    """Base exception for unknown identifiers."""

    entity = "Entity"

    def __init__(self, entity_id: int | str):
        code = f"{self.entity.upper().replace(' ', '_')}_NOT_FOUND"
        super().__init__(
            f"{self.entity} not found: {entity_id}",
            code=code,
            details={"id": entity_id},
        )


class MaterialNotFoundError(NotFoundError):
    entity = "Material"


class ProductNotFoundError(NotFoundError):
    entity = "Product"


class BatchNotFoundError(NotFoundError):
    entity = "Batch"


class FormulaNotFoundError(NotFoundError):
    entity = "Formula"


class ProductionRunNotFoundError(NotFoundError):
    entity = "Production run"


class SaleNotFoundError(NotFoundError):
    entity = "Sale"


class DisposalNotFoundError(NotFoundError):
    entity = "Disposal"


# Storage Exceptions
class StorageError(FeedmillError):
    """Base exception for storage operations."""

    pass


class BusyError(StorageError):
    """Write lock could not be acquired within the lock-wait limit."""

    def __init__(self, operation: str, timeout_ms: int | None = None):
        super().__init__(
            f"Database busy during {operation}; retry later",
            code="BUSY",
            details={"operation": operation, "timeout_ms": timeout_ms},
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


# Validation Exceptions
class ValidationError(FeedmillError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class ConfigurationError(FeedmillError):
    """Configuration error."""

    pass
