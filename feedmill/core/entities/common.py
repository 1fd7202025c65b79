"""Shared helpers for quantities and timestamps."""

from datetime import UTC, datetime

QUANTITY_PLACES = 2


def quantize(value: float) -> float:
    """Round a quantity or amount to the stored precision."""
    return round(float(value), QUANTITY_PLACES) + 0.0


def utc_now() -> datetime:
    return datetime.now(UTC)
