"""Column encoding for dates and timestamps."""

from datetime import UTC, date, datetime


def to_db_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO string, so text comparison orders chronologically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_db_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def from_db_date(value: str | None) -> date | None:
    return date.fromisoformat(value[:10]) if value else None
