"""Declarative base and shared column types for the local store."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import BigInteger, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MICROSECOND = timedelta(microseconds=1)


class Base(DeclarativeBase):
    """Base class for all local ORM models."""


class TimestampMixin:
    """Adds a server-assigned created_at column."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


def ensure_aware(value: datetime) -> datetime:
    """Attach the device timezone to a naive (wall-clock) datetime."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


class EpochMicros(TypeDecorator):
    """Stores an aware datetime as integer microseconds since the Unix epoch.

    Integers sort chronologically in SQLite and round-trip exactly, which
    ISO strings with mixed offsets do not. Naive datetimes are taken as
    device-local time. Values are returned as UTC-aware datetimes.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> int | None:
        if value is None:
            return None
        return (ensure_aware(value) - _EPOCH) // _MICROSECOND

    def process_result_value(self, value: int | None, dialect) -> datetime | None:
        if value is None:
            return None
        return _EPOCH + timedelta(microseconds=value)
