# Local Store Models
from glucodiary.models.base import Base, EpochMicros, TimestampMixin
from glucodiary.models.glucose import (
    GLUCOSE_TYPE_LABELS,
    GLUCOSE_TYPES,
    GlucoseReading,
    GlucoseType,
)
from glucodiary.models.reminders import REMINDERS_CONFIG_KEY, RemindersConfigRecord
from glucodiary.models.user import SESSION_KEY, Session, User

__all__ = [
    "Base",
    "EpochMicros",
    "GLUCOSE_TYPES",
    "GLUCOSE_TYPE_LABELS",
    "GlucoseReading",
    "GlucoseType",
    "REMINDERS_CONFIG_KEY",
    "RemindersConfigRecord",
    "SESSION_KEY",
    "Session",
    "TimestampMixin",
    "User",
]
