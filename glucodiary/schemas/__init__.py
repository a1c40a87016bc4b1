from glucodiary.schemas.auth import LoginRequest, RegisterRequest, UserResponse
from glucodiary.schemas.glucose import (
    GlucoseReadingCreate,
    GlucoseReadingInsert,
    GlucoseReadingPatch,
    GlucoseReadingResponse,
    GlucoseReadingUpdate,
    GlucoseStats,
    TypeStats,
)
from glucodiary.schemas.reminders import (
    ReminderConfig,
    RemindersConfig,
    default_reminders_config,
)

__all__ = [
    "GlucoseReadingCreate",
    "GlucoseReadingInsert",
    "GlucoseReadingPatch",
    "GlucoseReadingResponse",
    "GlucoseReadingUpdate",
    "GlucoseStats",
    "LoginRequest",
    "RegisterRequest",
    "ReminderConfig",
    "RemindersConfig",
    "TypeStats",
    "UserResponse",
    "default_reminders_config",
]
