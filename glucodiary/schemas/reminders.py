"""Reminder configuration schemas.

Serialized with camelCase slot keys (fasting, postBreakfast, postLunch,
postDinner), which is the JSON shape stored by both backends.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from glucodiary.models.glucose import GlucoseType

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ReminderConfig(BaseModel):
    """One reminder slot."""

    enabled: bool
    time: str = Field(..., pattern=TIME_PATTERN, description="HH:mm wall-clock time")


class RemindersConfig(BaseModel):
    """The full four-slot configuration. Always saved whole."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    fasting: ReminderConfig
    post_breakfast: ReminderConfig
    post_lunch: ReminderConfig
    post_dinner: ReminderConfig

    def to_storage(self) -> dict:
        """JSON-ready dict with camelCase slot keys."""
        return self.model_dump(by_alias=True)

    def slot(self, glucose_type: GlucoseType) -> ReminderConfig:
        """Reminder slot for a reading type."""
        return getattr(self, SLOT_FIELDS[GlucoseType(glucose_type)])


SLOT_FIELDS: dict[GlucoseType, str] = {
    GlucoseType.FASTING: "fasting",
    GlucoseType.POST_BREAKFAST: "post_breakfast",
    GlucoseType.POST_LUNCH: "post_lunch",
    GlucoseType.POST_DINNER: "post_dinner",
}


def default_reminders_config() -> RemindersConfig:
    """Baseline configuration used when no store has one."""
    return RemindersConfig(
        fasting=ReminderConfig(enabled=True, time="07:00"),
        post_breakfast=ReminderConfig(enabled=True, time="09:00"),
        post_lunch=ReminderConfig(enabled=True, time="13:00"),
        post_dinner=ReminderConfig(enabled=True, time="20:00"),
    )
