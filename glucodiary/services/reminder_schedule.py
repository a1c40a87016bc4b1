"""Next reminder times for the notification scheduler.

For each enabled slot, the next occurrence of its wall-clock time: today
if it has not passed yet, otherwise tomorrow.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta

from glucodiary.models.glucose import GLUCOSE_TYPE_LABELS, GLUCOSE_TYPES, GlucoseType
from glucodiary.schemas.reminders import RemindersConfig

REMINDER_TITLE = "Glucose reminder"


@dataclass(frozen=True)
class ScheduledReminder:
    """A reminder due at a specific moment."""

    glucose_type: GlucoseType
    label: str
    due_at: datetime

    @property
    def title(self) -> str:
        return REMINDER_TITLE

    @property
    def message(self) -> str:
        return f"Time to measure your glucose: {self.label}"


def parse_reminder_time(value: str) -> time:
    """Parse an HH:mm string."""
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def next_occurrence(at: time, now: datetime) -> datetime:
    """Next datetime at wall-clock time `at`, keeping now's tzinfo."""
    candidate = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    if candidate < now:
        candidate += timedelta(days=1)
    return candidate


def upcoming_reminders(config: RemindersConfig, now: datetime) -> list[ScheduledReminder]:
    """Next occurrence of every enabled reminder, soonest first.

    Args:
        config: Reminder configuration
        now: Current local time

    Returns:
        ScheduledReminder list sorted by due_at
    """
    reminders = []
    for glucose_type in GLUCOSE_TYPES:
        slot = config.slot(glucose_type)
        if not slot.enabled:
            continue
        reminders.append(
            ScheduledReminder(
                glucose_type=glucose_type,
                label=GLUCOSE_TYPE_LABELS[glucose_type],
                due_at=next_occurrence(parse_reminder_time(slot.time), now),
            )
        )
    return sorted(reminders, key=lambda r: r.due_at)
