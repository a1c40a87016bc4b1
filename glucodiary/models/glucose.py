"""Glucose reading model.

Readings logged by the user, tagged by meal-relative timing.
"""

import enum
from datetime import datetime

from sqlalchemy import Boolean, Enum, Float, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from glucodiary.models.base import Base, EpochMicros


class GlucoseType(str, enum.Enum):
    """Meal-relative timing of a reading."""

    FASTING = "FASTING"
    POST_BREAKFAST = "POST_BREAKFAST"
    POST_LUNCH = "POST_LUNCH"
    POST_DINNER = "POST_DINNER"


# Display order used by stats, reminders and reports
GLUCOSE_TYPES: tuple[GlucoseType, ...] = (
    GlucoseType.FASTING,
    GlucoseType.POST_BREAKFAST,
    GlucoseType.POST_LUNCH,
    GlucoseType.POST_DINNER,
)

GLUCOSE_TYPE_LABELS: dict[GlucoseType, str] = {
    GlucoseType.FASTING: "Fasting",
    GlucoseType.POST_BREAKFAST: "Post-breakfast",
    GlucoseType.POST_LUNCH: "Post-lunch",
    GlucoseType.POST_DINNER: "Post-dinner",
}


class GlucoseReading(Base):
    """A glucose reading persisted in the on-device store.

    is_normal is stored as given; the repository derives it before every
    write that touches value or type.
    """

    __tablename__ = "readings"

    __table_args__ = (
        Index("ix_readings_date", "date"),
        Index("ix_readings_type", "type"),
        Index("ix_readings_value", "value"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # mg/dL
    value: Mapped[float] = mapped_column(
        Float,
        nullable=False,
    )

    type: Mapped[GlucoseType] = mapped_column(
        Enum(
            GlucoseType,
            name="glucosetype",
            native_enum=False,
            length=20,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )

    # When the reading was taken (user-supplied)
    date: Mapped[datetime] = mapped_column(
        EpochMicros,
        nullable=False,
    )

    is_normal: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<GlucoseReading(id={self.id}, value={self.value}, "
            f"type={self.type.value}, date={self.date}, is_normal={self.is_normal})>"
        )
