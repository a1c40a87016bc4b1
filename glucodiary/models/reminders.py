"""Reminder configuration model.

A single row per device, keyed by a fixed constant.
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from glucodiary.models.base import Base

REMINDERS_CONFIG_KEY = "main"


class RemindersConfigRecord(Base):
    """Stores the four-slot reminder configuration as JSON."""

    __tablename__ = "reminders"

    id: Mapped[str] = mapped_column(
        String(16),
        primary_key=True,
        default=REMINDERS_CONFIG_KEY,
    )

    config: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<RemindersConfigRecord(id={self.id})>"
