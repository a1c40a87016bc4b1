"""Glucose reading schemas.

Input schemas validate user-supplied readings before any persistence.
Store schemas carry the derived is_normal flag set by the repository.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from glucodiary.core.classification import MAX_GLUCOSE_VALUE, MIN_GLUCOSE_VALUE
from glucodiary.models.base import ensure_aware
from glucodiary.models.glucose import GlucoseType


class GlucoseReadingCreate(BaseModel):
    """A new reading as submitted by the user."""

    value: float = Field(
        ...,
        ge=MIN_GLUCOSE_VALUE,
        le=MAX_GLUCOSE_VALUE,
        description="Glucose value in mg/dL",
    )
    type: GlucoseType = Field(..., description="Meal-relative timing")
    date: datetime = Field(..., description="When the reading was taken")
    notes: str | None = Field(None, description="Free-text notes")

    @field_validator("date")
    @classmethod
    def date_is_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @field_validator("notes")
    @classmethod
    def empty_notes_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class GlucoseReadingUpdate(BaseModel):
    """Partial edit of an existing reading.

    Only fields explicitly provided are applied. is_normal is not
    accepted here; it is re-derived from the merged value and type.
    """

    value: float | None = Field(
        None,
        ge=MIN_GLUCOSE_VALUE,
        le=MAX_GLUCOSE_VALUE,
        description="Glucose value in mg/dL",
    )
    type: GlucoseType | None = None
    date: datetime | None = None
    notes: str | None = None

    @field_validator("date")
    @classmethod
    def date_is_aware(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return v
        return ensure_aware(v)


class GlucoseReadingInsert(GlucoseReadingCreate):
    """A new reading ready for a store, classification applied."""

    is_normal: bool


class GlucoseReadingPatch(BaseModel):
    """Fields to merge into a stored reading.

    Stores apply exactly the fields that were set; they never derive
    is_normal themselves.
    """

    value: float | None = None
    type: GlucoseType | None = None
    date: datetime | None = None
    is_normal: bool | None = None
    notes: str | None = None

    def changes(self) -> dict:
        """Fields explicitly set on this patch."""
        return self.model_dump(exclude_unset=True)


class GlucoseReadingResponse(BaseModel):
    """A persisted reading as returned by either store."""

    model_config = {"from_attributes": True}

    id: int = Field(..., description="Identifier assigned by the creating store")
    value: float = Field(..., description="Glucose value in mg/dL")
    type: GlucoseType = Field(..., description="Meal-relative timing")
    date: datetime = Field(..., description="When the reading was taken")
    is_normal: bool = Field(..., description="Within target for its type")
    notes: str | None = Field(None, description="Free-text notes")


class TypeStats(BaseModel):
    """Per-type breakdown."""

    total: int = Field(0, ge=0)
    normal: int = Field(0, ge=0)
    abnormal: int = Field(0, ge=0)
    percentage_normal: float = Field(0.0, ge=0, le=100)


class GlucoseStats(BaseModel):
    """Aggregate statistics over a collection of readings."""

    total_readings: int = Field(..., ge=0)
    normal_readings: int = Field(..., ge=0)
    abnormal_readings: int = Field(..., ge=0)
    percentage_in_target: float = Field(..., ge=0, le=100)
    average_value: float = Field(..., ge=0, description="Mean glucose in mg/dL")
    min_value: float = Field(..., ge=0)
    max_value: float = Field(..., ge=0)
    by_type: dict[GlucoseType, TypeStats]
