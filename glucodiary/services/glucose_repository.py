"""Glucose reading repository.

Orchestrates reads and writes across the remote (Supabase) and local
(SQLite) stores:

- Writes go to the remote store when it is enabled and fall back to the
  local store on any remote failure, so a user-initiated write either
  persists somewhere or raises.
- Loads prefer the remote result, except that an empty remote result is
  replaced by a non-empty local one (the session may not have propagated
  yet). The two sets are never merged.
- is_normal is derived here, before dispatch, for every create and every
  edit touching value or type. Stores never compute it.

Overlapping calls are not serialized. Each load takes a sequence number
and only the latest issued load commits to the in-memory state.
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from glucodiary.core.classification import is_glucose_normal
from glucodiary.core.exceptions import LocalStoreError, ReadingNotFoundError
from glucodiary.core.fallback import with_fallback
from glucodiary.integrations.supabase_store import SupabaseStore
from glucodiary.logging_config import get_logger, operation_id_ctx
from glucodiary.models.base import ensure_aware
from glucodiary.models.glucose import GlucoseType
from glucodiary.schemas.glucose import (
    GlucoseReadingCreate,
    GlucoseReadingInsert,
    GlucoseReadingPatch,
    GlucoseReadingResponse,
    GlucoseReadingUpdate,
    GlucoseStats,
)
from glucodiary.services.glucose_stats import calculate_stats
from glucodiary.services.local_store import LocalStore

logger = get_logger(__name__)

T = TypeVar("T")

# Columns that cannot be cleared by an edit
_REQUIRED_FIELDS = ("value", "type", "date")


@dataclass(frozen=True)
class RepositoryConfig:
    """Stores and backend selection injected into the repositories.

    remote_enabled is decided once, at construction, from whether the
    backend credentials are configured.
    """

    remote_enabled: bool
    local: LocalStore
    remote: SupabaseStore | None = None
    settle_delay_seconds: float = 0.5

    def __post_init__(self):
        if self.remote_enabled and self.remote is None:
            raise ValueError("remote_enabled requires a remote store")


@dataclass(frozen=True)
class LastError:
    """User-visible error from the most recent failed operation."""

    message: str
    exception: Exception | None = None


@contextmanager
def operation_scope(name: str) -> Iterator[str]:
    """Tag log lines with an operation id unless one is already set."""
    current = operation_id_ctx.get()
    if current is not None:
        yield current
        return
    operation_id = f"{name}-{uuid.uuid4().hex[:8]}"
    token = operation_id_ctx.set(operation_id)
    try:
        yield operation_id
    finally:
        operation_id_ctx.reset(token)


def with_derived_fields(
    fields: dict[str, Any],
    existing: GlucoseReadingResponse | None = None,
) -> dict[str, Any]:
    """Return fields with is_normal re-derived when value or type is present.

    The classification uses the effective merged values: fields override
    existing. Any caller-supplied is_normal is discarded.
    """
    fields = {k: v for k, v in fields.items() if k != "is_normal"}
    if "value" not in fields and "type" not in fields:
        return fields

    value = fields["value"] if "value" in fields else existing.value
    glucose_type = fields["type"] if "type" in fields else existing.type
    fields["is_normal"] = is_glucose_normal(glucose_type, value)
    return fields


class GlucoseReadingRepository:
    """In-memory reading state backed by the remote and local stores.

    Attributes:
        loading: True while the latest issued load is in flight
        error: Last user-visible error, cleared by a successful load
    """

    def __init__(self, config: RepositoryConfig):
        self._config = config
        self._local = config.local
        self._readings: list[GlucoseReadingResponse] = []
        self._sequence = 0
        self.loading = False
        self.error: LastError | None = None

    @property
    def use_remote(self) -> bool:
        return self._config.remote_enabled

    @property
    def readings(self) -> list[GlucoseReadingResponse]:
        """Current readings, most recent first (a copy)."""
        return list(self._readings)

    def _preferred(
        self,
        call: Callable[[SupabaseStore], Awaitable[T]],
    ) -> Callable[[], Awaitable[T]] | None:
        if not self.use_remote:
            return None
        remote = self._config.remote
        return lambda: call(remote)

    def _find(self, reading_id: int) -> GlucoseReadingResponse | None:
        return next((r for r in self._readings if r.id == reading_id), None)

    # ========== LOAD ==========

    async def _fetch_authoritative(self) -> list[GlucoseReadingResponse]:
        result = await with_fallback(
            self._preferred(lambda remote: remote.get_all_readings()),
            self._local.get_all_readings,
            operation="load_readings",
        )
        if not self.use_remote or result.used_fallback:
            return result.value

        remote_readings = result.value
        try:
            local_readings = await self._local.get_all_readings()
        except LocalStoreError as e:
            logger.warning("Local readings unavailable (non-critical)", error=str(e))
            return remote_readings

        if local_readings and not remote_readings:
            logger.info(
                "Remote returned no readings, using local readings",
                local_count=len(local_readings),
            )
            return local_readings
        return remote_readings

    async def load_readings(self) -> list[GlucoseReadingResponse]:
        """Reload the in-memory readings from the authoritative store.

        Remote failures fall back to the local store silently. A local
        store failure sets error and clears the readings.

        Returns:
            The readings held after this call.
        """
        self._sequence += 1
        sequence = self._sequence
        self.loading = True

        with operation_scope("load_readings"):
            try:
                readings = await self._fetch_authoritative()
            except LocalStoreError as e:
                logger.error("Failed to load readings", error=str(e))
                if sequence == self._sequence:
                    self._readings = []
                    self.error = LastError("Could not load readings", e)
                return self.readings
            finally:
                if sequence == self._sequence:
                    self.loading = False

            if sequence != self._sequence:
                logger.debug(
                    "Discarding stale load result",
                    sequence=sequence,
                    latest=self._sequence,
                )
                return self.readings

            self._readings = readings
            self.error = None
            logger.debug("Loaded readings", count=len(readings))
        return self.readings

    # ========== WRITES ==========

    async def create_reading(
        self,
        value: float,
        glucose_type: GlucoseType | str,
        date: datetime | None = None,
        notes: str | None = None,
    ) -> int:
        """Classify, persist and reload.

        Args:
            value: Glucose value in mg/dL (20-600)
            glucose_type: Meal-relative timing
            date: When the reading was taken (default: now)
            notes: Optional free text

        Returns:
            The id assigned by whichever store accepted the write.

        Raises:
            pydantic.ValidationError: If the input is out of range.
            LocalStoreError: If the local fallback also failed.
        """
        payload = GlucoseReadingCreate(
            value=value,
            type=glucose_type,
            date=date or datetime.now(UTC),
            notes=notes,
        )
        reading = GlucoseReadingInsert(**with_derived_fields(payload.model_dump()))

        with operation_scope("create_reading"):
            try:
                result = await with_fallback(
                    self._preferred(lambda remote: remote.add_reading(reading)),
                    lambda: self._local.add_reading(reading),
                    operation="create_reading",
                )
            except LocalStoreError as e:
                self.error = LastError("Could not save reading", e)
                raise

            if self.use_remote and not result.used_fallback:
                # Remote reads may lag the insert briefly
                await asyncio.sleep(self._config.settle_delay_seconds)

            logger.info(
                "Created reading",
                reading_id=result.value,
                is_normal=reading.is_normal,
                stored_remotely=self.use_remote and not result.used_fallback,
            )
            await self.load_readings()
        return result.value

    async def remove_reading(self, reading_id: int) -> None:
        """Delete a reading and reload. Absent ids are a no-op.

        Raises:
            LocalStoreError: If the local fallback also failed.
        """
        with operation_scope("remove_reading"):
            try:
                await with_fallback(
                    self._preferred(lambda remote: remote.delete_reading(reading_id)),
                    lambda: self._local.delete_reading(reading_id),
                    operation="remove_reading",
                )
            except LocalStoreError as e:
                self.error = LastError("Could not remove reading", e)
                raise
            await self.load_readings()

    async def edit_reading(
        self,
        reading_id: int,
        updates: GlucoseReadingUpdate | dict[str, Any],
    ) -> None:
        """Apply a partial edit, re-deriving is_normal, and reload.

        When the edit sets only one of value/type, the other comes from
        the loaded reading.

        Raises:
            pydantic.ValidationError: If the update is invalid.
            ReadingNotFoundError: If the merge needs a reading that is not loaded.
            LocalStoreError: If the local fallback also failed.
        """
        if not isinstance(updates, GlucoseReadingUpdate):
            updates = GlucoseReadingUpdate.model_validate(updates)

        fields = {
            k: v
            for k, v in updates.model_dump(exclude_unset=True).items()
            if not (k in _REQUIRED_FIELDS and v is None)
        }

        existing = None
        if ("value" in fields) != ("type" in fields):
            existing = self._find(reading_id)
            if existing is None:
                raise ReadingNotFoundError(reading_id)

        patch = GlucoseReadingPatch(**with_derived_fields(fields, existing))

        with operation_scope("edit_reading"):
            try:
                await with_fallback(
                    self._preferred(lambda remote: remote.update_reading(reading_id, patch)),
                    lambda: self._local.update_reading(reading_id, patch),
                    operation="edit_reading",
                )
            except LocalStoreError as e:
                self.error = LastError("Could not update reading", e)
                raise
            await self.load_readings()

    # ========== READ-ONLY ==========

    async def get_readings_in_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[GlucoseReadingResponse]:
        """Readings with start <= date <= end, oldest first.

        Naive bounds are device-local times, like naive reading dates.
        Does not touch the in-memory readings.
        """
        start, end = ensure_aware(start), ensure_aware(end)
        with operation_scope("get_readings_in_range"):
            result = await with_fallback(
                self._preferred(
                    lambda remote: remote.get_readings_by_date_range(start, end)
                ),
                lambda: self._local.get_readings_by_date_range(start, end),
                operation="get_readings_in_range",
            )
        return result.value

    def get_stats(self) -> GlucoseStats:
        """Statistics over the in-memory readings. Never performs I/O."""
        return calculate_stats(self._readings)
