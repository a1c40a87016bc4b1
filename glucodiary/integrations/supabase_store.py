"""Supabase remote store.

Authenticated CRUD against the hosted tables, always scoped to the
signed-in user. Every failure surfaces as NotAuthenticatedError or
BackendError so the repositories can fall back to the local store.
"""

import asyncio
from datetime import datetime
from typing import Any

import httpx
from postgrest import APIError
from pydantic import ValidationError
from supabase import AsyncClient

from glucodiary.config import settings
from glucodiary.core.auth import AuthSessionProvider
from glucodiary.core.exceptions import BackendError, NotAuthenticatedError
from glucodiary.logging_config import get_logger
from glucodiary.models.base import ensure_aware
from glucodiary.schemas.glucose import (
    GlucoseReadingInsert,
    GlucoseReadingPatch,
    GlucoseReadingResponse,
)
from glucodiary.schemas.reminders import RemindersConfig

logger = get_logger(__name__)

READINGS_TABLE = "glucose_readings"
REMINDERS_TABLE = "reminders_config"

# PostgREST: .single() matched zero rows
NO_ROWS_CODE = "PGRST116"


def reading_from_row(row: dict[str, Any]) -> GlucoseReadingResponse:
    """Convert a glucose_readings row to a reading.

    Raises:
        KeyError, ValueError: If the row does not have the expected shape.
    """
    return GlucoseReadingResponse(
        id=row["id"],
        value=row["value"],
        type=row["type"],
        date=row["date"],
        is_normal=row["is_normal"],
        notes=row.get("notes") or None,
    )


def _patch_to_row(patch: GlucoseReadingPatch) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field, value in patch.changes().items():
        if field == "date":
            data["date"] = value.isoformat() if value is not None else None
        elif field == "type":
            data["type"] = value.value if value is not None else None
        elif field == "notes":
            data["notes"] = value or None
        else:
            data[field] = value
    return data


class SupabaseStore:
    """Remote persistence for readings and reminder configuration."""

    def __init__(
        self,
        client: AsyncClient,
        auth_provider: AuthSessionProvider,
        lookup_timeout: float | None = None,
    ):
        self._client = client
        self._auth = auth_provider
        self._lookup_timeout = (
            lookup_timeout
            if lookup_timeout is not None
            else settings.auth_lookup_timeout_seconds
        )

    async def _resolve_user_id(self) -> str:
        """Resolve the signed-in user: cached session first, then the server.

        Each lookup is bounded by the lookup timeout and never retried.

        Raises:
            NotAuthenticatedError: If no user can be resolved.
        """
        user_id: str | None = None
        try:
            user_id = await asyncio.wait_for(
                self._auth.get_current_user_id(),
                timeout=self._lookup_timeout,
            )
        except TimeoutError:
            logger.warning(
                "Cached session lookup timed out",
                timeout_seconds=self._lookup_timeout,
            )
        except Exception as e:
            logger.warning("Cached session lookup failed", error=str(e))

        if user_id:
            return user_id

        try:
            user_id = await asyncio.wait_for(
                self._auth.resolve_current_user(),
                timeout=self._lookup_timeout,
            )
        except TimeoutError as e:
            raise NotAuthenticatedError("Session lookup timed out") from e
        except Exception as e:
            raise NotAuthenticatedError(f"Session not found: {e}") from e

        if not user_id:
            raise NotAuthenticatedError("User not authenticated")
        return user_id

    async def _execute(self, query: Any, action: str) -> Any:
        """Execute a PostgREST query, mapping failures to BackendError."""
        try:
            return await query.execute()
        except APIError as e:
            code = e.code or "unknown"
            message = e.message or str(e)
            if code != NO_ROWS_CODE:
                logger.error(
                    "Supabase request failed",
                    action=action,
                    code=code,
                    message=message,
                    details=e.details,
                    hint=e.hint,
                )
            raise BackendError(code, message) from e
        except httpx.HTTPError as e:
            logger.warning("Supabase unreachable", action=action, error=str(e))
            raise BackendError("network", str(e)) from e
        except Exception as e:
            logger.error("Supabase client error", action=action, error=str(e))
            raise BackendError("client", str(e)) from e

    # ========== GLUCOSE READINGS ==========

    async def add_reading(self, reading: GlucoseReadingInsert) -> int:
        """Insert a reading for the signed-in user and return its id."""
        user_id = await self._resolve_user_id()

        response = await self._execute(
            self._client.table(READINGS_TABLE).insert(
                {
                    "user_id": user_id,
                    "value": reading.value,
                    "type": reading.type.value,
                    "date": reading.date.isoformat(),
                    "is_normal": reading.is_normal,
                    "notes": reading.notes or None,
                }
            ),
            "add_reading",
        )

        try:
            reading_id = int(response.data[0]["id"])
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise BackendError("client", "Insert did not return an id") from e

        logger.info("Stored reading remotely", reading_id=reading_id)
        return reading_id

    async def get_all_readings(self) -> list[GlucoseReadingResponse]:
        """All readings of the signed-in user, most recent first.

        Rows that cannot be converted are logged and skipped.
        """
        user_id = await self._resolve_user_id()

        response = await self._execute(
            self._client.table(READINGS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("date", desc=True),
            "get_all_readings",
        )

        rows = response.data or []
        readings: list[GlucoseReadingResponse] = []
        for row in rows:
            try:
                readings.append(reading_from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(
                    "Skipping malformed reading row",
                    row_id=row.get("id") if isinstance(row, dict) else None,
                    error=str(e),
                )

        logger.debug(
            "Fetched remote readings",
            rows=len(rows),
            converted=len(readings),
        )
        return readings

    async def get_readings_by_date_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[GlucoseReadingResponse]:
        """Readings with start <= date <= end, oldest first."""
        user_id = await self._resolve_user_id()

        response = await self._execute(
            self._client.table(READINGS_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .gte("date", ensure_aware(start).isoformat())
            .lte("date", ensure_aware(end).isoformat())
            .order("date"),
            "get_readings_by_date_range",
        )

        readings: list[GlucoseReadingResponse] = []
        for row in response.data or []:
            try:
                readings.append(reading_from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed reading row", error=str(e))
        return readings

    async def update_reading(self, reading_id: int, patch: GlucoseReadingPatch) -> None:
        """Apply the set fields of patch to one of the user's readings."""
        user_id = await self._resolve_user_id()

        data = _patch_to_row(patch)
        if not data:
            return

        await self._execute(
            self._client.table(READINGS_TABLE)
            .update(data)
            .eq("id", reading_id)
            .eq("user_id", user_id),
            "update_reading",
        )

    async def delete_reading(self, reading_id: int) -> None:
        """Delete one of the user's readings. Absent ids are a no-op."""
        user_id = await self._resolve_user_id()

        await self._execute(
            self._client.table(READINGS_TABLE)
            .delete()
            .eq("id", reading_id)
            .eq("user_id", user_id),
            "delete_reading",
        )

    # ========== REMINDERS CONFIG ==========

    async def save_reminders_config(self, config: RemindersConfig) -> None:
        """Upsert the user's reminder configuration (one row per user)."""
        user_id = await self._resolve_user_id()

        await self._execute(
            self._client.table(REMINDERS_TABLE).upsert(
                {"user_id": user_id, "config": config.to_storage()},
                on_conflict="user_id",
            ),
            "save_reminders_config",
        )

    async def get_reminders_config(self) -> RemindersConfig | None:
        """The user's saved configuration, or None if no row exists."""
        user_id = await self._resolve_user_id()

        try:
            response = await self._execute(
                self._client.table(REMINDERS_TABLE)
                .select("config")
                .eq("user_id", user_id)
                .single(),
                "get_reminders_config",
            )
        except BackendError as e:
            if e.code == NO_ROWS_CODE:
                return None
            raise

        data = response.data or {}
        if not data.get("config"):
            return None
        try:
            return RemindersConfig.model_validate(data["config"])
        except ValidationError as e:
            raise BackendError("client", f"Stored reminder config is malformed: {e}") from e
