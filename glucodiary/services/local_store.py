"""On-device persistence for readings, reminders, users and session.

Available without network or authentication. Every SQLAlchemy failure is
raised as LocalStoreError; there is no retry at this layer.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from glucodiary.config import settings
from glucodiary.core.exceptions import LocalStoreError
from glucodiary.logging_config import get_logger
from glucodiary.models.glucose import GlucoseReading
from glucodiary.models.reminders import REMINDERS_CONFIG_KEY, RemindersConfigRecord
from glucodiary.models.user import SESSION_KEY, Session, User
from glucodiary.schemas.glucose import (
    GlucoseReadingInsert,
    GlucoseReadingPatch,
    GlucoseReadingResponse,
)
from glucodiary.schemas.reminders import RemindersConfig

logger = get_logger(__name__)


class LocalStore:
    """SQLite-backed store for a single device."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        session_ttl: timedelta | None = None,
    ):
        self._session_maker = session_maker
        self._session_ttl = session_ttl or timedelta(days=settings.local_session_days)

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncGenerator[AsyncSession, None]:
        """Open a session, converting storage failures to LocalStoreError."""
        try:
            async with self._session_maker() as db:
                yield db
        except SQLAlchemyError as e:
            logger.error("Local store operation failed", action=action, error=str(e))
            raise LocalStoreError(f"Local storage failed during {action}: {e}") from e

    # ========== GLUCOSE READINGS ==========

    async def add_reading(self, reading: GlucoseReadingInsert) -> int:
        """Insert a reading and return its new id."""
        async with self._session("add_reading") as db:
            record = GlucoseReading(
                value=reading.value,
                type=reading.type,
                date=reading.date,
                is_normal=reading.is_normal,
                notes=reading.notes,
            )
            db.add(record)
            await db.commit()
            reading_id = record.id

        logger.debug("Stored reading locally", reading_id=reading_id)
        return reading_id

    async def get_all_readings(self) -> list[GlucoseReadingResponse]:
        """All readings, most recent first."""
        async with self._session("get_all_readings") as db:
            result = await db.execute(
                select(GlucoseReading).order_by(
                    GlucoseReading.date.desc(),
                    GlucoseReading.id.desc(),
                )
            )
            records = result.scalars().all()

        return [GlucoseReadingResponse.model_validate(r) for r in records]

    async def get_reading(self, reading_id: int) -> GlucoseReadingResponse | None:
        """A single reading by id, or None if absent."""
        async with self._session("get_reading") as db:
            record = await db.get(GlucoseReading, reading_id)

        if record is None:
            return None
        return GlucoseReadingResponse.model_validate(record)

    async def update_reading(self, reading_id: int, patch: GlucoseReadingPatch) -> None:
        """Merge the set fields of patch into the stored reading.

        No-op if the reading does not exist. is_normal is applied only
        when the caller set it.
        """
        changes = patch.changes()
        async with self._session("update_reading") as db:
            record = await db.get(GlucoseReading, reading_id)
            if record is None:
                logger.debug("Reading not found for update", reading_id=reading_id)
                return
            for field, value in changes.items():
                setattr(record, field, value)
            await db.commit()

        logger.debug(
            "Updated reading locally",
            reading_id=reading_id,
            fields=list(changes.keys()),
        )

    async def delete_reading(self, reading_id: int) -> None:
        """Delete a reading by id. Deleting an absent id is a no-op."""
        async with self._session("delete_reading") as db:
            await db.execute(delete(GlucoseReading).where(GlucoseReading.id == reading_id))
            await db.commit()

    async def get_readings_by_date_range(
        self,
        start: datetime,
        end: datetime,
    ) -> list[GlucoseReadingResponse]:
        """Readings with start <= date <= end, oldest first."""
        async with self._session("get_readings_by_date_range") as db:
            result = await db.execute(
                select(GlucoseReading)
                .where(GlucoseReading.date >= start, GlucoseReading.date <= end)
                .order_by(GlucoseReading.date.asc(), GlucoseReading.id.asc())
            )
            records = result.scalars().all()

        return [GlucoseReadingResponse.model_validate(r) for r in records]

    # ========== REMINDERS CONFIG ==========

    async def save_reminders_config(self, config: RemindersConfig) -> None:
        """Upsert the device's reminder configuration (whole object)."""
        async with self._session("save_reminders_config") as db:
            await db.merge(
                RemindersConfigRecord(id=REMINDERS_CONFIG_KEY, config=config.to_storage())
            )
            await db.commit()

    async def get_reminders_config(self) -> RemindersConfig | None:
        """The saved reminder configuration, or None if never saved."""
        async with self._session("get_reminders_config") as db:
            record = await db.get(RemindersConfigRecord, REMINDERS_CONFIG_KEY)

        if record is None:
            return None
        return RemindersConfig.model_validate(record.config)

    # ========== USERS & SESSION ==========

    async def create_user(self, name: str, email: str, password_hash: str) -> str:
        """Create a local user and return its id."""
        async with self._session("create_user") as db:
            user = User(
                name=name.strip(),
                email=email.strip().lower(),
                password_hash=password_hash,
            )
            db.add(user)
            await db.commit()
            user_id = user.id

        logger.info("Created local user", user_id=user_id)
        return user_id

    async def get_user_by_name(self, name: str) -> User | None:
        async with self._session("get_user_by_name") as db:
            result = await db.execute(
                select(User).where(User.name == name.strip()).limit(1)
            )
            return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session("get_user_by_email") as db:
            result = await db.execute(
                select(User).where(User.email == email.strip().lower()).limit(1)
            )
            return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: str) -> User | None:
        async with self._session("get_user_by_id") as db:
            return await db.get(User, user_id)

    async def save_session(self, user_id: str) -> datetime:
        """Start (or replace) the device session. Returns its expiry."""
        expires_at = datetime.now(UTC) + self._session_ttl
        async with self._session("save_session") as db:
            await db.merge(Session(id=SESSION_KEY, user_id=user_id, expires_at=expires_at))
            await db.commit()
        return expires_at

    async def get_session(self) -> Session | None:
        """The current session, or None if absent or expired.

        An expired session is deleted on read.
        """
        async with self._session("get_session") as db:
            session = await db.get(Session, SESSION_KEY)
            if session is None:
                return None
            if session.expires_at < datetime.now(UTC):
                await db.delete(session)
                await db.commit()
                logger.info("Local session expired", user_id=session.user_id)
                return None
            return session

    async def clear_session(self) -> None:
        async with self._session("clear_session") as db:
            await db.execute(delete(Session).where(Session.id == SESSION_KEY))
            await db.commit()

    async def clear_all_data(self) -> None:
        """Remove readings, reminder configuration and session.

        User records are kept so the account can sign in again.
        """
        async with self._session("clear_all_data") as db:
            await db.execute(delete(GlucoseReading))
            await db.execute(delete(RemindersConfigRecord))
            await db.execute(delete(Session))
            await db.commit()

        logger.info("Cleared local data")
