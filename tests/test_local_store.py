"""Tests for the on-device SQLite store."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
import pytest_asyncio

from glucodiary.core.exceptions import LocalStoreError
from glucodiary.database import create_local_engine, make_session_maker
from glucodiary.models.glucose import GlucoseType
from glucodiary.schemas.glucose import GlucoseReadingInsert, GlucoseReadingPatch
from glucodiary.schemas.reminders import ReminderConfig, default_reminders_config
from glucodiary.services.local_store import LocalStore

BASE_DATE = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


def make_insert(
    value: float = 85,
    glucose_type: GlucoseType = GlucoseType.FASTING,
    date: datetime = BASE_DATE,
    is_normal: bool = True,
    notes: str | None = None,
) -> GlucoseReadingInsert:
    return GlucoseReadingInsert(
        value=value,
        type=glucose_type,
        date=date,
        is_normal=is_normal,
        notes=notes,
    )


class TestReadingRoundTrip:
    """Readings come back exactly as stored."""

    @pytest.mark.asyncio
    async def test_add_returns_increasing_ids(self, local_store):
        first = await local_store.add_reading(make_insert())
        second = await local_store.add_reading(make_insert())

        assert second > first

    @pytest.mark.asyncio
    async def test_fasting_95_round_trip(self, local_store):
        """Date comes back as the same instant, is_normal as stored."""
        taken_at = datetime(
            2024, 3, 1, 7, 30, 15, 123456,
            tzinfo=timezone(timedelta(hours=-3)),
        )
        reading_id = await local_store.add_reading(
            make_insert(value=95, date=taken_at, is_normal=False, notes="before walk")
        )

        reading = await local_store.get_reading(reading_id)

        assert reading is not None
        assert reading.value == 95
        assert reading.type == GlucoseType.FASTING
        assert reading.is_normal is False
        assert reading.date == taken_at
        assert reading.date.tzinfo is not None
        assert reading.notes == "before walk"

    @pytest.mark.asyncio
    async def test_is_normal_stored_as_given(self, local_store):
        """The store never classifies on its own."""
        reading_id = await local_store.add_reading(make_insert(value=300, is_normal=True))

        reading = await local_store.get_reading(reading_id)
        assert reading.is_normal is True

    @pytest.mark.asyncio
    async def test_get_missing_reading(self, local_store):
        assert await local_store.get_reading(999) is None


class TestReadingQueries:
    """Ordering and date-range reads."""

    @pytest.mark.asyncio
    async def test_all_readings_most_recent_first(self, local_store):
        older = await local_store.add_reading(make_insert(date=BASE_DATE))
        newest = await local_store.add_reading(
            make_insert(date=BASE_DATE + timedelta(days=2))
        )
        middle = await local_store.add_reading(
            make_insert(date=BASE_DATE + timedelta(days=1))
        )

        readings = await local_store.get_all_readings()

        assert [r.id for r in readings] == [newest, middle, older]

    @pytest.mark.asyncio
    async def test_ordering_across_offsets(self, local_store):
        """Instants are compared, not wall-clock strings."""
        # 08:00-03:00 is 11:00 UTC, later than 10:00 UTC
        later = await local_store.add_reading(
            make_insert(date=datetime(2024, 3, 1, 8, 0, tzinfo=timezone(timedelta(hours=-3))))
        )
        earlier = await local_store.add_reading(
            make_insert(date=datetime(2024, 3, 1, 10, 0, tzinfo=UTC))
        )

        readings = await local_store.get_all_readings()

        assert [r.id for r in readings] == [later, earlier]

    @pytest.mark.asyncio
    async def test_empty_store(self, local_store):
        assert await local_store.get_all_readings() == []

    @pytest.mark.asyncio
    async def test_date_range_inclusive_and_ascending(self, local_store):
        ids = []
        for day in range(5):
            ids.append(
                await local_store.add_reading(
                    make_insert(date=BASE_DATE + timedelta(days=day))
                )
            )

        readings = await local_store.get_readings_by_date_range(
            BASE_DATE + timedelta(days=1),
            BASE_DATE + timedelta(days=3),
        )

        assert [r.id for r in readings] == ids[1:4]

    @pytest.mark.asyncio
    async def test_naive_bounds_are_device_local(self, local_store, device_utc_minus_3):
        reading_id = await local_store.add_reading(
            make_insert(date=datetime(2024, 3, 1, 11, 0, tzinfo=UTC))
        )

        readings = await local_store.get_readings_by_date_range(
            datetime(2024, 3, 1, 8, 0),
            datetime(2024, 3, 1, 8, 0),
        )

        assert [r.id for r in readings] == [reading_id]

    @pytest.mark.asyncio
    async def test_date_range_without_matches(self, local_store):
        await local_store.add_reading(make_insert(date=BASE_DATE))

        readings = await local_store.get_readings_by_date_range(
            BASE_DATE + timedelta(days=10),
            BASE_DATE + timedelta(days=11),
        )

        assert readings == []


class TestReadingWrites:
    """Update and delete."""

    @pytest.mark.asyncio
    async def test_update_applies_only_set_fields(self, local_store):
        reading_id = await local_store.add_reading(
            make_insert(value=100, glucose_type=GlucoseType.POST_LUNCH, notes="lunch")
        )

        await local_store.update_reading(
            reading_id,
            GlucoseReadingPatch(value=200, is_normal=False),
        )

        reading = await local_store.get_reading(reading_id)
        assert reading.value == 200
        assert reading.is_normal is False
        assert reading.type == GlucoseType.POST_LUNCH
        assert reading.notes == "lunch"
        assert reading.date == BASE_DATE

    @pytest.mark.asyncio
    async def test_update_can_clear_notes(self, local_store):
        reading_id = await local_store.add_reading(make_insert(notes="typo"))

        await local_store.update_reading(reading_id, GlucoseReadingPatch(notes=None))

        reading = await local_store.get_reading(reading_id)
        assert reading.notes is None

    @pytest.mark.asyncio
    async def test_update_missing_is_noop(self, local_store):
        await local_store.update_reading(999, GlucoseReadingPatch(value=120))

        assert await local_store.get_all_readings() == []

    @pytest.mark.asyncio
    async def test_delete(self, local_store):
        keep = await local_store.add_reading(make_insert())
        drop = await local_store.add_reading(make_insert())

        await local_store.delete_reading(drop)

        readings = await local_store.get_all_readings()
        assert [r.id for r in readings] == [keep]

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, local_store):
        reading_id = await local_store.add_reading(make_insert())

        await local_store.delete_reading(999)
        await local_store.delete_reading(999)

        readings = await local_store.get_all_readings()
        assert [r.id for r in readings] == [reading_id]


class TestRemindersConfig:
    """Reminder configuration persistence."""

    @pytest.mark.asyncio
    async def test_nothing_saved(self, local_store):
        assert await local_store.get_reminders_config() is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, local_store):
        config = default_reminders_config()

        await local_store.save_reminders_config(config)

        assert await local_store.get_reminders_config() == config

    @pytest.mark.asyncio
    async def test_save_replaces_whole_config(self, local_store):
        await local_store.save_reminders_config(default_reminders_config())
        updated = default_reminders_config().model_copy(
            update={"post_lunch": ReminderConfig(enabled=False, time="12:30")}
        )

        await local_store.save_reminders_config(updated)

        loaded = await local_store.get_reminders_config()
        assert loaded.post_lunch == ReminderConfig(enabled=False, time="12:30")
        assert loaded.fasting.time == "07:00"


class TestUsersAndSession:
    """Local accounts and the device session."""

    @pytest.mark.asyncio
    async def test_create_user_normalizes(self, local_store):
        user_id = await local_store.create_user("  Maria ", " Maria@Example.COM ", "hash")

        user = await local_store.get_user_by_id(user_id)

        assert user.name == "Maria"
        assert user.email == "maria@example.com"
        assert user.password_hash == "hash"

    @pytest.mark.asyncio
    async def test_lookup_by_name_and_email(self, local_store):
        user_id = await local_store.create_user("Maria", "maria@example.com", "hash")

        assert (await local_store.get_user_by_name(" Maria ")).id == user_id
        assert (await local_store.get_user_by_email("MARIA@example.com")).id == user_id
        assert await local_store.get_user_by_name("Other") is None
        assert await local_store.get_user_by_email("other@example.com") is None

    @pytest.mark.asyncio
    async def test_session_round_trip(self, local_store):
        user_id = await local_store.create_user("Maria", "maria@example.com", "hash")

        expires_at = await local_store.save_session(user_id)
        session = await local_store.get_session()

        assert session.user_id == user_id
        assert session.expires_at == expires_at
        assert expires_at > datetime.now(UTC) + timedelta(days=6)

    @pytest.mark.asyncio
    async def test_expired_session_is_removed(self, local_session_maker):
        store = LocalStore(local_session_maker, session_ttl=timedelta(seconds=-1))
        await store.save_session("user-1")

        assert await store.get_session() is None

        # Still gone for a store with a normal lifetime
        fresh = LocalStore(local_session_maker, session_ttl=timedelta(days=7))
        assert await fresh.get_session() is None

    @pytest.mark.asyncio
    async def test_clear_session(self, local_store):
        await local_store.save_session("user-1")

        await local_store.clear_session()

        assert await local_store.get_session() is None

    @pytest.mark.asyncio
    async def test_clear_all_data_keeps_users(self, local_store):
        user_id = await local_store.create_user("Maria", "maria@example.com", "hash")
        await local_store.add_reading(make_insert())
        await local_store.save_reminders_config(default_reminders_config())
        await local_store.save_session(user_id)

        await local_store.clear_all_data()

        assert await local_store.get_all_readings() == []
        assert await local_store.get_reminders_config() is None
        assert await local_store.get_session() is None
        assert await local_store.get_user_by_id(user_id) is not None


class TestStorageFailure:
    """SQLAlchemy failures surface as LocalStoreError."""

    @pytest_asyncio.fixture
    async def store_without_schema(self, tmp_path):
        engine = create_local_engine(f"sqlite+aiosqlite:///{tmp_path}/empty.db", testing=True)
        yield LocalStore(make_session_maker(engine))
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_read_failure(self, store_without_schema):
        with pytest.raises(LocalStoreError, match="get_all_readings"):
            await store_without_schema.get_all_readings()

    @pytest.mark.asyncio
    async def test_write_failure(self, store_without_schema):
        with pytest.raises(LocalStoreError):
            await store_without_schema.add_reading(make_insert())
