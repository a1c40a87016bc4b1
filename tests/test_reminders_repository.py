"""Tests for the reminder configuration repository."""

import asyncio

import pytest
from pydantic import ValidationError

from glucodiary.core.exceptions import BackendError, LocalStoreError, NotAuthenticatedError
from glucodiary.models.glucose import GlucoseType
from glucodiary.schemas.reminders import (
    ReminderConfig,
    RemindersConfig,
    default_reminders_config,
)
from glucodiary.services.glucose_repository import RepositoryConfig
from glucodiary.services.reminders_repository import RemindersRepository


@pytest.fixture
def custom_config():
    return RemindersConfig(
        fasting=ReminderConfig(enabled=True, time="06:30"),
        post_breakfast=ReminderConfig(enabled=False, time="08:30"),
        post_lunch=ReminderConfig(enabled=True, time="13:30"),
        post_dinner=ReminderConfig(enabled=True, time="21:00"),
    )


@pytest.fixture
def local_only(mock_local):
    return RemindersRepository(RepositoryConfig(remote_enabled=False, local=mock_local))


@pytest.fixture
def with_remote(mock_local, mock_remote):
    return RemindersRepository(
        RepositoryConfig(remote_enabled=True, local=mock_local, remote=mock_remote)
    )


class TestDefaults:
    """Default configuration when nothing is stored."""

    def test_default_shape(self):
        assert default_reminders_config().to_storage() == {
            "fasting": {"enabled": True, "time": "07:00"},
            "postBreakfast": {"enabled": True, "time": "09:00"},
            "postLunch": {"enabled": True, "time": "13:00"},
            "postDinner": {"enabled": True, "time": "20:00"},
        }

    @pytest.mark.asyncio
    async def test_nothing_in_either_store(self, with_remote, mock_local, mock_remote):
        config = await with_remote.load_config()

        assert config == default_reminders_config()
        assert with_remote.config == config
        mock_remote.get_reminders_config.assert_awaited_once()
        mock_local.get_reminders_config.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_locally(self, local_only):
        assert await local_only.load_config() == default_reminders_config()

    @pytest.mark.asyncio
    async def test_local_failure_uses_defaults(self, local_only, mock_local):
        mock_local.get_reminders_config.side_effect = LocalStoreError("locked")

        config = await local_only.load_config()

        assert config == default_reminders_config()
        assert local_only.loading is False


class TestLoadConfig:
    """Remote-first load with local fallback."""

    @pytest.mark.asyncio
    async def test_remote_config(self, with_remote, mock_local, mock_remote, custom_config):
        mock_remote.get_reminders_config.return_value = custom_config

        assert await with_remote.load_config() == custom_config
        mock_local.get_reminders_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_failure_uses_local(
        self, with_remote, mock_local, mock_remote, custom_config
    ):
        mock_remote.get_reminders_config.side_effect = NotAuthenticatedError("User not authenticated")
        mock_local.get_reminders_config.return_value = custom_config

        assert await with_remote.load_config() == custom_config

    @pytest.mark.asyncio
    async def test_remote_without_row_uses_local(
        self, with_remote, mock_local, mock_remote, custom_config
    ):
        mock_remote.get_reminders_config.return_value = None
        mock_local.get_reminders_config.return_value = custom_config

        assert await with_remote.load_config() == custom_config

    @pytest.mark.asyncio
    async def test_loading_flag(self, local_only, mock_local, custom_config):
        seen = []

        async def get_reminders_config():
            seen.append(local_only.loading)
            return custom_config

        mock_local.get_reminders_config.side_effect = get_reminders_config

        await local_only.load_config()

        assert seen == [True]
        assert local_only.loading is False


class TestSaveConfig:
    """Whole-config saves."""

    @pytest.mark.asyncio
    async def test_remote_save(self, with_remote, mock_local, mock_remote, custom_config):
        await with_remote.save_config(custom_config)

        mock_remote.save_reminders_config.assert_awaited_once_with(custom_config)
        mock_local.save_reminders_config.assert_not_awaited()
        assert with_remote.config == custom_config

    @pytest.mark.asyncio
    async def test_remote_failure_saves_locally(
        self, with_remote, mock_local, mock_remote, custom_config
    ):
        mock_remote.save_reminders_config.side_effect = BackendError("network", "offline")

        await with_remote.save_config(custom_config)

        mock_local.save_reminders_config.assert_awaited_once_with(custom_config)
        assert with_remote.config == custom_config

    @pytest.mark.asyncio
    async def test_local_only_save(self, local_only, mock_local, custom_config):
        await local_only.save_config(custom_config)

        mock_local.save_reminders_config.assert_awaited_once_with(custom_config)

    @pytest.mark.asyncio
    async def test_both_fail(self, with_remote, mock_local, mock_remote, custom_config):
        mock_remote.save_reminders_config.side_effect = BackendError("network", "offline")
        mock_local.save_reminders_config.side_effect = LocalStoreError("disk full")

        with pytest.raises(LocalStoreError):
            await with_remote.save_config(custom_config)

        assert with_remote.config is None


class TestRemindersConfigSchema:
    """Validation and serialization of the configuration."""

    def test_accepts_camel_case_keys(self):
        config = RemindersConfig.model_validate(default_reminders_config().to_storage())
        assert config == default_reminders_config()

    @pytest.mark.parametrize("value", ["7:00", "24:00", "07:60", "0700", ""])
    def test_rejects_malformed_time(self, value):
        with pytest.raises(ValidationError):
            ReminderConfig(enabled=True, time=value)

    def test_slot_lookup(self, custom_config):
        assert custom_config.slot(GlucoseType.POST_LUNCH).time == "13:30"


class TestOverlappingCalls:
    """Only the latest issued load or save sets config."""

    @pytest.mark.asyncio
    async def test_stale_load_discarded(self, local_only, mock_local, custom_config):
        release_first = asyncio.Event()
        calls = 0

        async def get_reminders_config():
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_first.wait()
                return custom_config
            return None

        mock_local.get_reminders_config.side_effect = get_reminders_config

        first = asyncio.create_task(local_only.load_config())
        await asyncio.sleep(0)
        await local_only.load_config()
        release_first.set()
        stale = await first

        assert stale == custom_config
        assert local_only.config == default_reminders_config()
        assert local_only.loading is False

    @pytest.mark.asyncio
    async def test_save_wins_over_load_in_flight(self, local_only, mock_local, custom_config):
        release_load = asyncio.Event()

        async def get_reminders_config():
            await release_load.wait()
            return None

        mock_local.get_reminders_config.side_effect = get_reminders_config

        load = asyncio.create_task(local_only.load_config())
        await asyncio.sleep(0)
        assert local_only.loading is True

        await local_only.save_config(custom_config)
        release_load.set()
        await load

        assert local_only.config == custom_config
        assert local_only.loading is False
