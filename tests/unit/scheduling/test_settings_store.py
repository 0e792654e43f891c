"""Unit tests for the store settings repository and QueueSettings."""

from __future__ import annotations

import pytest

from modules.scheduling.models import StoreSetting
from modules.scheduling.settings_store import QueueSettings, StoreSettingsRepository

pytestmark = pytest.mark.unit


class TestQueueSettings:
    def test_defaults_without_rows(self):
        policy = StoreSettingsRepository().load()
        assert policy == QueueSettings()
        assert policy.allow_preorders is True
        assert policy.wait_time_min == 5
        assert policy.wait_time_max == 60
        assert policy.reference_prefix == "REF"

    def test_rows_are_typed(self):
        StoreSetting.objects.create(key="wait_time_buffer_percent", value="50")
        StoreSetting.objects.create(key="allow_preorders", value="0")
        policy = StoreSettingsRepository().load()
        assert policy.wait_time_buffer_percent == 50
        assert policy.allow_preorders is False

    def test_unknown_keys_are_ignored(self):
        StoreSetting.objects.create(key="legacy_banner_text", value="Welcome!")
        assert StoreSettingsRepository().load() == QueueSettings()


class TestStoreSettingsRepository:
    def test_set_creates_then_updates(self):
        repo = StoreSettingsRepository()
        repo.set("wait_time_max", 45)
        repo.set("wait_time_max", 90)
        assert StoreSetting.objects.get(key="wait_time_max").value == "90"
        assert repo.load().wait_time_max == 90

    def test_booleans_stored_as_flags(self):
        repo = StoreSettingsRepository()
        repo.set("allow_preorders", False)
        assert repo.all()["allow_preorders"] == "0"
        assert repo.load().allow_preorders is False

    def test_cached_values_refresh_after_set(self, settings):
        settings.SCHEDULE_CACHE_SECONDS = 5
        repo = StoreSettingsRepository()
        assert repo.load().wait_time_min == 5
        repo.set("wait_time_min", 3)
        assert repo.load().wait_time_min == 3
