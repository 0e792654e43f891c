"""Runtime store policy kept in the ``store_settings`` table.

Rows are plain strings; ``QueueSettings`` gives them types and defaults,
so a missing or partial table still yields a usable configuration.
"""

from __future__ import annotations

from typing import Dict

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from pydantic import BaseModel, ConfigDict, Field

from modules.scheduling.models import StoreSetting

logger = structlog.get_logger(__name__)

SETTINGS_CACHE_KEY = "scheduling:store_settings"


class QueueSettings(BaseModel):
    """Typed view over ``store_settings`` with the shipped defaults."""

    model_config = ConfigDict(frozen=True)

    allow_preorders: bool = True
    order_cutoff_minutes: int = Field(default=30, ge=0)
    reference_prefix: str = "REF"
    reference_length: int = Field(default=8, ge=4, le=16)
    wait_time_per_item: int = Field(default=5, ge=0)
    wait_time_default_processing: int = Field(default=10, ge=0)
    wait_time_buffer_percent: int = Field(default=20, ge=0)
    wait_time_min: int = Field(default=5, ge=0)
    wait_time_max: int = Field(default=60, ge=1)
    printing_base_minutes: int = Field(default=5, ge=0)
    printing_pages_per_minute: int = Field(default=10, ge=1)
    schedule_display_days: int = Field(default=7, ge=1, le=31)


class StoreSettingsRepository:
    """Key/value access to ``StoreSetting`` rows, cached briefly."""

    def all(self) -> Dict[str, str]:
        timeout = getattr(settings, "SCHEDULE_CACHE_SECONDS", 5)
        if timeout > 0:
            cached = cache.get(SETTINGS_CACHE_KEY)
            if cached is not None:
                return cached
        values = dict(StoreSetting.objects.values_list("key", "value"))
        if timeout > 0:
            cache.set(SETTINGS_CACHE_KEY, values, timeout)
        return values

    @transaction.atomic
    def set(self, key: str, value: object, description: str = "") -> StoreSetting:
        if isinstance(value, bool):
            value = "1" if value else "0"
        row, _ = StoreSetting.objects.update_or_create(
            key=key,
            defaults={"value": str(value), "description": description},
        )
        cache.delete(SETTINGS_CACHE_KEY)
        logger.info("store_setting.updated", key=key)
        return row

    def load(self) -> QueueSettings:
        """Build ``QueueSettings``; unknown keys are ignored."""
        raw = self.all()
        known = {
            key: value
            for key, value in raw.items()
            if key in QueueSettings.model_fields
        }
        return QueueSettings.model_validate(known)
