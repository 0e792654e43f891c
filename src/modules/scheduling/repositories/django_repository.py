"""Django ORM implementation of the schedule repository.

Weekly rows change rarely and are read on every gate decision, so they
are kept in the Django cache for ``SCHEDULE_CACHE_SECONDS``.  Saving a
row drops the cached copy.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.scheduling.models import SpecialHours, WeeklySchedule
from modules.scheduling.repositories.interfaces import IScheduleRepository

logger = structlog.get_logger(__name__)

WEEKLY_CACHE_KEY = "scheduling:weekly"


def _cache_seconds() -> int:
    return getattr(settings, "SCHEDULE_CACHE_SECONDS", 5)


class ScheduleDjangoRepository(IScheduleRepository):
    """Concrete schedule repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[WeeklySchedule]:
        try:
            return WeeklySchedule.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[WeeklySchedule]:
        queryset = WeeklySchedule.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: WeeklySchedule) -> WeeklySchedule:
        entity.save()
        cache.delete(WEEKLY_CACHE_KEY)
        logger.info(
            "schedule.saved",
            day_of_week=entity.day_of_week,
            is_open=entity.is_open,
        )
        return entity

    def weekly(self) -> Dict[int, WeeklySchedule]:
        timeout = _cache_seconds()
        if timeout > 0:
            cached = cache.get(WEEKLY_CACHE_KEY)
            if cached is not None:
                return cached
        rows = {
            row.day_of_week: row
            for row in WeeklySchedule.objects.filter(is_active=True)
        }
        if timeout > 0:
            cache.set(WEEKLY_CACHE_KEY, rows, timeout)
        return rows

    def special_for(self, day: date) -> Optional[SpecialHours]:
        return SpecialHours.objects.filter(date=day).first()

    def special_between(self, start: date, end: date) -> Dict[date, SpecialHours]:
        return {
            row.date: row
            for row in SpecialHours.objects.filter(date__range=(start, end))
        }
