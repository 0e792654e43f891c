"""Clock abstraction for everything that depends on "now".

Services receive a ``Clock`` instead of calling ``timezone.now()``
themselves, so business-hours decisions can be tested at any instant.
All values are aware datetimes in the configured ``TIME_ZONE``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta

from django.utils import timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current local time (aware)."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return timezone.localtime()


class FixedClock(Clock):
    """A clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, now: datetime) -> None:
        if timezone.is_naive(now):
            now = timezone.make_aware(now)
        self._now = timezone.localtime(now)

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta: float) -> None:
        self._now = self._now + timedelta(**delta)
