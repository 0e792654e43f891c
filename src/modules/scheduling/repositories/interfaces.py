"""Schedule repository interface.

The business-hours gate only reads the calendar, so the contract is
read-only apart from ``IRepository.save``.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Dict, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.scheduling.models import SpecialHours, WeeklySchedule


class IScheduleRepository(IRepository["WeeklySchedule"]):
    @abstractmethod
    def weekly(self) -> Dict[int, WeeklySchedule]:
        """Active weekly rows keyed by ISO weekday."""

    @abstractmethod
    def special_for(self, day: date) -> Optional[SpecialHours]:
        """Dated override for ``day``, if any."""

    @abstractmethod
    def special_between(self, start: date, end: date) -> Dict[date, SpecialHours]:
        """Overrides in ``[start, end]`` keyed by date."""
