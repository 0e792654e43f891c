"""Business-hours gate.

Answers "is the COOP serving right now, and if not why" and "which is
the next day it opens".  The service only reads the calendar and the
clock; it never writes.

Resolution order for a date:
1. a ``SpecialHours`` row for that exact date;
2. the active ``WeeklySchedule`` row for its ISO weekday;
3. otherwise closed.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Dict, List, Optional

import structlog

from modules.scheduling.dtos import DaySchedule, OrderingWindow, StoreStatus
from modules.scheduling.exceptions import NoBusinessDayFound
from modules.scheduling.settings_store import QueueSettings

if TYPE_CHECKING:
    from modules.scheduling.clock import Clock
    from modules.scheduling.models import SpecialHours, WeeklySchedule
    from modules.scheduling.repositories.interfaces import IScheduleRepository
    from modules.scheduling.settings_store import StoreSettingsRepository

logger = structlog.get_logger(__name__)

NEXT_BUSINESS_DAY_HORIZON = 14

REASON_CLOSED = "Closed"
REASON_LUNCH = "Lunch break"
REASON_NOT_YET_OPEN = "Not yet open"
REASON_CLOSED_FOR_DAY = "Closed for the day"


class BusinessHoursService:
    def __init__(
        self,
        clock: Clock,
        schedule_repository: IScheduleRepository,
        settings_repository: Optional[StoreSettingsRepository] = None,
    ) -> None:
        self._clock = clock
        self._schedule_repo = schedule_repository
        self._settings_repo = settings_repository

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    def effective_schedule(self, day: date) -> DaySchedule:
        """Hours that apply on ``day`` after special overrides."""
        return _resolve(
            day, self._schedule_repo.weekly(), self._schedule_repo.special_for(day)
        )

    def schedule(self, days: Optional[int] = None) -> List[DaySchedule]:
        """Effective hours for ``days`` consecutive dates starting today."""
        if days is None:
            days = self._settings().schedule_display_days
        start = self._clock.today()
        end = start + timedelta(days=days - 1)
        weekly = self._schedule_repo.weekly()
        specials = self._schedule_repo.special_between(start, end)
        return [
            _resolve(day, weekly, specials.get(day))
            for day in (start + timedelta(days=offset) for offset in range(days))
        ]

    def next_business_day(self, from_date: Optional[date] = None) -> date:
        """First open date strictly after ``from_date`` (default today).

        Raises:
            NoBusinessDayFound: nothing opens within the next 14 days.
        """
        start = from_date or self._clock.today()
        end = start + timedelta(days=NEXT_BUSINESS_DAY_HORIZON)
        weekly = self._schedule_repo.weekly()
        specials = self._schedule_repo.special_between(start, end)
        for offset in range(1, NEXT_BUSINESS_DAY_HORIZON + 1):
            candidate = start + timedelta(days=offset)
            if _resolve(candidate, weekly, specials.get(candidate)).is_open:
                return candidate
        logger.error("store.no_business_day", from_date=start.isoformat())
        raise NoBusinessDayFound(start, NEXT_BUSINESS_DAY_HORIZON)

    # ------------------------------------------------------------------
    # Gate
    # ------------------------------------------------------------------

    def status(self) -> StoreStatus:
        now = self._clock.now()
        day = self.effective_schedule(now.date())
        current = now.time()

        if not day.is_open:
            return StoreStatus(open=False, reason=day.reason or REASON_CLOSED)
        if current < day.opening_time:
            return StoreStatus(
                open=False,
                reason=REASON_NOT_YET_OPEN,
                opens_at=day.opening_time,
            )
        if current >= day.closing_time:
            return StoreStatus(open=False, reason=REASON_CLOSED_FOR_DAY)
        if day.has_break and day.break_start <= current < day.break_end:
            return StoreStatus(
                open=False,
                reason=REASON_LUNCH,
                reopens_at=day.break_end,
            )

        closing = datetime.combine(now.date(), day.closing_time, tzinfo=now.tzinfo)
        return StoreStatus(
            open=True,
            minutes_until_closing=int((closing - now).total_seconds() // 60),
            closes_at=day.closing_time,
        )

    def ordering_window(self) -> OrderingWindow:
        """Whether an order placed now is served today, with a notice if not."""
        gate = self.status()
        policy = self._settings()

        if gate.open:
            warning = None
            level = None
            if gate.minutes_until_closing <= policy.order_cutoff_minutes:
                level = "warning"
                warning = (
                    f"The COOP closes in {gate.minutes_until_closing} minutes "
                    f"(at {_fmt(gate.closes_at)}). Your order may not be "
                    "completed today."
                )
            return OrderingWindow(
                is_open=True,
                can_order=True,
                allow_preorders=policy.allow_preorders,
                minutes_until_closing=gate.minutes_until_closing,
                level=level,
                warning=warning,
            )

        try:
            next_day = self.next_business_day()
        except NoBusinessDayFound:
            next_day = None

        if gate.reason == REASON_LUNCH:
            warning = f"The COOP is on lunch break until {_fmt(gate.reopens_at)}."
        else:
            warning = f"The COOP is currently closed ({gate.reason})."
        if next_day is not None and policy.allow_preorders:
            warning += (
                f" Pre-orders will be scheduled for {next_day:%A, %B} {next_day.day}."
            )
        elif next_day is not None:
            warning += f" Ordering reopens on {next_day:%A, %B} {next_day.day}."

        return OrderingWindow(
            is_open=False,
            can_order=policy.allow_preorders and next_day is not None,
            allow_preorders=policy.allow_preorders,
            level="error",
            warning=warning,
            next_business_day=next_day,
        )

    def _settings(self) -> QueueSettings:
        if self._settings_repo is None:
            return QueueSettings()
        return self._settings_repo.load()


def _resolve(
    day: date,
    weekly: Dict[int, WeeklySchedule],
    special: Optional[SpecialHours],
) -> DaySchedule:
    row = weekly.get(day.isoweekday())
    if special is not None:
        if not special.is_open:
            return DaySchedule(
                date=day,
                day_name=f"{day:%A}",
                is_open=False,
                is_special=True,
                reason=special.reason,
            )
        # An open override without times keeps the weekly hours.
        opening = special.opening_time or (row.opening_time if row else None)
        closing = special.closing_time or (row.closing_time if row else None)
        return DaySchedule(
            date=day,
            day_name=f"{day:%A}",
            is_open=opening is not None and closing is not None,
            opening_time=opening,
            closing_time=closing,
            is_special=True,
            reason=special.reason,
        )
    if row is None or not row.is_open:
        return DaySchedule(date=day, day_name=f"{day:%A}", is_open=False)
    return DaySchedule(
        date=day,
        day_name=f"{day:%A}",
        is_open=True,
        opening_time=row.opening_time,
        closing_time=row.closing_time,
        break_start=row.break_start,
        break_end=row.break_end,
    )


def _fmt(value: Optional[time]) -> str:
    return value.strftime("%I:%M %p").lstrip("0") if value else ""
