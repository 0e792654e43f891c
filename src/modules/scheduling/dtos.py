"""Scheduling DTOs (Pydantic v2, immutable).

- ``DaySchedule``: the effective hours of one date (special or weekly).
- ``StoreStatus``: the business-hours gate decision at an instant.
- ``OrderingWindow``: cut-off notice shown before placing an order.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class DaySchedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: dt.date
    day_name: str
    is_open: bool
    opening_time: Optional[dt.time] = None
    closing_time: Optional[dt.time] = None
    break_start: Optional[dt.time] = None
    break_end: Optional[dt.time] = None
    is_special: bool = False
    reason: str = ""

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None


class StoreStatus(BaseModel):
    """Gate decision.

    ``open`` is ``True`` iff today's effective schedule is open and
    ``opening_time <= now < closing_time`` outside the lunch break.
    Only the timestamps relevant to ``reason`` are filled in.
    """

    model_config = ConfigDict(frozen=True)

    open: bool
    reason: Optional[str] = None
    minutes_until_closing: Optional[int] = None
    closes_at: Optional[dt.time] = None
    opens_at: Optional[dt.time] = None
    reopens_at: Optional[dt.time] = None


class OrderingWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_open: bool
    can_order: bool
    allow_preorders: bool
    minutes_until_closing: Optional[int] = None
    level: Optional[Literal["warning", "error"]] = None
    warning: Optional[str] = None
    next_business_day: Optional[dt.date] = None
