"""Scheduling domain exceptions."""

from __future__ import annotations


class NoBusinessDayFound(Exception):
    """No open day exists within the look-ahead window."""

    def __init__(self, from_date, horizon_days: int) -> None:
        self.from_date = from_date
        self.horizon_days = horizon_days
        super().__init__(
            f"No business day found within {horizon_days} days after {from_date}."
        )
