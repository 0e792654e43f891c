"""Store calendar and runtime settings.

- ``WeeklySchedule``: one row per ISO weekday (1 = Monday ... 7 = Sunday).
- ``SpecialHours``: a dated override of the weekly row (holidays, events).
- ``StoreSetting``: key/value store policy (pre-orders, wait-time tuning...).
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Weekday(models.IntegerChoices):
    MONDAY = 1, "Monday"
    TUESDAY = 2, "Tuesday"
    WEDNESDAY = 3, "Wednesday"
    THURSDAY = 4, "Thursday"
    FRIDAY = 5, "Friday"
    SATURDAY = 6, "Saturday"
    SUNDAY = 7, "Sunday"


class _HoursMixin(models.Model):
    is_open = models.BooleanField(default=True)
    opening_time = models.TimeField(null=True, blank=True)
    closing_time = models.TimeField(null=True, blank=True)

    class Meta:
        abstract = True

    def clean(self) -> None:
        super().clean()
        if not self.is_open:
            return
        if self.opening_time is None or self.closing_time is None:
            raise ValidationError("Open days need an opening and a closing time.")
        if self.opening_time >= self.closing_time:
            raise ValidationError(
                {"closing_time": "Closing time must be after opening time."}
            )


class WeeklySchedule(_HoursMixin, BaseModel):
    """Regular opening hours for one weekday, with an optional lunch break."""

    day_of_week = models.PositiveSmallIntegerField(
        choices=Weekday.choices,
        unique=True,
        validators=[MinValueValidator(1), MaxValueValidator(7)],
    )
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "weekly_schedule"
        ordering = ["day_of_week"]

    def clean(self) -> None:
        super().clean()
        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError("A break needs both a start and an end.")
        if self.break_start is not None and self.break_start >= self.break_end:
            raise ValidationError({"break_end": "Break end must be after its start."})

    def __str__(self) -> str:
        if not self.is_open:
            return f"{self.get_day_of_week_display()}: closed"
        return (
            f"{self.get_day_of_week_display()}: "
            f"{self.opening_time:%H:%M}-{self.closing_time:%H:%M}"
        )


class SpecialHours(_HoursMixin, BaseModel):
    """Override of the weekly schedule for a single calendar date."""

    date = models.DateField(unique=True)
    reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "special_hours"
        ordering = ["date"]

    def __str__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"{self.date} ({state}) {self.reason}".strip()


class StoreSetting(BaseModel):
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=255)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "store_settings"
        ordering = ["key"]

    def __str__(self) -> str:
        return f"{self.key}={self.value}"
