from __future__ import annotations

from datetime import time

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.inventory.models import InventoryItem
from modules.scheduling.models import StoreSetting, WeeklySchedule, Weekday
from modules.scheduling.settings_store import QueueSettings

DEFAULT_WEEK = {
    Weekday.MONDAY: (time(8), time(17), time(12), time(13)),
    Weekday.TUESDAY: (time(8), time(17), time(12), time(13)),
    Weekday.WEDNESDAY: (time(8), time(17), time(12), time(13)),
    Weekday.THURSDAY: (time(8), time(17), time(12), time(13)),
    Weekday.FRIDAY: (time(8), time(17), time(12), time(13)),
    Weekday.SATURDAY: (time(8), time(12), None, None),
    Weekday.SUNDAY: None,
}

DEFAULT_ITEMS = [
    ("Bond Paper (Short)", 500, 2),
    ("Bond Paper (Long)", 300, 2),
    ("Ballpen (Black)", 200, 1),
    ("Blue Book", 150, 1),
    ("University Lanyard", 80, 3),
    ("PE Uniform", 40, 10),
    ("Mug", 25, 5),
]


class Command(BaseCommand):
    help = "Seed the store calendar, default settings and a small catalog."

    def add_arguments(self, parser):
        parser.add_argument(
            "--with-staff",
            action="store_true",
            help="Also create a 'staff' user (password: staff123).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding store data...")

        days = self._seed_schedule()
        settings_created = self._seed_settings()
        items = self._seed_items()
        if options["with_staff"]:
            self._seed_staff()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"schedule_days={days}, "
                f"settings={settings_created}, "
                f"items={items}"
            )
        )

    def _seed_schedule(self) -> int:
        created = 0
        for day, hours in DEFAULT_WEEK.items():
            if hours is None:
                defaults = {"is_open": False}
            else:
                opening, closing, break_start, break_end = hours
                defaults = {
                    "is_open": True,
                    "opening_time": opening,
                    "closing_time": closing,
                    "break_start": break_start,
                    "break_end": break_end,
                }
            _, was_created = WeeklySchedule.objects.get_or_create(
                day_of_week=day, defaults=defaults
            )
            created += int(was_created)
        return created

    def _seed_settings(self) -> int:
        created = 0
        for key, field in QueueSettings.model_fields.items():
            value = field.default
            if isinstance(value, bool):
                value = "1" if value else "0"
            _, was_created = StoreSetting.objects.get_or_create(
                key=key, defaults={"value": str(value)}
            )
            created += int(was_created)
        return created

    def _seed_items(self) -> int:
        created = 0
        for name, quantity, minutes in DEFAULT_ITEMS:
            _, was_created = InventoryItem.objects.get_or_create(
                item_name=name,
                defaults={"quantity": quantity, "estimated_minutes": minutes},
            )
            created += int(was_created)
        return created

    def _seed_staff(self) -> None:
        User = get_user_model()
        if not User.objects.filter(username="staff").exists():
            User.objects.create_user("staff", password="staff123", is_staff=True)
