from datetime import datetime, time

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.inventory.models import InventoryItem
from modules.inventory.repositories.django_repository import InventoryDjangoRepository
from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    QueueCounterDjangoRepository,
)
from modules.orders.services import OrderService
from modules.scheduling.clock import FixedClock
from modules.scheduling.models import WeeklySchedule, Weekday
from modules.scheduling.repositories.django_repository import ScheduleDjangoRepository
from modules.scheduling.services import BusinessHoursService
from modules.scheduling.settings_store import StoreSettingsRepository
from modules.students.models import Student
from modules.students.repositories.django_repository import StudentDjangoRepository

# 2026-10-19 is a Monday.
MONDAY = (2026, 10, 19)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Store calendar & clock
# ---------------------------------------------------------------------------


@pytest.fixture()
def weekly_schedule():
    """Mon-Fri 08:00-17:00 (lunch 12:00-13:00), Sat 08:00-12:00, Sun closed."""
    rows = []
    for day in Weekday:
        if day == Weekday.SUNDAY:
            rows.append(WeeklySchedule(day_of_week=day, is_open=False))
        elif day == Weekday.SATURDAY:
            rows.append(
                WeeklySchedule(
                    day_of_week=day,
                    opening_time=time(8),
                    closing_time=time(12),
                )
            )
        else:
            rows.append(
                WeeklySchedule(
                    day_of_week=day,
                    opening_time=time(8),
                    closing_time=time(17),
                    break_start=time(12),
                    break_end=time(13),
                )
            )
    return WeeklySchedule.objects.bulk_create(rows)


def clock_at(hour: int, minute: int = 0, day=MONDAY) -> FixedClock:
    return FixedClock(datetime(*day, hour, minute))


@pytest.fixture()
def make_clock():
    """Factory: ``make_clock(hour, minute=0, day=(y, m, d))``."""
    return clock_at


@pytest.fixture()
def clock():
    """Monday 09:00, store open."""
    return clock_at(9)


@pytest.fixture()
def frozen_clock(monkeypatch, clock):
    """Make the API views run on the ``clock`` fixture."""
    monkeypatch.setattr("modules.orders.views.SystemClock", lambda: clock)
    monkeypatch.setattr("modules.scheduling.views.SystemClock", lambda: clock)
    return clock


@pytest.fixture()
def business_hours(clock, weekly_schedule):
    return BusinessHoursService(
        clock=clock,
        schedule_repository=ScheduleDjangoRepository(),
        settings_repository=StoreSettingsRepository(),
    )


@pytest.fixture()
def make_order_service(weekly_schedule):
    """Factory: an OrderService running on the given clock."""

    def _make(clock):
        return OrderService(
            order_repository=OrderDjangoRepository(),
            student_repository=StudentDjangoRepository(),
            inventory_repository=InventoryDjangoRepository(),
            counter_repository=QueueCounterDjangoRepository(),
            business_hours=BusinessHoursService(
                clock=clock,
                schedule_repository=ScheduleDjangoRepository(),
                settings_repository=StoreSettingsRepository(),
            ),
            clock=clock,
            settings_repository=StoreSettingsRepository(),
        )

    return _make


@pytest.fixture()
def order_service(clock, make_order_service):
    return make_order_service(clock)


# ---------------------------------------------------------------------------
# People & catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def student():
    return Student.objects.create(
        student_number="2021-00123",
        full_name="Maria Santos",
        email="maria.santos@campus.edu",
    )


@pytest.fixture()
def other_student():
    return Student.objects.create(
        student_number="2022-00456",
        full_name="Jose Reyes",
        email="jose.reyes@campus.edu",
    )


@pytest.fixture()
def mug():
    return InventoryItem.objects.create(
        item_name="Mug", quantity=10, estimated_minutes=5
    )


@pytest.fixture()
def lanyard():
    return InventoryItem.objects.create(
        item_name="University Lanyard", quantity=3, estimated_minutes=3
    )


@pytest.fixture()
def staff_user():
    return get_user_model().objects.create_user(
        username="counter-staff", password="staffpass123", is_staff=True
    )


@pytest.fixture()
def student_user():
    return get_user_model().objects.create_user(
        username="student-user", password="studentpass123"
    )


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def student_client(student_user):
    client = APIClient()
    client.force_authenticate(user=student_user)
    return client
