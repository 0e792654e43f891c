"""Integration tests for the public store-hours endpoints."""

from __future__ import annotations

from datetime import date, time

import pytest

from modules.scheduling.models import SpecialHours, WeeklySchedule

pytestmark = pytest.mark.integration

STATUS_URL = "/api/v1/store/status/"
SCHEDULE_URL = "/api/v1/store/schedule/"


@pytest.fixture(autouse=True)
def _calendar(frozen_clock, weekly_schedule):
    """Monday 09:00 on the standard week."""


class TestStoreStatus:
    def test_open(self, api_client):
        response = api_client.get(STATUS_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["open"] is True
        assert data["closes_at"] == "17:00:00"
        assert data["minutes_until_closing"] == 480
        assert data["ordering_window"]["can_order"] is True
        assert data["ordering_window"]["warning"] is None

    def test_lunch_break(self, api_client, frozen_clock):
        frozen_clock.advance(hours=3, minutes=15)  # 12:15

        data = api_client.get(STATUS_URL).json()

        assert data["open"] is False
        assert data["reason"] == "Lunch break"
        assert data["reopens_at"] == "13:00:00"
        assert "lunch break until" in data["ordering_window"]["warning"]

    def test_close_to_closing_time_warns(self, api_client, frozen_clock):
        frozen_clock.advance(hours=7, minutes=40)  # 16:40

        window = api_client.get(STATUS_URL).json()["ordering_window"]

        assert window["level"] == "warning"
        assert "closes in 20 minutes" in window["warning"]

    def test_closed_points_to_next_business_day(self, api_client, frozen_clock):
        frozen_clock.advance(hours=9)  # 18:00

        data = api_client.get(STATUS_URL).json()

        assert data["open"] is False
        assert data["reason"] == "Closed for the day"
        window = data["ordering_window"]
        assert window["level"] == "error"
        assert window["next_business_day"] == "2026-10-20"
        assert "Pre-orders will be scheduled for Tuesday, October 20." in window[
            "warning"
        ]

    def test_special_closure(self, api_client):
        SpecialHours.objects.create(
            date=date(2026, 10, 19), is_open=False, reason="Foundation Day"
        )
        data = api_client.get(STATUS_URL).json()
        assert data["open"] is False
        assert data["reason"] == "Foundation Day"

    def test_no_authentication_required(self, api_client):
        assert api_client.get(STATUS_URL).status_code == 200


class TestStoreSchedule:
    def test_default_horizon(self, api_client):
        response = api_client.get(SCHEDULE_URL)

        assert response.status_code == 200
        data = response.json()
        assert len(data["days"]) == 7
        monday = data["days"][0]
        assert monday["date"] == "2026-10-19"
        assert monday["day_name"] == "Monday"
        assert monday["break_start"] == "12:00:00"
        sunday = data["days"][6]
        assert sunday["is_open"] is False
        assert data["next_business_day"] == "2026-10-20"

    def test_days_parameter(self, api_client):
        data = api_client.get(SCHEDULE_URL, {"days": 3}).json()
        assert [d["date"] for d in data["days"]] == [
            "2026-10-19",
            "2026-10-20",
            "2026-10-21",
        ]

    def test_special_hours_override_the_week(self, api_client):
        SpecialHours.objects.create(
            date=date(2026, 10, 21),
            is_open=True,
            opening_time=time(10),
            closing_time=time(14),
            reason="Faculty meeting",
        )
        wednesday = api_client.get(SCHEDULE_URL, {"days": 3}).json()["days"][2]
        assert wednesday["is_special"] is True
        assert wednesday["opening_time"] == "10:00:00"
        assert wednesday["reason"] == "Faculty meeting"

    @pytest.mark.parametrize("days", [0, 32, "week"])
    def test_invalid_days(self, api_client, days):
        response = api_client.get(SCHEDULE_URL, {"days": days})
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_no_business_day_ahead(self, api_client):
        WeeklySchedule.objects.update(is_open=False)
        data = api_client.get(SCHEDULE_URL).json()
        assert data["next_business_day"] is None
        assert not any(day["is_open"] for day in data["days"])
