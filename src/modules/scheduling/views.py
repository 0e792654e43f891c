"""Public store-hours endpoints.

Both views are read-only and anonymous: the kiosk and the ordering page
poll them before a student submits anything.
"""

from __future__ import annotations

from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.scheduling.clock import SystemClock
from modules.scheduling.exceptions import NoBusinessDayFound
from modules.scheduling.repositories.django_repository import ScheduleDjangoRepository
from modules.scheduling.serializers import ScheduleQuerySerializer
from modules.scheduling.services import BusinessHoursService
from modules.scheduling.settings_store import StoreSettingsRepository


class _BusinessHoursView(APIView):
    permission_classes = [AllowAny]
    throttle_scope = "queue_polling"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = BusinessHoursService(
            clock=SystemClock(),
            schedule_repository=ScheduleDjangoRepository(),
            settings_repository=StoreSettingsRepository(),
        )


class StoreStatusView(_BusinessHoursView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/store/status/"""
        gate = self._service.status()
        window = self._service.ordering_window()
        return Response(
            {
                **gate.model_dump(mode="json"),
                "ordering_window": window.model_dump(mode="json"),
            }
        )


class StoreScheduleView(_BusinessHoursView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/store/schedule/?days=N"""
        query = ScheduleQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        days = self._service.schedule(query.validated_data.get("days"))
        try:
            next_day = self._service.next_business_day()
        except NoBusinessDayFound:
            next_day = None
        return Response(
            {
                "days": [day.model_dump(mode="json") for day in days],
                "next_business_day": next_day.isoformat() if next_day else None,
            }
        )
