"""Store-hours URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.scheduling.views import StoreScheduleView, StoreStatusView

urlpatterns = [
    path("store/status/", StoreStatusView.as_view(), name="store-status"),
    path("store/schedule/", StoreScheduleView.as_view(), name="store-schedule"),
]
