"""Order and queue URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import OrderViewSet, QueueBoardView, QueueResetView

router = DefaultRouter(trailing_slash=True)
router.register("orders", OrderViewSet, basename="order")

urlpatterns = [
    path("queue/board/", QueueBoardView.as_view(), name="queue-board"),
    path("queue/reset/", QueueResetView.as_view(), name="queue-reset"),
    *router.urls,
]
