"""Order and queue API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into API errors with a
stable ``code``; the view never swallows generic exceptions.
"""

from __future__ import annotations

from typing import NoReturn

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as DTOValidationError
from rest_framework import exceptions, status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import AllowAny, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet

from modules.core.context import RequestContext
from modules.core.exceptions import ConflictError, ServiceUnavailableError
from modules.inventory.exceptions import InsufficientStock
from modules.inventory.repositories.django_repository import InventoryDjangoRepository
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    ActiveOrderExists,
    CannotCancel,
    InvalidState,
    OrderNotFound,
    QueueAlreadyReset,
    ServiceClosed,
    StaffOnlyOperation,
    UnknownStatus,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    QueueCounterDjangoRepository,
)
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    QueueBoardQuerySerializer,
    StatusUpdateSerializer,
)
from modules.orders.services import OrderService
from modules.scheduling.clock import SystemClock
from modules.scheduling.exceptions import NoBusinessDayFound
from modules.scheduling.repositories.django_repository import ScheduleDjangoRepository
from modules.scheduling.services import BusinessHoursService
from modules.scheduling.settings_store import StoreSettingsRepository
from modules.students.exceptions import StudentNotFound
from modules.students.repositories.django_repository import StudentDjangoRepository

DOMAIN_ERRORS = (
    OrderNotFound,
    StudentNotFound,
    ActiveOrderExists,
    InvalidState,
    CannotCancel,
    InsufficientStock,
    QueueAlreadyReset,
    ServiceClosed,
    StaffOnlyOperation,
    UnknownStatus,
    NoBusinessDayFound,
)

_CONFLICT_CODES = {
    ActiveOrderExists: "active_order_exists",
    InvalidState: "invalid_state",
    CannotCancel: "cannot_cancel",
    InsufficientStock: "insufficient_stock",
    QueueAlreadyReset: "queue_already_reset",
    ServiceClosed: "service_closed",
}


def build_order_service() -> OrderService:
    clock = SystemClock()
    settings_repository = StoreSettingsRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        student_repository=StudentDjangoRepository(),
        inventory_repository=InventoryDjangoRepository(),
        counter_repository=QueueCounterDjangoRepository(),
        business_hours=BusinessHoursService(
            clock=clock,
            schedule_repository=ScheduleDjangoRepository(),
            settings_repository=settings_repository,
        ),
        clock=clock,
        settings_repository=settings_repository,
    )


def raise_api_error(exc: Exception) -> NoReturn:
    """Re-raise a domain exception as the matching DRF exception."""
    detail = str(exc)
    if isinstance(exc, OrderNotFound):
        raise exceptions.NotFound(detail, code="order_not_found") from exc
    if isinstance(exc, StudentNotFound):
        raise exceptions.NotFound(detail, code="student_not_found") from exc
    if isinstance(exc, StaffOnlyOperation):
        raise exceptions.PermissionDenied(detail) from exc
    if isinstance(exc, UnknownStatus):
        raise exceptions.ValidationError({"status": [detail]}) from exc
    if isinstance(exc, NoBusinessDayFound):
        raise ServiceUnavailableError(detail, code="no_business_day") from exc
    for error_class, code in _CONFLICT_CODES.items():
        if isinstance(exc, error_class):
            raise ConflictError(detail, code=code) from exc
    raise exc


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.  Orders are addressed by UUID or by
    reference number.
    """

    queryset = Order.objects.none()
    lookup_value_regex = "[^/]+"
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "queue_date", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in {"list", "partial_update"}:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.action == "create":
            self.throttle_scope = "order_creation"
        elif self.action == "wait_time":
            self.throttle_scope = "queue_polling"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        201 with the queue number when the COOP is open; 201 with a
        ``scheduled`` pre-order (no queue number) when it is closed.
        """
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateOrderDTO.model_validate(serializer.validated_data)
        except DTOValidationError as exc:
            raise exceptions.ValidationError(
                [error["msg"] for error in exc.errors()]
            ) from exc

        try:
            placement = self._service.create_order(
                dto, RequestContext.from_request(request)
            )
        except DOMAIN_ERRORS as exc:
            raise_api_error(exc)
        return Response(placement.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/ (staff)

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{id_or_reference}/"""
        try:
            order = self._service.get_order(pk)
        except OrderNotFound as exc:
            raise_api_error(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Staff status update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{id_or_reference}/

        Moves the order one step forward, or cancels it (with restock).
        """
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = self._service.update_status(
                identifier=pk,
                new_status=serializer.validated_data["status"],
                context=RequestContext.from_request(request),
                notes=serializer.validated_data["notes"],
            )
        except DOMAIN_ERRORS as exc:
            raise_api_error(exc)
        return Response(result.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Student actions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{id_or_reference}/check-in/"""
        try:
            result = self._service.check_in(pk, RequestContext.from_request(request))
        except DOMAIN_ERRORS as exc:
            raise_api_error(exc)
        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{id_or_reference}/cancel/

        Cancels a pending or scheduled order and restocks its items.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = self._service.cancel_order(
                pk,
                RequestContext.from_request(request),
                reason=serializer.validated_data["reason"],
            )
        except DOMAIN_ERRORS as exc:
            raise_api_error(exc)
        return Response(result.model_dump(mode="json"))

    @action(detail=True, methods=["get"], url_path="wait-time")
    def wait_time(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{id_or_reference}/wait-time/"""
        try:
            projection = self._service.get_wait_time(pk)
        except OrderNotFound as exc:
            raise_api_error(exc)
        return Response(projection.model_dump(mode="json"))


class QueueBoardView(APIView):
    """Public queue display: numbers and statuses, no personal data."""

    permission_classes = [AllowAny]
    throttle_scope = "queue_polling"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get(self, request: Request) -> Response:
        """GET /api/v1/queue/board/?date=YYYY-MM-DD"""
        query = QueueBoardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        board = self._service.queue_board(query.validated_data.get("date"))
        return Response(board.model_dump(mode="json"))


class QueueResetView(APIView):
    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def post(self, request: Request) -> Response:
        """POST /api/v1/queue/reset/ (staff, once per day)"""
        try:
            result = self._service.reset_daily_queue(
                RequestContext.from_request(request)
            )
        except DOMAIN_ERRORS as exc:
            raise_api_error(exc)
        return Response(result.model_dump(mode="json"), status=status.HTTP_201_CREATED)
