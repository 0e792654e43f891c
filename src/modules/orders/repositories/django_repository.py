"""Django ORM implementations of the order repositories.

Satisfies ``IOrderRepository`` / ``IQueueCounterRepository`` using
Django's QuerySet API.  Saving an order also writes its pending domain
events to the transactional outbox, in the same transaction.

Concurrency control relies on ``select_for_update()``: the order row for
status changes, the ``QueueCounter`` row for number allocation.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import IntegrityError, models, transaction
from django.db.models import Avg

from modules.core.models import OutboxEvent
from modules.orders.constants import WAITING_STATES, OrderStatus
from modules.orders.exceptions import QueueAlreadyReset
from modules.orders.models import (
    Order,
    OrderItem,
    OrderStatusHistory,
    QueueCounter,
    QueueReset,
)
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IQueueCounterRepository,
)

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


def _identifier_lookup(identifier: str) -> Dict[str, Any]:
    try:
        return {"id": UUID(str(identifier))}
    except ValueError:
        return {"reference_number": str(identifier).strip().upper()}


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self) -> models.QuerySet:
        return Order.objects.select_related("student").prefetch_related(
            "items", "status_history"
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        fields = dict(data)
        items = fields.pop("items", [])
        prefix = fields.pop("reference_prefix", "REF")
        length = fields.pop("reference_length", 8)
        order = Order(**fields)
        order.assign_reference_number(prefix, length)
        self.save(order)

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    item_name=item["item_name"],
                    quantity=item["quantity"],
                )
                for item in items
            ]
        )

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            item_count=len(items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_identifier(self, identifier: str) -> Optional[Order]:
        return self._base_queryset().filter(**_identifier_lookup(identifier)).first()

    def get_for_update(self, identifier: str) -> Optional[Order]:
        """Lock the order row.

        Relations are loaded after the lock so the caller iterates over
        items that cannot change underneath it.
        """
        return (
            Order.objects.select_for_update(of=("self",))
            .select_related("student")
            .prefetch_related("items")
            .filter(**_identifier_lookup(identifier))
            .first()
        )

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Supported filter keys are any ``Order`` look-ups, e.g.

        - ``status``
        - ``queue_date``
        - ``student_id``
        """
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        OutboxEvent.objects.bulk_create(
            [
                OutboxEvent(
                    event_type=event.event_name,
                    aggregate_id=str(event.aggregate_id),
                    payload=event.to_payload(),
                    topic=OUTBOX_TOPIC,
                )
                for event in events
            ]
        )
        entity.clear_domain_events()

        logger.debug("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    # ------------------------------------------------------------------
    # Audit trail
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by: str = "system",
        notes: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            changed_by=changed_by,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    # ------------------------------------------------------------------
    # Queue queries
    # ------------------------------------------------------------------

    def open_order_for(
        self,
        student_id: Any,
        service_type: str,
        statuses: Iterable[str],
        exclude_id: Any = None,
    ) -> Optional[Order]:
        queryset = Order.objects.filter(
            student_id=student_id,
            service_type=service_type,
            status__in=set(statuses),
        )
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.order_by("created_at").first()

    def count_waiting(
        self, queue_date: date, created_before: Optional[datetime] = None
    ) -> int:
        queryset = Order.objects.filter(
            queue_date=queue_date, status__in=WAITING_STATES
        )
        if created_before is not None:
            queryset = queryset.filter(created_at__lt=created_before)
        return queryset.count()

    def count_by_status(self, queue_date: date, status: str) -> int:
        return Order.objects.filter(queue_date=queue_date, status=status).count()

    def average_completion_minutes(self, since: datetime) -> Optional[float]:
        result = Order.objects.filter(
            status=OrderStatus.COMPLETED,
            completed_at__gte=since,
            actual_completion_minutes__isnull=False,
        ).aggregate(avg=Avg("actual_completion_minutes"))
        return result["avg"]

    def queue_for(self, queue_date: date) -> List[Order]:
        return list(
            Order.objects.filter(
                queue_date=queue_date,
                queue_sequence__isnull=False,
            )
            .exclude(status=OrderStatus.CANCELLED)
            .order_by("queue_cycle", "queue_sequence")
        )


class QueueCounterDjangoRepository(IQueueCounterRepository):
    def get_for_update(self, queue_date: date) -> QueueCounter:
        # get_or_create runs in a savepoint and re-reads on a concurrent insert.
        QueueCounter.objects.get_or_create(queue_date=queue_date)
        return QueueCounter.objects.select_for_update().get(queue_date=queue_date)

    def save(self, counter: QueueCounter) -> QueueCounter:
        counter.save(update_fields=["cycle", "last_number"])
        return counter

    def create_reset(
        self, reset_date: date, reset_by: str, previous_last_number: int
    ) -> QueueReset:
        try:
            with transaction.atomic():
                return QueueReset.objects.create(
                    reset_date=reset_date,
                    reset_by=reset_by,
                    previous_last_number=previous_last_number,
                )
        except IntegrityError as exc:
            raise QueueAlreadyReset(
                f"The queue was already reset on {reset_date}."
            ) from exc
