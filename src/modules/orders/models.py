"""Order aggregate and the queue bookkeeping tables.

- ``Order``: aggregate root; ``reference_number`` is the human-facing
  identifier (``REF-XXXXXXXX``), the UUIDv7 ``id`` is used internally.
- ``OrderItem``: line item of an ``items`` order, by catalog name.
- ``OrderStatusHistory``: append-only audit trail of status changes.
- ``QueueCounter``: one row per service date, the lock that serializes
  queue-number allocation.
- ``QueueReset``: the once-a-day administrative reset of numbering.

Database-level guarantees:
- ``(queue_date, queue_cycle, queue_sequence)`` is unique when numbered.
- a ``scheduled`` order never carries a queue number.
- ``pending`` / ``processing`` orders always carry one.
"""

from __future__ import annotations

import secrets
from typing import Any

import structlog
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    LIVE_STATES,
    QUEUE_NUMBER_PREFIX,
    REFERENCE_NUMBER_MAX_RETRIES,
    STAFF_TRANSITIONS,
    TERMINAL_STATES,
    OrderStatus,
    OrderType,
    ServiceType,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def format_queue_number(sequence: int) -> str:
    return f"{QUEUE_NUMBER_PREFIX}{sequence}"


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``created_at`` is assignable (not ``auto_now_add``): checking in a
    pre-order moves it to the back of the queue by resetting it to the
    check-in instant.
    """

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    reference_number = models.CharField(max_length=32, unique=True, editable=False)
    student = models.ForeignKey(
        "students.Student",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    order_type = models.CharField(
        max_length=20,
        choices=OrderType.choices,
        default=OrderType.IMMEDIATE,
    )
    service_type = models.CharField(
        max_length=20,
        choices=ServiceType.choices,
        default=ServiceType.ITEMS,
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )

    queue_number = models.CharField(max_length=16, null=True, blank=True)  # noqa: DJ01
    queue_sequence = models.PositiveIntegerField(null=True, blank=True)
    queue_date = models.DateField()
    queue_cycle = models.PositiveSmallIntegerField(default=0)
    scheduled_date = models.DateField(null=True, blank=True)

    started_processing_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    actual_completion_minutes = models.PositiveIntegerField(null=True, blank=True)
    estimated_wait_minutes = models.PositiveIntegerField(null=True, blank=True)

    printing_options = models.JSONField(null=True, blank=True)
    ordered_outside_hours = models.BooleanField(default=False)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(
                fields=["queue_date", "status", "created_at"],
                name="orders_queue_idx",
            ),
            models.Index(
                fields=["student", "service_type", "status"],
                name="orders_student_live_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["queue_date", "queue_cycle", "queue_sequence"],
                condition=models.Q(queue_sequence__isnull=False),
                name="orders_unique_queue_number_per_day",
            ),
            models.CheckConstraint(
                condition=~models.Q(status=OrderStatus.SCHEDULED)
                | models.Q(queue_number__isnull=True),
                name="orders_scheduled_without_queue_number",
            ),
            models.CheckConstraint(
                condition=~models.Q(
                    status__in=[OrderStatus.PENDING, OrderStatus.PROCESSING]
                )
                | models.Q(queue_number__isnull=False),
                name="orders_waiting_with_queue_number",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_live(self) -> bool:
        return self.status in LIVE_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether staff may move the order to *new_status*."""
        return new_status in STAFF_TRANSITIONS.get(self.status, set())

    def assign_queue_number(self, sequence: int, cycle: int) -> None:
        self.queue_sequence = sequence
        self.queue_cycle = cycle
        self.queue_number = format_queue_number(sequence)

    # ------------------------------------------------------------------
    # Reference number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_reference_number(prefix: str = "REF", length: int = 8) -> str:
        """Random ``<prefix>-<HEX>`` with ``length`` hex digits."""
        digits = secrets.token_hex((length + 1) // 2)[:length]
        return f"{prefix.strip()}-{digits}".upper()

    def assign_reference_number(self, prefix: str = "REF", length: int = 8) -> None:
        for _ in range(REFERENCE_NUMBER_MAX_RETRIES):
            candidate = self.generate_reference_number(prefix, length)
            if not Order.objects.filter(reference_number=candidate).exists():
                self.reference_number = candidate
                return
        raise RuntimeError(
            f"Failed to generate unique reference_number after "
            f"{REFERENCE_NUMBER_MAX_RETRIES} attempts"
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.reference_number:
            self.assign_reference_number()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.reference_number} {self.queue_number or '-'} ({self.status})"


class OrderItem(BaseModel):
    """Line item of an ``items`` order.

    Items are referenced by catalog name; a name missing from the catalog
    is accepted (the COOP may sell it off-catalog) but never restocked.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    item_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.item_name} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``changed_by`` is the username of the actor, or ``"system"``.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    changed_by = models.CharField(max_length=150, default="system")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"


class QueueCounter(BaseModel):
    """Last queue number handed out for a service date.

    ``cycle`` is bumped by a daily reset; numbering then restarts at 1.
    """

    queue_date = models.DateField(unique=True)
    cycle = models.PositiveSmallIntegerField(default=0)
    last_number = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "queue_counters"
        ordering = ["-queue_date"]

    def __str__(self) -> str:
        return f"{self.queue_date} cycle {self.cycle}: {self.last_number}"


class QueueReset(BaseModel):
    reset_date = models.DateField(unique=True)
    reset_by = models.CharField(max_length=150)
    previous_last_number = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "queue_resets"
        ordering = ["-reset_date"]

    def __str__(self) -> str:
        return f"Queue reset on {self.reset_date} by {self.reset_by}"
