"""Order repository interfaces.

``IOrderRepository`` extends ``IRepository[Order]`` with the queries the
queue needs (open-order check, queue depth, completion history) and the
audit trail.  ``IQueueCounterRepository`` owns the per-date counters and
reset records used by the queue-number allocator.

The Service Layer depends exclusively on these contracts (DIP).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import (
        Order,
        OrderStatusHistory,
        QueueCounter,
        QueueReset,
    )


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes ``OrderItem`` children and
    ``OrderStatusHistory`` records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items.

        ``data`` holds the ``Order`` field values plus ``items``, a list
        of ``{"item_name", "quantity"}`` dicts.
        """

    @abstractmethod
    def get_by_identifier(self, identifier: str) -> Optional[Order]:
        """Retrieve an order by UUID or by reference number."""

    @abstractmethod
    def get_for_update(self, identifier: str) -> Optional[Order]:
        """Same as ``get_by_identifier`` with a row-level lock."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        """Orders with optional ORM filters, relations eager-loaded."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        changed_by: str = "system",
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def open_order_for(
        self,
        student_id: Any,
        service_type: str,
        statuses: Iterable[str],
        exclude_id: Any = None,
    ) -> Optional[Order]:
        """The student's oldest order of ``service_type`` in ``statuses``."""

    @abstractmethod
    def count_waiting(
        self, queue_date: date, created_before: Optional[datetime] = None
    ) -> int:
        """Pending/processing orders of ``queue_date`` created before the instant."""

    @abstractmethod
    def count_by_status(self, queue_date: date, status: str) -> int:
        """Orders of ``queue_date`` currently in ``status``."""

    @abstractmethod
    def average_completion_minutes(self, since: datetime) -> Optional[float]:
        """Mean ``actual_completion_minutes`` of orders completed since."""

    @abstractmethod
    def queue_for(self, queue_date: date) -> List[Order]:
        """Numbered, non-cancelled orders of ``queue_date`` in queue order."""


class IQueueCounterRepository(ABC):
    @abstractmethod
    def get_for_update(self, queue_date: date) -> QueueCounter:
        """Return the locked counter row of ``queue_date``, creating it."""

    @abstractmethod
    def save(self, counter: QueueCounter) -> QueueCounter:
        """Persist the counter."""

    @abstractmethod
    def create_reset(
        self, reset_date: date, reset_by: str, previous_last_number: int
    ) -> QueueReset:
        """Record a reset.

        Raises:
            QueueAlreadyReset: a reset already exists for ``reset_date``.
        """

