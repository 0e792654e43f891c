"""Wait-time estimation.

An estimate is linear in the number of orders ahead::

    raw = orders_ahead * avg_processing_minutes + items_minutes
    estimated = clamp(ceil(raw * (1 + buffer% / 100)), min, max)

``items_minutes`` is the preparation time of the order itself: the catalog
minutes of each distinct item, or a page-based figure for printing.
``avg_processing_minutes`` is learned from orders completed in the last
week.  The estimator reads only; it never writes.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Iterable, Optional

import structlog

from modules.orders.constants import (
    COMPLETION_HISTORY_DAYS,
    WAITING_STATES,
    OrderStatus,
    ServiceType,
)
from modules.orders.dtos import (
    LineItemDTO,
    PrintingOptionsDTO,
    WaitTimeEstimate,
    WaitTimeProjection,
)
from modules.scheduling.settings_store import QueueSettings

if TYPE_CHECKING:
    from modules.inventory.repositories.interfaces import IInventoryRepository
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.scheduling.settings_store import StoreSettingsRepository

logger = structlog.get_logger(__name__)


class WaitTimeEstimator:
    def __init__(
        self,
        order_repository: IOrderRepository,
        inventory_repository: IInventoryRepository,
        settings_repository: Optional[StoreSettingsRepository] = None,
    ) -> None:
        self._order_repo = order_repository
        self._inventory_repo = inventory_repository
        self._settings_repo = settings_repository

    def estimate(
        self,
        service_type: str,
        service_date: date,
        now: datetime,
        line_items: Iterable[LineItemDTO] = (),
        printing_options: Optional[PrintingOptionsDTO] = None,
        created_before: Optional[datetime] = None,
    ) -> WaitTimeEstimate:
        """Estimate the wait of an order joining ``service_date``'s queue.

        ``created_before`` is the order's own ``created_at``; leave it
        ``None`` for a candidate that does not exist yet (everything
        waiting is then ahead of it).
        """
        policy = self._settings()
        orders_ahead = self._order_repo.count_waiting(service_date, created_before)
        pending = self._order_repo.count_by_status(service_date, OrderStatus.PENDING)
        items_minutes = self._items_minutes(
            service_type, line_items, printing_options, policy
        )
        avg = self._average_processing_minutes(now, policy)

        raw = orders_ahead * avg + items_minutes
        buffered = math.ceil(raw * (1 + policy.wait_time_buffer_percent / 100))
        estimated = max(policy.wait_time_min, min(policy.wait_time_max, buffered))

        logger.debug(
            "wait_time.estimated",
            service_type=service_type,
            queue_date=service_date.isoformat(),
            orders_ahead=orders_ahead,
            items_minutes=items_minutes,
            avg_processing_minutes=avg,
            estimated_minutes=estimated,
        )
        return WaitTimeEstimate(
            estimated_minutes=estimated,
            queue_position=orders_ahead + 1,
            orders_ahead=orders_ahead,
            pending_orders=pending,
            items_minutes=items_minutes,
            avg_processing_minutes=avg,
        )

    def estimate_for(self, order: Order, now: datetime) -> WaitTimeEstimate:
        """Estimate for a persisted order, ahead-count relative to its creation."""
        printing = (
            PrintingOptionsDTO.model_validate(order.printing_options)
            if order.printing_options
            else None
        )
        return self.estimate(
            service_type=order.service_type,
            service_date=order.queue_date,
            now=now,
            line_items=[
                LineItemDTO(item_name=item.item_name, quantity=item.quantity)
                for item in order.items.all()
            ],
            printing_options=printing,
            created_before=order.created_at,
        )

    def project(self, order: Order, now: datetime) -> WaitTimeProjection:
        """Count the quoted estimate down; position is recomputed live."""
        processing = self._order_repo.count_by_status(
            order.queue_date, OrderStatus.PROCESSING
        )
        elapsed = max(0, int((now - order.created_at).total_seconds() // 60))

        if order.status not in WAITING_STATES:
            return WaitTimeProjection(
                order_id=order.id,
                queue_number=order.queue_number,
                status=order.status,
                estimated_minutes=0,
                queue_position=None,
                orders_ahead=0,
                orders_processing=processing,
                minutes_elapsed=elapsed,
                original_estimate=order.estimated_wait_minutes,
            )

        ahead = self._order_repo.count_waiting(order.queue_date, order.created_at)
        original = order.estimated_wait_minutes
        if original is None:
            original = self.estimate_for(order, now).estimated_minutes
        return WaitTimeProjection(
            order_id=order.id,
            queue_number=order.queue_number,
            status=order.status,
            estimated_minutes=max(1, original - elapsed),
            queue_position=ahead + 1,
            orders_ahead=ahead,
            orders_processing=processing,
            minutes_elapsed=elapsed,
            original_estimate=original,
        )

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def _items_minutes(
        self,
        service_type: str,
        line_items: Iterable[LineItemDTO],
        printing_options: Optional[PrintingOptionsDTO],
        policy: QueueSettings,
    ) -> int:
        if service_type == ServiceType.PRINTING:
            if printing_options is None:
                return policy.printing_base_minutes
            sheets = printing_options.pages * printing_options.copies
            return policy.printing_base_minutes + math.ceil(
                sheets / policy.printing_pages_per_minute
            )

        # One preparation slot per distinct item, whatever the quantity.
        names = list(dict.fromkeys(item.item_name for item in line_items))
        catalog = self._inventory_repo.estimated_minutes_for(names)
        return sum(catalog.get(name, policy.wait_time_per_item) for name in names)

    def _average_processing_minutes(
        self, now: datetime, policy: QueueSettings
    ) -> float:
        since = now - timedelta(days=COMPLETION_HISTORY_DAYS)
        avg = self._order_repo.average_completion_minutes(since)
        if avg is None:
            return float(policy.wait_time_default_processing)
        return float(avg)

    def _settings(self) -> QueueSettings:
        if self._settings_repo is None:
            return QueueSettings()
        return self._settings_repo.load()
