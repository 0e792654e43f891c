"""Event handlers for Orders domain events.

Handlers run when the outbox relay publishes an event; each one queues
the student notification instead of delivering it inline.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCheckedIn,
    OrderCreated,
    OrderEvent,
    OrderStatusChanged,
)
from modules.orders.tasks import send_order_notification
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class _NotifyStudentHandler:
    def handle(self, event: OrderEvent) -> None:
        logger.info(
            "order.event_handled",
            event_name=event.event_name,
            order_id=str(event.aggregate_id),
            status=event.status,
        )
        send_order_notification.delay(event.event_name, event.to_payload())


class OrderCreatedHandler(_NotifyStudentHandler, IEventHandler[OrderCreated]):
    pass


class OrderCheckedInHandler(_NotifyStudentHandler, IEventHandler[OrderCheckedIn]):
    pass


class OrderStatusChangedHandler(
    _NotifyStudentHandler, IEventHandler[OrderStatusChanged]
):
    pass


class OrderCancelledHandler(_NotifyStudentHandler, IEventHandler[OrderCancelled]):
    pass


order_created_handler = OrderCreatedHandler()
order_checked_in_handler = OrderCheckedInHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
