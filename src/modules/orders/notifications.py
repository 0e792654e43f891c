"""Student notifications for order events.

Delivery (e-mail, SMS, push) is provided by whatever sender
``settings.NOTIFICATION_SENDER`` points to; the default one only writes
a structured log line.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog
from django.conf import settings
from django.utils.module_loading import import_string

from modules.orders.constants import OrderStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Notification:
    recipient_id: str
    subject: str
    message: str
    reference_number: str
    event_name: str


class NotificationSender(ABC):
    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver ``notification``; raise on failure so the task retries."""


class LoggingNotificationSender(NotificationSender):
    def send(self, notification: Notification) -> None:
        logger.info(
            "notification.sent",
            recipient_id=notification.recipient_id,
            reference_number=notification.reference_number,
            event_name=notification.event_name,
            subject=notification.subject,
        )


def get_notification_sender() -> NotificationSender:
    return import_string(settings.NOTIFICATION_SENDER)()


_STATUS_MESSAGES = {
    OrderStatus.PROCESSING: (
        "Order {reference_number} is being prepared",
        "Your order {reference_number} ({queue_number}) is now being prepared.",
    ),
    OrderStatus.READY: (
        "Order {reference_number} is ready",
        "Your order {reference_number} ({queue_number}) is ready for pick-up "
        "at the COOP counter.",
    ),
    OrderStatus.COMPLETED: (
        "Order {reference_number} completed",
        "Your order {reference_number} has been completed. Thank you!",
    ),
}


def build_notification(
    event_name: str, payload: Dict[str, Any]
) -> Optional[Notification]:
    """Render the message for an order event; ``None`` when nothing is sent."""
    values = {
        "reference_number": payload.get("reference_number", ""),
        "queue_number": payload.get("queue_number") or "-",
        "estimated_minutes": payload.get("estimated_minutes"),
        "queue_date": payload.get("queue_date"),
    }

    if event_name == "OrderCreated":
        if payload.get("status") == OrderStatus.SCHEDULED:
            subject = "Pre-order {reference_number} scheduled"
            message = (
                "Your pre-order {reference_number} is scheduled for {queue_date}. "
                "Check in when the COOP opens to get your queue number."
            )
        else:
            subject = "Order {reference_number} received"
            message = (
                "Your order {reference_number} is in the queue as {queue_number}. "
                "Estimated wait: {estimated_minutes} minutes."
            )
    elif event_name == "OrderCheckedIn":
        subject = "Checked in: {queue_number}"
        message = (
            "Your order {reference_number} joined today's queue as {queue_number}. "
            "Estimated wait: {estimated_minutes} minutes."
        )
    elif event_name == "OrderStatusChanged":
        template = _STATUS_MESSAGES.get(payload.get("status"))
        if template is None:
            return None
        subject, message = template
    elif event_name == "OrderCancelled":
        subject = "Order {reference_number} cancelled"
        message = "Your order {reference_number} has been cancelled."
    else:
        return None

    return Notification(
        recipient_id=str(payload.get("student_id", "")),
        subject=subject.format(**values),
        message=message.format(**values),
        reference_number=values["reference_number"],
        event_name=event_name,
    )
