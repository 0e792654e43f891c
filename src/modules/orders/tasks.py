"""Background tasks of the orders module."""

from __future__ import annotations

from typing import Any, Dict

import structlog
from celery import shared_task

from modules.orders.notifications import build_notification, get_notification_sender

logger = structlog.get_logger(__name__)


@shared_task(
    name="orders.send_order_notification",
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True,
    max_retries=3,
)
def send_order_notification(event_name: str, payload: Dict[str, Any]) -> bool:
    """Render and deliver the notification of one order event.

    Returns ``False`` when the event does not notify the student.
    """
    with structlog.contextvars.bound_contextvars(
        correlation_id=payload.get("correlation_id", "")
    ):
        notification = build_notification(event_name, payload)
        if notification is None:
            logger.debug("notification.skipped", event_name=event_name)
            return False
        get_notification_sender().send(notification)
        return True
