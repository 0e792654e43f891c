"""Unit tests for order notifications, handlers and the notification task."""

from __future__ import annotations

import logging
from unittest import mock
from uuid import uuid4

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.events import (
    OrderCancelled,
    OrderCheckedIn,
    OrderCreated,
    OrderStatusChanged,
)
from modules.orders.handlers import (
    OrderCancelledHandler,
    OrderCreatedHandler,
    OrderStatusChangedHandler,
)
from modules.orders.notifications import (
    LoggingNotificationSender,
    Notification,
    build_notification,
    get_notification_sender,
)
from modules.orders.tasks import send_order_notification
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


def _payload(**overrides):
    payload = {
        "reference_number": "REF-1A2B3C4D",
        "student_id": "0192f0c4-0000-7000-8000-000000000001",
        "queue_number": "Q-7",
        "status": OrderStatus.PENDING,
        "estimated_minutes": 18,
        "queue_date": "2026-10-19",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Message rendering
# ---------------------------------------------------------------------------


class TestBuildNotification:
    def test_order_created(self):
        note = build_notification("OrderCreated", _payload())
        assert note.subject == "Order REF-1A2B3C4D received"
        assert "Q-7" in note.message
        assert "18 minutes" in note.message
        assert note.recipient_id == "0192f0c4-0000-7000-8000-000000000001"
        assert note.event_name == "OrderCreated"

    def test_pre_order_created(self):
        note = build_notification(
            "OrderCreated",
            _payload(status=OrderStatus.SCHEDULED, queue_number=None),
        )
        assert note.subject == "Pre-order REF-1A2B3C4D scheduled"
        assert "2026-10-19" in note.message
        assert "Check in" in note.message

    def test_checked_in(self):
        note = build_notification("OrderCheckedIn", _payload())
        assert note.subject == "Checked in: Q-7"

    @pytest.mark.parametrize(
        ("status", "subject"),
        [
            (OrderStatus.PROCESSING, "Order REF-1A2B3C4D is being prepared"),
            (OrderStatus.READY, "Order REF-1A2B3C4D is ready"),
            (OrderStatus.COMPLETED, "Order REF-1A2B3C4D completed"),
        ],
    )
    def test_status_changes(self, status, subject):
        note = build_notification("OrderStatusChanged", _payload(status=status))
        assert note.subject == subject

    def test_ready_message_points_to_counter(self):
        note = build_notification(
            "OrderStatusChanged", _payload(status=OrderStatus.READY)
        )
        assert "COOP counter" in note.message

    def test_cancelled(self):
        note = build_notification(
            "OrderCancelled", _payload(status=OrderStatus.CANCELLED)
        )
        assert note.subject == "Order REF-1A2B3C4D cancelled"

    def test_unknown_events_send_nothing(self):
        assert build_notification("SomethingElse", _payload()) is None


def test_default_sender_is_logging_sender():
    assert isinstance(get_notification_sender(), LoggingNotificationSender)


def test_logging_sender_logs(caplog):
    note = Notification(
        recipient_id="abc",
        subject="Order REF-1 is ready",
        message="...",
        reference_number="REF-1",
        event_name="OrderStatusChanged",
    )
    with caplog.at_level(logging.INFO, logger="modules.orders.notifications"):
        LoggingNotificationSender().send(note)

    assert any("notification.sent" in record.getMessage() for record in caplog.records)


# ---------------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------------


class TestSendOrderNotificationTask:
    def test_delivers_through_configured_sender(self):
        sender = mock.Mock()
        with mock.patch(
            "modules.orders.tasks.get_notification_sender", return_value=sender
        ):
            assert send_order_notification("OrderCreated", _payload()) is True

        sender.send.assert_called_once()
        note = sender.send.call_args.args[0]
        assert note.reference_number == "REF-1A2B3C4D"

    def test_skips_events_without_a_message(self):
        sender = mock.Mock()
        with mock.patch(
            "modules.orders.tasks.get_notification_sender", return_value=sender
        ):
            result = send_order_notification(
                "OrderStatusChanged", _payload(status=OrderStatus.PENDING)
            )

        assert result is False
        sender.send.assert_not_called()

    def test_sender_from_settings(self, settings):
        settings.NOTIFICATION_SENDER = (
            "modules.orders.notifications.LoggingNotificationSender"
        )
        assert send_order_notification("OrderCancelled", _payload()) is True


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _event(event_class, **kwargs):
    return event_class(
        aggregate_id=uuid4(),
        reference_number="REF-1A2B3C4D",
        student_id="0192f0c4-0000-7000-8000-000000000001",
        queue_number="Q-7",
        **kwargs,
    )


@pytest.mark.parametrize(
    ("handler_class", "event"),
    [
        (OrderCreatedHandler, _event(OrderCreated, status=OrderStatus.PENDING)),
        (
            OrderStatusChangedHandler,
            _event(OrderStatusChanged, status=OrderStatus.READY),
        ),
        (OrderCancelledHandler, _event(OrderCancelled, status=OrderStatus.CANCELLED)),
    ],
)
def test_handlers_queue_the_notification(handler_class, event):
    with mock.patch("modules.orders.handlers.send_order_notification") as task:
        handler_class().handle(event)

    task.delay.assert_called_once()
    event_name, payload = task.delay.call_args.args
    assert event_name == event.event_name
    assert payload["aggregate_id"] == str(event.aggregate_id)
    assert payload["reference_number"] == "REF-1A2B3C4D"


def test_handler_logs(caplog):
    event = _event(OrderCheckedIn, status=OrderStatus.PENDING, estimated_minutes=6)
    with mock.patch("modules.orders.handlers.send_order_notification"):
        with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
            OrderCreatedHandler().handle(event)

    assert any(
        "order.event_handled" in record.getMessage() for record in caplog.records
    )


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    handler = mock.Mock()
    bus.subscribe(OrderCreated, handler)

    event = _event(OrderCreated)
    bus.publish(event)
    bus.publish(_event(OrderCancelled))

    handler.handle.assert_called_once_with(event)
    assert bus.event_class("OrderCreated") is OrderCreated
    assert bus.event_class("OrderCancelled") is None


def test_subscribing_twice_does_not_duplicate():
    bus = InMemoryEventBus()
    handler = mock.Mock()
    bus.subscribe(OrderCreated, handler)
    bus.subscribe(OrderCreated, handler)

    bus.publish(_event(OrderCreated))
    assert handler.handle.call_count == 1


def test_app_subscribes_order_handlers():
    from shared.infrastructure.bus import event_bus

    names = ("OrderCreated", "OrderCheckedIn", "OrderStatusChanged", "OrderCancelled")
    for name in names:
        assert event_bus.event_class(name) is not None
