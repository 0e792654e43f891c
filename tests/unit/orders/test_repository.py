"""Unit tests for OrderDjangoRepository."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from modules.orders.constants import (
    LIVE_STATES,
    NON_TERMINAL_STATES,
    OrderStatus,
    ServiceType,
)
from modules.orders.events import OrderStatusChanged
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.unit

MONDAY = date(2026, 10, 19)
NINE = timezone.make_aware(datetime(2026, 10, 19, 9))


@pytest.fixture()
def repo():
    return OrderDjangoRepository()


@pytest.fixture()
def make_order(repo, student):
    counter = {"seq": 0}

    def _make(status=OrderStatus.PENDING, owner=None, minutes=0, **fields):
        counter["seq"] += 1
        seq = counter["seq"]
        data = {
            "student": owner or student,
            "service_type": ServiceType.ITEMS,
            "status": status,
            "queue_date": MONDAY,
            "created_at": NINE + timedelta(minutes=minutes),
            "items": [{"item_name": "Mug", "quantity": 1}],
        }
        if status != OrderStatus.SCHEDULED:
            data.update(queue_sequence=seq, queue_number=f"Q-{seq}")
        data.update(fields)
        return repo.create(data)

    return _make


class TestCreateAndLookup:
    def test_create_persists_items_and_reference(self, make_order):
        order = make_order(reference_prefix="COOP", reference_length=6)
        assert order.reference_number.startswith("COOP-")
        assert len(order.reference_number) == len("COOP-") + 6
        assert list(order.items.values_list("item_name", "quantity")) == [("Mug", 1)]

    def test_get_by_identifier_accepts_uuid_and_reference(self, repo, make_order):
        order = make_order()
        assert repo.get_by_identifier(str(order.id)).id == order.id
        assert repo.get_by_identifier(order.reference_number.lower()).id == order.id
        assert repo.get_by_identifier(f"  {order.reference_number} ").id == order.id

    def test_lowercase_prefix_still_found_by_reference(self, repo, make_order):
        order = make_order(reference_prefix="coop")
        assert order.reference_number.startswith("COOP-")
        assert repo.get_by_identifier(order.reference_number.lower()).id == order.id

    def test_get_by_identifier_missing(self, repo):
        assert repo.get_by_identifier(str(uuid4())) is None
        assert repo.get_by_identifier("REF-00000000") is None

    def test_get_by_id_invalid(self, repo):
        assert repo.get_by_id("not-a-uuid") is None

    def test_get_for_update(self, repo, make_order):
        order = make_order()
        assert repo.get_for_update(order.reference_number).id == order.id

    def test_list_filters(self, repo, make_order):
        make_order()
        make_order(status=OrderStatus.PROCESSING)
        assert repo.list().count() == 2
        assert repo.list({"status": OrderStatus.PROCESSING}).count() == 1


class TestOutbox:
    def test_save_flushes_domain_events(self, repo, make_order):
        order = make_order()
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                reference_number=order.reference_number,
                status=OrderStatus.PROCESSING,
                old_status=OrderStatus.PENDING,
            )
        )
        repo.save(order)

        event = OutboxEvent.objects.get()
        assert event.event_type == "OrderStatusChanged"
        assert event.status == EventStatus.PENDING
        assert event.payload["reference_number"] == order.reference_number
        assert order.domain_events == []

    def test_save_without_events_writes_nothing(self, repo, make_order):
        repo.save(make_order())
        assert OutboxEvent.objects.count() == 0


class TestQueueQueries:
    def test_open_order_for(self, repo, make_order, other_student):
        make_order(status=OrderStatus.COMPLETED)
        scheduled = make_order(status=OrderStatus.SCHEDULED, minutes=1)
        live = make_order(status=OrderStatus.READY, minutes=2)
        make_order(owner=other_student)
        student_id = live.student_id

        found = repo.open_order_for(student_id, ServiceType.ITEMS, LIVE_STATES)
        assert found.id == live.id
        unfinished = repo.open_order_for(
            student_id, ServiceType.ITEMS, NON_TERMINAL_STATES
        )
        assert unfinished.id == scheduled.id
        assert (
            repo.open_order_for(student_id, ServiceType.PRINTING, NON_TERMINAL_STATES)
            is None
        )
        assert (
            repo.open_order_for(
                student_id, ServiceType.ITEMS, LIVE_STATES, exclude_id=live.id
            )
            is None
        )

    def test_count_waiting(self, repo, make_order):
        make_order(minutes=0)
        make_order(status=OrderStatus.PROCESSING, minutes=1)
        make_order(status=OrderStatus.READY, minutes=2)
        mine = make_order(minutes=3)
        make_order(minutes=4)

        assert repo.count_waiting(MONDAY) == 4
        assert repo.count_waiting(MONDAY, created_before=mine.created_at) == 2
        assert repo.count_waiting(MONDAY + timedelta(days=1)) == 0

    def test_count_by_status(self, repo, make_order):
        make_order()
        make_order()
        make_order(status=OrderStatus.PROCESSING)
        assert repo.count_by_status(MONDAY, OrderStatus.PENDING) == 2

    def test_average_completion_minutes(self, repo, make_order):
        assert repo.average_completion_minutes(NINE - timedelta(days=7)) is None
        make_order(
            status=OrderStatus.COMPLETED,
            completed_at=NINE,
            actual_completion_minutes=12,
        )
        make_order(
            status=OrderStatus.COMPLETED,
            completed_at=NINE,
            actual_completion_minutes=18,
        )
        assert repo.average_completion_minutes(NINE - timedelta(days=7)) == 15

    def test_queue_for_orders_by_cycle_then_number(self, repo, make_order):
        before_reset = make_order(queue_sequence=2, queue_number="Q-2")
        make_order(status=OrderStatus.CANCELLED, queue_sequence=5, queue_number="Q-5")
        after_reset = make_order(queue_cycle=1, queue_sequence=1, queue_number="Q-1")
        first = make_order(queue_sequence=1, queue_number="Q-1")
        make_order(status=OrderStatus.SCHEDULED)

        queue = repo.queue_for(MONDAY)
        assert [o.id for o in queue] == [first.id, before_reset.id, after_reset.id]


class TestHistory:
    def test_add_history(self, repo, make_order):
        order = make_order()
        entry = repo.add_history(
            order.id,
            OrderStatus.PROCESSING,
            old_status=OrderStatus.PENDING,
            changed_by="counter-staff",
            notes="Started",
        )
        assert entry.order_id == order.id
        assert entry.changed_by == "counter-staff"
        assert repo.add_history(order.id, OrderStatus.READY).changed_by == "system"
