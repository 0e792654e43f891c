"""Unit tests for Order serializers."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    StatusUpdateSerializer,
)

pytestmark = pytest.mark.unit


def _data(**overrides):
    data = {
        "student_id": str(uuid4()),
        "service_type": "items",
        "items": [{"item_name": "Mug", "quantity": 2}],
    }
    data.update(overrides)
    return data


class TestCreateOrderSerializer:
    def test_valid_items_order(self):
        serializer = CreateOrderSerializer(data=_data())
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["notes"] == ""

    def test_valid_printing_order(self):
        serializer = CreateOrderSerializer(
            data=_data(
                service_type="printing",
                items=[],
                printing_options={"pages": 20, "copies": 2},
            )
        )
        assert serializer.is_valid(), serializer.errors
        options = serializer.validated_data["printing_options"]
        assert options["color_mode"] == "bw"
        assert options["paper_size"] == "short"

    def test_items_order_without_items(self):
        serializer = CreateOrderSerializer(data=_data(items=[]))
        assert not serializer.is_valid()
        assert "items" in serializer.errors

    def test_items_order_with_printing_options(self):
        serializer = CreateOrderSerializer(data=_data(printing_options={"pages": 1}))
        assert not serializer.is_valid()
        assert "printing_options" in serializer.errors

    def test_duplicate_items(self):
        serializer = CreateOrderSerializer(
            data=_data(
                items=[
                    {"item_name": "Mug", "quantity": 1},
                    {"item_name": " mug", "quantity": 1},
                ]
            )
        )
        assert not serializer.is_valid()
        assert "Duplicate" in str(serializer.errors["items"])

    def test_printing_order_without_options(self):
        serializer = CreateOrderSerializer(
            data=_data(service_type="printing", items=[])
        )
        assert not serializer.is_valid()
        assert "printing_options" in serializer.errors

    def test_printing_order_with_items(self):
        serializer = CreateOrderSerializer(
            data=_data(service_type="printing", printing_options={"pages": 3})
        )
        assert not serializer.is_valid()
        assert "items" in serializer.errors

    @pytest.mark.parametrize(
        "items",
        [
            [{"item_name": "Mug", "quantity": 0}],
            [{"item_name": "", "quantity": 1}],
            [{"quantity": 1}],
        ],
    )
    def test_invalid_line_items(self, items):
        assert not CreateOrderSerializer(data=_data(items=items)).is_valid()

    def test_invalid_student_id(self):
        serializer = CreateOrderSerializer(data=_data(student_id="2021-00123"))
        assert not serializer.is_valid()
        assert "student_id" in serializer.errors

    def test_unknown_service_type(self):
        assert not CreateOrderSerializer(data=_data(service_type="laundry")).is_valid()


class TestStatusUpdateSerializer:
    def test_valid(self):
        serializer = StatusUpdateSerializer(data={"status": "processing"})
        assert serializer.is_valid()

    def test_unknown_status(self):
        serializer = StatusUpdateSerializer(data={"status": "shipped"})
        assert not serializer.is_valid()
        assert "status" in serializer.errors


class TestOutputSerializers:
    def test_order_serializer(self, order_service, student, mug):
        from modules.core.context import RequestContext
        from modules.orders.dtos import CreateOrderDTO, LineItemDTO

        placement = order_service.create_order(
            CreateOrderDTO(
                student_id=student.id,
                service_type="items",
                items=[LineItemDTO(item_name="Mug", quantity=2)],
            ),
            RequestContext(actor="student-user"),
        )
        order = order_service.get_order(placement.reference_number)

        data = OrderSerializer(order).data
        assert data["reference_number"] == placement.reference_number
        assert data["queue_number"] == "Q-1"
        assert data["status"] == "pending"
        assert data["items"][0]["item_name"] == "Mug"
        assert data["items"][0]["quantity"] == 2
        assert data["status_history"][0]["new_status"] == "pending"

        summary = OrderListSerializer(order).data
        assert "items" not in summary
        assert summary["queue_number"] == "Q-1"
