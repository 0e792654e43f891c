"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus, ServiceType
from modules.orders.models import Order, OrderItem, OrderStatusHistory

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class LineItemSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)


class PrintingOptionsSerializer(serializers.Serializer):
    pages = serializers.IntegerField(min_value=1, max_value=1000)
    copies = serializers.IntegerField(min_value=1, max_value=100, default=1)
    color_mode = serializers.ChoiceField(choices=["bw", "color"], default="bw")
    paper_size = serializers.ChoiceField(
        choices=["short", "long", "a4"], default="short"
    )


class CreateOrderSerializer(serializers.Serializer):
    """Validates an order submission.

    ``items`` orders need line items, ``printing`` orders need printing
    options; each payload is rejected on the other service type.
    """

    student_id = serializers.UUIDField()
    service_type = serializers.ChoiceField(choices=ServiceType.choices)
    items = LineItemSerializer(many=True, required=False, default=list)
    printing_options = PrintingOptionsSerializer(required=False, allow_null=True)
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=500
    )

    def validate(self, attrs):
        items = attrs.get("items") or []
        printing = attrs.get("printing_options")
        if attrs["service_type"] == ServiceType.ITEMS:
            if not items:
                raise serializers.ValidationError(
                    {"items": "Order must have at least one item."}
                )
            if printing:
                raise serializers.ValidationError(
                    {"printing_options": "Only printing orders take printing options."}
                )
            names = [item["item_name"].strip().lower() for item in items]
            if len(names) != len(set(names)):
                raise serializers.ValidationError(
                    {"items": "Duplicate items are not allowed in the same order."}
                )
        else:
            if not printing:
                raise serializers.ValidationError(
                    {"printing_options": "Printing orders need printing options."}
                )
            if items:
                raise serializers.ValidationError(
                    {"items": "Printing orders cannot contain items."}
                )
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=500
    )


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=500
    )


class QueueBoardQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "item_name", "quantity"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "changed_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "reference_number",
            "student_id",
            "order_type",
            "service_type",
            "status",
            "queue_number",
            "queue_date",
            "scheduled_date",
            "estimated_wait_minutes",
            "printing_options",
            "ordered_outside_hours",
            "notes",
            "created_at",
            "updated_at",
            "started_processing_at",
            "ready_at",
            "completed_at",
            "cancelled_at",
            "actual_completion_minutes",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for the staff order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "reference_number",
            "student_id",
            "service_type",
            "status",
            "queue_number",
            "queue_date",
            "created_at",
        ]
        read_only_fields = fields
