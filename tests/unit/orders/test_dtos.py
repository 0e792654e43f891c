"""Unit tests for Order DTOs (Pydantic v2)."""

from __future__ import annotations

from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.orders.constants import ServiceType
from modules.orders.dtos import CreateOrderDTO, LineItemDTO, PrintingOptionsDTO

pytestmark = pytest.mark.unit


class TestLineItemDTO:
    def test_name_is_stripped(self):
        assert LineItemDTO(item_name="  Mug ", quantity=1).item_name == "Mug"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="Item name is required"):
            LineItemDTO(item_name="   ", quantity=1)

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError, match="at least 1"):
            LineItemDTO(item_name="Mug", quantity=quantity)

    def test_frozen(self):
        item = LineItemDTO(item_name="Mug", quantity=1)
        with pytest.raises(ValidationError):
            item.quantity = 3


class TestPrintingOptionsDTO:
    def test_defaults(self):
        options = PrintingOptionsDTO(pages=4)
        assert options.copies == 1
        assert options.color_mode == "bw"
        assert options.paper_size == "short"

    def test_zero_pages_rejected(self):
        with pytest.raises(ValidationError):
            PrintingOptionsDTO(pages=0)

    def test_unknown_paper_size_rejected(self):
        with pytest.raises(ValidationError):
            PrintingOptionsDTO(pages=1, paper_size="letter")


class TestCreateOrderDTO:
    def test_items_order(self):
        dto = CreateOrderDTO(
            student_id=uuid4(),
            service_type=ServiceType.ITEMS,
            items=[LineItemDTO(item_name="Mug", quantity=2)],
        )
        assert dto.notes == ""
        assert dto.printing_options is None

    def test_printing_order(self):
        dto = CreateOrderDTO(
            student_id=uuid4(),
            service_type="printing",
            printing_options={"pages": 12, "color_mode": "color"},
        )
        assert dto.service_type == ServiceType.PRINTING
        assert dto.printing_options.pages == 12

    def test_items_order_needs_items(self):
        with pytest.raises(ValidationError, match="at least one item"):
            CreateOrderDTO(student_id=uuid4(), service_type=ServiceType.ITEMS)

    def test_items_order_rejects_printing_options(self):
        with pytest.raises(ValidationError, match="only apply to printing"):
            CreateOrderDTO(
                student_id=uuid4(),
                service_type=ServiceType.ITEMS,
                items=[{"item_name": "Mug", "quantity": 1}],
                printing_options={"pages": 1},
            )

    def test_duplicate_items_rejected_case_insensitively(self):
        with pytest.raises(ValidationError, match="Duplicate items"):
            CreateOrderDTO(
                student_id=uuid4(),
                service_type=ServiceType.ITEMS,
                items=[
                    {"item_name": "Mug", "quantity": 1},
                    {"item_name": "mug", "quantity": 2},
                ],
            )

    def test_printing_order_needs_options(self):
        with pytest.raises(ValidationError, match="need printing options"):
            CreateOrderDTO(student_id=uuid4(), service_type=ServiceType.PRINTING)

    def test_printing_order_rejects_items(self):
        with pytest.raises(ValidationError, match="cannot contain items"):
            CreateOrderDTO(
                student_id=uuid4(),
                service_type=ServiceType.PRINTING,
                printing_options={"pages": 1},
                items=[{"item_name": "Mug", "quantity": 1}],
            )

    def test_unknown_service_type(self):
        with pytest.raises(ValidationError):
            CreateOrderDTO(
                student_id=uuid4(),
                service_type="laundry",
                items=[{"item_name": "Mug", "quantity": 1}],
            )
