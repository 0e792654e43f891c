"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

Input:
- ``LineItemDTO`` / ``PrintingOptionsDTO``: order payloads.
- ``CreateOrderDTO``: order submission.

Output:
- ``OrderPlacement``, ``CheckInResult``, ``StatusUpdateResult``,
  ``CancellationResult``, ``QueueResetResult``: command results.
- ``WaitTimeEstimate`` / ``WaitTimeProjection``: estimator results.
- ``QueueBoard``: the public queue display.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import ServiceType

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class LineItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_name: str
    quantity: int

    @field_validator("item_name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name is required.")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class PrintingOptionsDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    pages: int = Field(ge=1)
    copies: int = Field(default=1, ge=1)
    color_mode: Literal["bw", "color"] = "bw"
    paper_size: Literal["short", "long", "a4"] = "short"


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order submissions.

    Validates:
    - ``items`` orders carry at least one line item and no printing options.
    - ``printing`` orders carry printing options and no line items.
    - The same item name appears at most once.
    """

    model_config = ConfigDict(frozen=True)

    student_id: UUID
    service_type: ServiceType
    items: List[LineItemDTO] = Field(default_factory=list)
    printing_options: Optional[PrintingOptionsDTO] = None
    notes: str = ""

    @model_validator(mode="after")
    def payload_matches_service_type(self):
        if self.service_type == ServiceType.ITEMS:
            if not self.items:
                raise ValueError("Order must have at least one item.")
            if self.printing_options is not None:
                raise ValueError("Printing options only apply to printing orders.")
            names = [item.item_name.lower() for item in self.items]
            if len(names) != len(set(names)):
                raise ValueError("Duplicate items are not allowed in the same order.")
        else:
            if self.printing_options is None:
                raise ValueError("Printing orders need printing options.")
            if self.items:
                raise ValueError("Printing orders cannot contain items.")
        return self


# ---------------------------------------------------------------------------
# Estimator DTOs
# ---------------------------------------------------------------------------


class WaitTimeEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    estimated_minutes: int
    queue_position: int
    orders_ahead: int
    pending_orders: int
    items_minutes: int
    avg_processing_minutes: float


class WaitTimeProjection(BaseModel):
    """Live view of a queued order, for polling clients.

    ``estimated_minutes`` only ever counts down from the estimate quoted
    at creation or check-in.
    """

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    queue_number: Optional[str]
    status: str
    estimated_minutes: int
    queue_position: Optional[int]
    orders_ahead: int
    orders_processing: int
    minutes_elapsed: int
    original_estimate: Optional[int]


# ---------------------------------------------------------------------------
# Command results
# ---------------------------------------------------------------------------


class OrderPlacement(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    reference_number: str
    queue_number: Optional[str]
    status: str
    order_type: str
    service_type: str
    queue_date: dt.date
    scheduled_date: Optional[dt.date] = None
    estimated_minutes: Optional[int] = None
    queue_position: Optional[int] = None
    ordered_outside_hours: bool = False
    message: str = ""


class CheckInResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    reference_number: str
    queue_number: str
    status: str
    wait_time: int
    queue_position: int
    already_active: bool


class StatusUpdateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    reference_number: str
    old_status: str
    new_status: str


class RestoredItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_name: str
    quantity: int
    new_quantity: int


class CancellationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    reference_number: str
    previous_status: str
    new_status: str
    inventory_restocked: bool
    restored_items: List[RestoredItem] = Field(default_factory=list)


class QueueResetResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    reset_date: dt.date
    reset_by: str
    previous_last_number: int


# ---------------------------------------------------------------------------
# Queue board
# ---------------------------------------------------------------------------


class QueueBoardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    queue_number: str
    reference_suffix: str
    status: str
    service_type: str
    estimated_minutes: Optional[int] = None


class QueueBoard(BaseModel):
    model_config = ConfigDict(frozen=True)

    queue_date: dt.date
    current_serving: Optional[str]
    waiting: int
    entries: List[QueueBoardEntry]
