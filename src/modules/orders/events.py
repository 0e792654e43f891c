"""Domain events for the Orders bounded context.

Each event carries what a notification needs, so handlers never read
the order back from the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderEvent(DomainEvent):
    reference_number: str = ""
    student_id: str = ""
    queue_number: Optional[str] = None
    status: str = ""
    correlation_id: str = ""


@dataclass(frozen=True)
class OrderCreated(OrderEvent):
    """Raised when an order is placed (queued or scheduled)."""

    order_type: str = ""
    queue_date: Optional[str] = None
    estimated_minutes: Optional[int] = None


@dataclass(frozen=True)
class OrderCheckedIn(OrderEvent):
    """Raised when a pre-order joins today's queue."""

    estimated_minutes: Optional[int] = None


@dataclass(frozen=True)
class OrderStatusChanged(OrderEvent):
    """Raised when staff move an order to a new status."""

    old_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(OrderEvent):
    """Raised when an order is cancelled by the student or by staff."""

    old_status: str = ""
    reason: str = ""
