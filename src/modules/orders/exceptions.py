"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
API errors with a stable ``code``.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """No order matches the given id or reference number."""


class ActiveOrderExists(Exception):
    """The student already has a live order of the same service type."""

    def __init__(self, service_type: str, reference_number: str) -> None:
        self.service_type = service_type
        self.reference_number = reference_number
        super().__init__(
            f"You already have an active {service_type} order "
            f"({reference_number}). Wait until it is completed or cancel it."
        )


class InvalidState(Exception):
    """The requested operation is not allowed from the order's status."""


class CannotCancel(Exception):
    """The student may not cancel the order in its current status."""


class ServiceClosed(Exception):
    """The COOP is not serving and the request needs it to be."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"The COOP is currently closed ({reason}).")


class QueueAlreadyReset(Exception):
    """The queue has already been reset today."""


class StaffOnlyOperation(Exception):
    """Only COOP staff may perform this operation."""


class UnknownStatus(ValueError):
    """The requested status is not an order status."""
