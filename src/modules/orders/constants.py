"""Order domain constants.

Status choices and the transition tables of the order state machine.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    SCHEDULED = "scheduled", "Scheduled"
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    READY = "ready", "Ready for pick-up"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class OrderType(models.TextChoices):
    IMMEDIATE = "immediate", "Immediate"
    PRE_ORDER = "pre-order", "Pre-order"


class ServiceType(models.TextChoices):
    ITEMS = "items", "Items"
    PRINTING = "printing", "Printing"


# Moves staff may make.  Skipping a step (pending -> ready) is not allowed.
STAFF_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.SCHEDULED: {OrderStatus.CANCELLED},
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

STUDENT_CANCELLABLE: set[str] = {OrderStatus.PENDING, OrderStatus.SCHEDULED}

TERMINAL_STATES: set[str] = {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

# At most one order per service type per student in these states.
NON_TERMINAL_STATES: set[str] = set(OrderStatus.values) - TERMINAL_STATES

# States that hold a place in today's queue.
LIVE_STATES: set[str] = {
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.READY,
}

# States counted as "ahead of you" by the wait-time estimator.
WAITING_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.PROCESSING}

QUEUE_NUMBER_PREFIX = "Q-"

REFERENCE_NUMBER_MAX_RETRIES = 5

COMPLETION_HISTORY_DAYS = 7
