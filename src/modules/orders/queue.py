"""Queue-number allocation.

Numbers are ``Q-1``, ``Q-2``, ... per service date.  Allocation locks the
date's ``QueueCounter`` row, so it must run inside the caller's
transaction: the number becomes visible together with the order that
holds it, and a rollback hands it back.  Nothing is skipped and nothing
is handed out twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.orders.models import format_queue_number

if TYPE_CHECKING:
    from modules.orders.models import QueueReset
    from modules.orders.repositories.interfaces import IQueueCounterRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QueueTicket:
    sequence: int
    cycle: int
    queue_date: date

    @property
    def number(self) -> str:
        return format_queue_number(self.sequence)


class QueueNumberAllocator:
    def __init__(self, counter_repository: IQueueCounterRepository) -> None:
        self._counters = counter_repository

    def next_queue_number(self, service_date: date) -> QueueTicket:
        """Hand out the next number of ``service_date``.

        Raises:
            TransactionManagementError: called outside ``transaction.atomic``.
        """
        _require_transaction()
        counter = self._counters.get_for_update(service_date)
        counter.last_number += 1
        self._counters.save(counter)

        ticket = QueueTicket(
            sequence=counter.last_number,
            cycle=counter.cycle,
            queue_date=service_date,
        )
        logger.info(
            "queue.number_allocated",
            queue_date=service_date.isoformat(),
            queue_number=ticket.number,
            cycle=ticket.cycle,
        )
        return ticket

    def reset(self, service_date: date, actor: str) -> QueueReset:
        """Restart numbering of ``service_date`` at ``Q-1``.

        Orders already numbered keep their number; new orders belong to
        the next cycle.

        Raises:
            QueueAlreadyReset: ``service_date`` was already reset.
        """
        _require_transaction()
        counter = self._counters.get_for_update(service_date)
        reset = self._counters.create_reset(
            reset_date=service_date,
            reset_by=actor,
            previous_last_number=counter.last_number,
        )
        counter.cycle += 1
        counter.last_number = 0
        self._counters.save(counter)

        logger.info(
            "queue.reset",
            queue_date=service_date.isoformat(),
            cycle=counter.cycle,
            previous_last_number=reset.previous_last_number,
        )
        return reset


def _require_transaction() -> None:
    if not transaction.get_connection().in_atomic_block:
        raise transaction.TransactionManagementError(
            "Queue numbers can only be allocated inside transaction.atomic()."
        )
