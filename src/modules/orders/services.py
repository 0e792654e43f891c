"""Order service layer (Use Cases).

Orchestrates order placement, pre-order check-in, staff status updates,
student cancellation and the daily queue reset.  Every command is one
``transaction.atomic`` unit: the queue number, the stock movements, the
order row, its history and its outbox events commit or roll back
together.

Rules enforced:
- One unfinished order per service type per student, pre-orders
  included, serialized by locking the student row.  Checking a
  pre-order in only looks at orders already in the queue.
- An open store queues the order now; a closed one schedules it for the
  next business day when pre-orders are allowed, and refuses it
  otherwise.
- Staff move orders one step at a time; students may only cancel
  pending or scheduled orders.
- Cancelling an ``items`` order puts every line back on the shelf.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.db import transaction

from modules.core.context import RequestContext
from modules.orders.constants import (
    LIVE_STATES,
    NON_TERMINAL_STATES,
    STUDENT_CANCELLABLE,
    WAITING_STATES,
    OrderStatus,
    OrderType,
    ServiceType,
)
from modules.orders.dtos import (
    CancellationResult,
    CheckInResult,
    LineItemDTO,
    OrderPlacement,
    PrintingOptionsDTO,
    QueueBoard,
    QueueBoardEntry,
    QueueResetResult,
    RestoredItem,
    StatusUpdateResult,
    WaitTimeProjection,
)
from modules.orders.events import (
    OrderCancelled,
    OrderCheckedIn,
    OrderCreated,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    ActiveOrderExists,
    CannotCancel,
    InvalidState,
    OrderNotFound,
    ServiceClosed,
    StaffOnlyOperation,
    UnknownStatus,
)
from modules.orders.queue import QueueNumberAllocator
from modules.orders.wait_time import WaitTimeEstimator
from modules.scheduling.settings_store import QueueSettings
from modules.students.exceptions import StudentNotFound

if TYPE_CHECKING:
    from datetime import date

    from modules.inventory.repositories.interfaces import IInventoryRepository
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import (
        IOrderRepository,
        IQueueCounterRepository,
    )
    from modules.scheduling.clock import Clock
    from modules.scheduling.services import BusinessHoursService
    from modules.scheduling.settings_store import StoreSettingsRepository
    from modules.students.repositories.interfaces import IStudentRepository

logger = structlog.get_logger(__name__)

_CANNOT_CANCEL_MESSAGES = {
    OrderStatus.PROCESSING: (
        "This order is already being prepared and can no longer be cancelled."
    ),
    OrderStatus.READY: (
        "This order is ready for pick-up and can no longer be cancelled."
    ),
    OrderStatus.COMPLETED: "This order has already been completed.",
    OrderStatus.CANCELLED: "This order has already been cancelled.",
}

_CHECK_IN_REJECTIONS = {
    OrderStatus.READY: "This order is already ready for pick-up.",
    OrderStatus.COMPLETED: "This order has already been completed.",
    OrderStatus.CANCELLED: "This order has been cancelled.",
}


class OrderService:
    """Application service for Order use-cases.

    Receives repositories and collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        student_repository: IStudentRepository,
        inventory_repository: IInventoryRepository,
        counter_repository: IQueueCounterRepository,
        business_hours: BusinessHoursService,
        clock: Clock,
        settings_repository: Optional[StoreSettingsRepository] = None,
    ) -> None:
        self._order_repo = order_repository
        self._student_repo = student_repository
        self._inventory_repo = inventory_repository
        self._business_hours = business_hours
        self._clock = clock
        self._settings_repo = settings_repository
        self._allocator = QueueNumberAllocator(counter_repository)
        self._estimator = WaitTimeEstimator(
            order_repository, inventory_repository, settings_repository
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(
        self, dto: CreateOrderDTO, context: RequestContext
    ) -> OrderPlacement:
        """Place an order: queue it now, or schedule it as a pre-order.

        Raises:
            StudentNotFound: student missing or inactive.
            ActiveOrderExists: an unfinished order (scheduled included) of
                the same service type exists.
            ServiceClosed: store closed and pre-orders are disabled.
            NoBusinessDayFound: store closed with no open day in two weeks.
            InsufficientStock: a catalog item is short.
        """
        log = logger.bind(
            student_id=str(dto.student_id),
            service_type=dto.service_type,
            actor=context.actor,
        )
        log.info("order.creation_started")

        student = self._student_repo.get_for_update(str(dto.student_id))
        if not student or not student.is_active:
            raise StudentNotFound(f"Student {dto.student_id} not found.")
        self._ensure_no_open_order(
            student.id, dto.service_type, NON_TERMINAL_STATES, log
        )

        policy = self._settings()
        now = self._clock.now()
        gate = self._business_hours.status()

        fields: Dict[str, Any] = {
            "student": student,
            "service_type": dto.service_type,
            "notes": dto.notes,
            "created_at": now,
            "printing_options": (
                dto.printing_options.model_dump() if dto.printing_options else None
            ),
            "items": [item.model_dump() for item in dto.items],
            "reference_prefix": policy.reference_prefix,
            "reference_length": policy.reference_length,
        }

        estimate = None
        if gate.open:
            service_date = now.date()
            estimate = self._estimator.estimate(
                service_type=dto.service_type,
                service_date=service_date,
                now=now,
                line_items=dto.items,
                printing_options=dto.printing_options,
            )
            ticket = self._allocator.next_queue_number(service_date)
            fields.update(
                status=OrderStatus.PENDING,
                order_type=OrderType.IMMEDIATE,
                queue_date=service_date,
                queue_number=ticket.number,
                queue_sequence=ticket.sequence,
                queue_cycle=ticket.cycle,
                estimated_wait_minutes=estimate.estimated_minutes,
            )
        elif policy.allow_preorders:
            service_date = self._business_hours.next_business_day(now.date())
            fields.update(
                status=OrderStatus.SCHEDULED,
                order_type=OrderType.PRE_ORDER,
                queue_date=service_date,
                scheduled_date=service_date,
                ordered_outside_hours=True,
            )
        else:
            log.info("order.rejected_service_closed", reason=gate.reason)
            raise ServiceClosed(gate.reason)

        if dto.service_type == ServiceType.ITEMS:
            self._reserve_stock(dto.items, log)

        order = self._order_repo.create(fields)
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                correlation_id=context.correlation_id,
                reference_number=order.reference_number,
                student_id=str(student.id),
                queue_number=order.queue_number,
                status=order.status,
                order_type=order.order_type,
                queue_date=service_date.isoformat(),
                estimated_minutes=order.estimated_wait_minutes,
            )
        )
        self._order_repo.save(order)

        if order.status == OrderStatus.SCHEDULED:
            history_note = f"Pre-order scheduled for {service_date.isoformat()}"
            message = (
                f"The COOP is closed ({gate.reason}). Your pre-order is "
                f"scheduled for {service_date:%A, %B} {service_date.day}; "
                "check in when the COOP opens to get a queue number."
            )
        else:
            history_note = "Order placed"
            message = f"Your queue number is {order.queue_number}."
        self._order_repo.add_history(
            order_id=order.id,
            new_status=order.status,
            changed_by=context.actor,
            notes=history_note,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            reference_number=order.reference_number,
            status=order.status,
            queue_number=order.queue_number,
            queue_date=service_date.isoformat(),
        )
        return OrderPlacement(
            order_id=order.id,
            reference_number=order.reference_number,
            queue_number=order.queue_number,
            status=order.status,
            order_type=order.order_type,
            service_type=order.service_type,
            queue_date=service_date,
            scheduled_date=order.scheduled_date,
            estimated_minutes=estimate.estimated_minutes if estimate else None,
            queue_position=estimate.queue_position if estimate else None,
            ordered_outside_hours=order.ordered_outside_hours,
            message=message,
        )

    @transaction.atomic
    def check_in(self, identifier: str, context: RequestContext) -> CheckInResult:
        """Move a scheduled pre-order into today's queue.

        Checking in an order that is already waiting is a no-op that
        reports its current place.

        Raises:
            ServiceClosed: the store is not serving right now.
            OrderNotFound: no such order.
            InvalidState: the order is ready, completed or cancelled.
            ActiveOrderExists: another live order of the same type exists.
        """
        gate = self._business_hours.status()
        if not gate.open:
            raise ServiceClosed(gate.reason)

        order = self._get_for_update(identifier)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            actor=context.actor,
        )
        now = self._clock.now()

        if order.status in WAITING_STATES:
            projection = self._estimator.project(order, now)
            log.info("order.check_in_already_active")
            return CheckInResult(
                order_id=order.id,
                reference_number=order.reference_number,
                queue_number=order.queue_number,
                status=order.status,
                wait_time=projection.estimated_minutes,
                queue_position=projection.queue_position,
                already_active=True,
            )
        if order.status != OrderStatus.SCHEDULED:
            log.warning("order.check_in_rejected")
            raise InvalidState(_CHECK_IN_REJECTIONS[order.status])

        self._student_repo.get_for_update(str(order.student_id))
        self._ensure_no_open_order(
            order.student_id,
            order.service_type,
            LIVE_STATES,
            log,
            exclude_id=order.id,
        )

        today = now.date()
        estimate = self._estimator.estimate(
            service_type=order.service_type,
            service_date=today,
            now=now,
            line_items=self._line_items(order),
            printing_options=self._printing_options(order),
        )
        ticket = self._allocator.next_queue_number(today)

        old_status = order.status
        order.assign_queue_number(ticket.sequence, ticket.cycle)
        order.status = OrderStatus.PENDING
        order.queue_date = today
        order.created_at = now
        order.estimated_wait_minutes = estimate.estimated_minutes
        order.add_domain_event(
            OrderCheckedIn(
                aggregate_id=order.id,
                correlation_id=context.correlation_id,
                reference_number=order.reference_number,
                student_id=str(order.student_id),
                queue_number=order.queue_number,
                status=order.status,
                estimated_minutes=estimate.estimated_minutes,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=order.status,
            old_status=old_status,
            changed_by=context.actor,
            notes="Checked in",
        )

        log.info("order.checked_in", queue_number=order.queue_number)
        return CheckInResult(
            order_id=order.id,
            reference_number=order.reference_number,
            queue_number=order.queue_number,
            status=order.status,
            wait_time=estimate.estimated_minutes,
            queue_position=estimate.queue_position,
            already_active=False,
        )

    @transaction.atomic
    def update_status(
        self,
        identifier: str,
        new_status: str,
        context: RequestContext,
        notes: str = "",
    ) -> StatusUpdateResult:
        """Staff transition, one step at a time.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition.  Cancelling through this path
        restocks exactly like a student cancellation.

        Raises:
            StaffOnlyOperation: the actor is not staff.
            UnknownStatus: ``new_status`` is not an order status.
            OrderNotFound: no such order.
            InvalidState: the transition is not allowed.
        """
        if not context.is_staff:
            raise StaffOnlyOperation("Only COOP staff can update order status.")
        if new_status not in OrderStatus.values:
            raise UnknownStatus(f"Unknown order status '{new_status}'.")

        order = self._get_for_update(identifier)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=new_status,
            actor=context.actor,
        )

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidState(
                f"Cannot change order status from {order.status} to {new_status}."
            )

        old_status = order.status
        if new_status == OrderStatus.CANCELLED:
            self._cancel(order, context, notes or "Cancelled by staff", log)
        else:
            self._apply_progress(order, new_status)
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    correlation_id=context.correlation_id,
                    reference_number=order.reference_number,
                    student_id=str(order.student_id),
                    queue_number=order.queue_number,
                    status=new_status,
                    old_status=old_status,
                )
            )
            self._order_repo.save(order)
            self._order_repo.add_history(
                order_id=order.id,
                new_status=new_status,
                old_status=old_status,
                changed_by=context.actor,
                notes=notes,
            )

        log.info("order.status_updated")
        return StatusUpdateResult(
            order_id=order.id,
            reference_number=order.reference_number,
            old_status=old_status,
            new_status=new_status,
        )

    @transaction.atomic
    def cancel_order(
        self, identifier: str, context: RequestContext, reason: str = ""
    ) -> CancellationResult:
        """Student cancellation of a pending or scheduled order.

        Acquires a row-level lock on the order **first** so concurrent
        cancellations cannot restock twice.

        Raises:
            OrderNotFound: no such order.
            CannotCancel: the order is past the point of cancellation.
        """
        order = self._get_for_update(identifier)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            actor=context.actor,
        )

        if order.status not in STUDENT_CANCELLABLE:
            log.warning("order.cancel_not_allowed")
            raise CannotCancel(_CANNOT_CANCEL_MESSAGES[order.status])

        return self._cancel(order, context, reason or "Cancelled by student", log)

    @transaction.atomic
    def reset_daily_queue(self, context: RequestContext) -> QueueResetResult:
        """Restart today's numbering at ``Q-1`` (once per day).

        Raises:
            StaffOnlyOperation: the actor is not staff.
            QueueAlreadyReset: today's queue was already reset.
        """
        if not context.is_staff:
            raise StaffOnlyOperation("Only COOP staff can reset the queue.")
        today = self._clock.today()
        reset = self._allocator.reset(today, context.actor)
        logger.info(
            "queue.reset_requested",
            queue_date=today.isoformat(),
            actor=context.actor,
        )
        return QueueResetResult(
            reset_date=reset.reset_date,
            reset_by=reset.reset_by,
            previous_last_number=reset.previous_last_number,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, identifier: str) -> Order:
        """Retrieve a single order by UUID or reference number.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_identifier(identifier)
        if not order:
            raise OrderNotFound(f"Order {identifier} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None):
        """Return orders, optionally filtered."""
        return self._order_repo.list(filters)

    def get_wait_time(self, identifier: str) -> WaitTimeProjection:
        order = self.get_order(identifier)
        return self._estimator.project(order, self._clock.now())

    def queue_board(self, day: Optional[date] = None) -> QueueBoard:
        """Public display of a day's queue, in queue order."""
        day = day or self._clock.today()
        orders = self._order_repo.queue_for(day)
        serving = next(
            (o.queue_number for o in orders if o.status == OrderStatus.PROCESSING),
            None,
        )
        return QueueBoard(
            queue_date=day,
            current_serving=serving,
            waiting=sum(1 for o in orders if o.status == OrderStatus.PENDING),
            entries=[
                QueueBoardEntry(
                    queue_number=o.queue_number,
                    reference_suffix=o.reference_number[-4:],
                    status=o.status,
                    service_type=o.service_type,
                    estimated_minutes=o.estimated_wait_minutes,
                )
                for o in orders
            ],
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_for_update(self, identifier: str) -> Order:
        order = self._order_repo.get_for_update(identifier)
        if not order:
            raise OrderNotFound(f"Order {identifier} not found.")
        return order

    def _ensure_no_open_order(
        self,
        student_id: Any,
        service_type: str,
        statuses: Iterable[str],
        log: Any,
        exclude_id: Any = None,
    ) -> None:
        existing = self._order_repo.open_order_for(
            student_id, service_type, statuses, exclude_id=exclude_id
        )
        if existing is not None:
            log.warning(
                "order.active_order_exists",
                existing_order_id=str(existing.id),
                existing_status=existing.status,
            )
            raise ActiveOrderExists(service_type, existing.reference_number)

    def _reserve_stock(self, items: List[LineItemDTO], log: Any) -> None:
        locked = self._inventory_repo.get_for_update_by_names(
            item.item_name for item in items
        )
        for item in sorted(items, key=lambda i: i.item_name):
            row = locked.get(item.item_name)
            if row is None:
                log.warning("order.uncatalogued_item", item_name=item.item_name)
                continue
            self._inventory_repo.reserve(row, item.quantity)

    def _cancel(
        self,
        order: Order,
        context: RequestContext,
        reason: str,
        log: Any,
    ) -> CancellationResult:
        restored: List[RestoredItem] = []
        if order.service_type == ServiceType.ITEMS:
            lines = sorted(order.items.all(), key=lambda i: i.item_name)
            locked = self._inventory_repo.get_for_update_by_names(
                line.item_name for line in lines
            )
            for line in lines:
                row = locked.get(line.item_name)
                if row is None:
                    log.warning("order.restock_skipped", item_name=line.item_name)
                    continue
                self._inventory_repo.restock(row, line.quantity)
                restored.append(
                    RestoredItem(
                        item_name=line.item_name,
                        quantity=line.quantity,
                        new_quantity=row.quantity,
                    )
                )

        old_status = order.status
        order.status = OrderStatus.CANCELLED
        order.cancelled_at = self._clock.now()
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                correlation_id=context.correlation_id,
                reference_number=order.reference_number,
                student_id=str(order.student_id),
                queue_number=order.queue_number,
                status=order.status,
                old_status=old_status,
                reason=reason,
            )
        )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            new_status=OrderStatus.CANCELLED,
            old_status=old_status,
            changed_by=context.actor,
            notes=reason,
        )

        log.info("order.cancelled", restocked_lines=len(restored))
        return CancellationResult(
            order_id=order.id,
            reference_number=order.reference_number,
            previous_status=old_status,
            new_status=order.status,
            inventory_restocked=bool(restored),
            restored_items=restored,
        )

    def _apply_progress(self, order: Order, new_status: str) -> None:
        now = self._clock.now()
        order.status = new_status
        if new_status == OrderStatus.PROCESSING:
            order.started_processing_at = now
        elif new_status == OrderStatus.READY:
            order.ready_at = now
        elif new_status == OrderStatus.COMPLETED:
            order.completed_at = now
            order.actual_completion_minutes = max(
                0, int((now - order.created_at).total_seconds() // 60)
            )

    @staticmethod
    def _line_items(order: Order) -> List[LineItemDTO]:
        return [
            LineItemDTO(item_name=item.item_name, quantity=item.quantity)
            for item in order.items.all()
        ]

    @staticmethod
    def _printing_options(order: Order) -> Optional[PrintingOptionsDTO]:
        if not order.printing_options:
            return None
        return PrintingOptionsDTO.model_validate(order.printing_options)

    def _settings(self) -> QueueSettings:
        if self._settings_repo is None:
            return QueueSettings()
        return self._settings_repo.load()
