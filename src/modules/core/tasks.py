"""Background tasks of the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction
from django.db.models import Q

from modules.core.models import EventStatus, OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

RELAY_BATCH_SIZE = 100


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = RELAY_BATCH_SIZE) -> dict:
    """Hand pending (and retryable failed) outbox rows to the event bus.

    Rows are locked with ``SKIP LOCKED`` so two relay workers never
    publish the same event.  A handler failure marks only that row as
    failed; it is retried on a later run until ``MAX_RETRIES``.
    """
    published = failed = 0
    with transaction.atomic():
        rows = list(
            OutboxEvent.objects.select_for_update(skip_locked=True)
            .filter(
                Q(status=EventStatus.PENDING)
                | Q(
                    status=EventStatus.FAILED,
                    retry_count__lt=OutboxEvent.MAX_RETRIES,
                )
            )
            .order_by("created_at")[:batch_size]
        )
        for row in rows:
            log = logger.bind(
                outbox_event_id=str(row.id),
                event_type=row.event_type,
                aggregate_id=row.aggregate_id,
            )
            event_class = event_bus.event_class(row.event_type)
            if event_class is None:
                log.warning("outbox.no_subscribers")
                row.mark_as_published()
                published += 1
                continue
            try:
                event_bus.publish(event_class.from_payload(row.payload))
            except Exception as exc:  # recorded on the row, retried later
                log.error("outbox.publish_failed", error=str(exc), exc_info=True)
                row.mark_as_failed(str(exc))
                failed += 1
                continue
            row.mark_as_published()
            published += 1

    if rows:
        logger.info("outbox.relayed", published=published, failed=failed)
    return {"published": published, "failed": failed}
