"""Celery tasks for the core module."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.outbox import relay_pending_events
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.debug_task")
def debug_task():
    """Smoke task used to check that workers are consuming."""
    logger.info("debug_task.executed", status="ok")
    return {"status": "ok", "message": "Celery is working"}


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events():
    """Drain the outbox onto the in-process event bus."""
    return relay_pending_events(
        event_bus,
        batch_size=settings.OUTBOX_BATCH_SIZE,
        max_retries=settings.OUTBOX_MAX_RETRIES,
    )
