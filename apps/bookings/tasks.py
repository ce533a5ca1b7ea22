"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.application.message_bus import message_bus
from shared.domain.exceptions import DomainError

from .application.command_handlers import PurgeBookingCommand
from .models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat)
# ============================================================================

@shared_task(name="bookings.purge_cancelled_bookings")
def purge_cancelled_bookings() -> dict[str, int]:
    """
    Delete cancelled bookings older than BOOKING_PURGE_AFTER_DAYS.

    Each booking goes through PurgeBookingCommand in its own transaction,
    so one failure does not stop the rest.

    Returns:
        dict: {"purged": number of deleted bookings, "failed": number of failures}
    """
    cutoff = timezone.now() - timedelta(days=settings.BOOKING_PURGE_AFTER_DAYS)
    booking_ids = list(
        Booking.objects.filter(
            status=Booking.Status.CANCELLED,
            cancelled_at__lt=cutoff,
        ).values_list("id", flat=True)
    )

    purged = 0
    failed = 0
    for booking_id in booking_ids:
        try:
            message_bus.handle_command(PurgeBookingCommand(booking_id=booking_id))
            purged += 1
        except DomainError as exc:
            failed += 1
            logger.warning(f"Could not purge booking {booking_id}: {exc.message}")

    logger.info(f"Purged {purged} cancelled booking(s) older than {cutoff:%Y-%m-%d}")
    return {"purged": purged, "failed": failed}
