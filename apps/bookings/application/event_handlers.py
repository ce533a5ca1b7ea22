"""
Booking Event Handlers

Subscribers run after the booking transaction has committed. They record
an audit trail of lifecycle changes in the application log.
"""

import logging

from apps.bookings.domain.events import (
    BookingCancelled,
    BookingCompleted,
    BookingConfirmed,
    BookingCreated,
    BookingPurged,
    BookingRescheduled,
)
from shared.application.message_bus import MessageBus
from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


def log_booking_event(event: DomainEvent) -> None:
    logger.info(f"Booking event {event.event_type}", extra={"booking_event": event.to_dict()})


def warn_on_cancellation(event: BookingCancelled) -> None:
    if event.old_status == "confirmed":
        logger.warning(
            f"Confirmed booking {event.booking_id} for package {event.package_id} "
            f"on {event.wedding_date} was cancelled"
        )


def register_handlers(bus: MessageBus) -> None:
    for event_type in (
        BookingCreated,
        BookingConfirmed,
        BookingCompleted,
        BookingCancelled,
        BookingRescheduled,
        BookingPurged,
    ):
        bus.register_event_handler(event_type, log_booking_event)
    bus.register_event_handler(BookingCancelled, warn_on_cancellation)
