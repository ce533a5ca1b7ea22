"""
Unit of Work

One transactional boundary per booking command. Capacity mutations and
booking status writes succeed or fail together, and domain events are
published only after the transaction commits.
"""

from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    Context manager around ``transaction.atomic()``.

    Any exception raised inside the block rolls back every write made by the
    command, slot reservations and releases included, and drops the events
    collected so far.

    Usage:
        with DjangoUnitOfWork(label="CancelBooking") as uow:
            booking = booking_repo.get_by_id(booking_id, lock=True)
            booking.cancel(reason)
            release_slot(package, booking.wedding_date)
            uow.collect_events(booking)
            booking_repo.save(booking)
    """

    def __init__(self, label: str = ''):
        self.label = label or 'unit of work'
        self._events: List[DomainEvent] = []
        self._atomic = None

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publish()
            else:
                self._discard(exc_val)
        finally:
            self._atomic.__exit__(exc_type, exc_val, exc_tb)
        return False

    def collect_events(self, aggregate):
        """Move the aggregate's recorded events into this unit of work"""
        pending = aggregate.events
        if not pending:
            return
        self._events.extend(pending)
        aggregate.clear_events()
        logger.debug(f"{self.label}: collected {len(pending)} event(s) from {aggregate.id}")

    def _schedule_publish(self):
        # on_commit fires after the outermost atomic block commits
        events, self._events = self._events, []
        if events:
            transaction.on_commit(lambda: self._publish(events))

    def _discard(self, error):
        logger.warning(
            f"Rolling back {self.label} ({error.__class__.__name__}: {error}), "
            f"dropping {len(self._events)} event(s)"
        )
        self._events = []

    def _publish(self, events: List[DomainEvent]):
        from shared.application.message_bus import message_bus

        logger.info(f"{self.label}: publishing {len(events)} event(s)")
        try:
            message_bus.publish_events(events)
        except Exception:
            logger.exception(f"{self.label}: publishing events failed after commit")
