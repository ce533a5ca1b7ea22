"""
Booking Domain Entities

Core business entities for the booking domain:
- Booking: Main aggregate representing a client's reservation of a package
- BookingStatus: FSM states for booking lifecycle
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from django.utils import timezone  # type: ignore

from shared.domain.base import Aggregate
from shared.domain.exceptions import InvalidDetails, InvalidTransition
from shared.domain.value_objects import TimeOfDay


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (planner accepted the booking)
    - PENDING -> CANCELLED (client or planner withdrew)
    - CONFIRMED -> COMPLETED (wedding took place)
    - CONFIRMED -> CANCELLED (client or planner withdrew)
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# Statuses whose booking holds a capacity slot on its wedding date
SLOT_HOLDING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


@dataclass(eq=False, kw_only=True)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - Pending and confirmed bookings hold exactly one slot on wedding_date
    - Completed and cancelled bookings are terminal
    - Only confirmed bookings open a preparation period
    - Date, time and location may change only while pending
    """

    booking_code: str
    package_id: int
    client_id: int
    wedding_date: date
    location: str
    wedding_time: Optional[TimeOfDay] = None
    notes: str = ''

    status: BookingStatus = BookingStatus.PENDING
    cancellation_reason: str = ''

    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def __post_init__(self):
        super().__post_init__()
        if not self.location or not self.location.strip():
            raise InvalidDetails("Location is required")

    # ----- transitions -----

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status]

    def _ensure_transition(self, new_status: BookingStatus):
        if not self.can_transition_to(new_status):
            raise InvalidTransition(
                f"Cannot change booking status from {self.status.value} to {new_status.value}"
            )

    def _apply_notes(self, notes: Optional[str]):
        if notes is not None:
            self.notes = notes

    def confirm(self, notes: Optional[str] = None):
        """
        Confirm booking (PENDING -> CONFIRMED)

        Events: BookingConfirmed
        """
        self._ensure_transition(BookingStatus.CONFIRMED)

        from apps.bookings.domain.events import BookingConfirmed

        self.status = BookingStatus.CONFIRMED
        self.confirmed_at = timezone.now()
        self._apply_notes(notes)
        self.touch()

        self.add_event(BookingConfirmed(
            aggregate_id=self.id,
            booking_id=self.id,
            package_id=self.package_id,
            client_id=self.client_id,
            wedding_date=self.wedding_date,
        ))

    def complete(self, notes: Optional[str] = None):
        """
        Complete booking (CONFIRMED -> COMPLETED)

        Events: BookingCompleted
        """
        self._ensure_transition(BookingStatus.COMPLETED)

        from apps.bookings.domain.events import BookingCompleted

        self.status = BookingStatus.COMPLETED
        self.completed_at = timezone.now()
        self._apply_notes(notes)
        self.touch()

        self.add_event(BookingCompleted(
            aggregate_id=self.id,
            booking_id=self.id,
            package_id=self.package_id,
            client_id=self.client_id,
        ))

    def cancel(self, reason: str = ''):
        """
        Cancel booking (PENDING|CONFIRMED -> CANCELLED)

        The caller releases the slot in the same unit of work.
        Events: BookingCancelled
        """
        self._ensure_transition(BookingStatus.CANCELLED)

        from apps.bookings.domain.events import BookingCancelled

        old_status = self.status
        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason or ''
        self.cancelled_at = timezone.now()
        self.touch()

        self.add_event(BookingCancelled(
            aggregate_id=self.id,
            booking_id=self.id,
            package_id=self.package_id,
            wedding_date=self.wedding_date,
            reason=self.cancellation_reason,
            old_status=old_status.value,
        ))

    def transition_to(self, new_status: BookingStatus, notes: Optional[str] = None):
        """Apply any permitted transition by target status"""
        if new_status == BookingStatus.CONFIRMED:
            self.confirm(notes)
        elif new_status == BookingStatus.COMPLETED:
            self.complete(notes)
        elif new_status == BookingStatus.CANCELLED:
            self.cancel(notes or '')
        else:
            raise InvalidTransition(
                f"Cannot change booking status from {self.status.value} to {new_status.value}"
            )

    # ----- edits -----

    def _ensure_editable(self):
        if self.status != BookingStatus.PENDING:
            raise InvalidTransition(
                f"Only pending bookings can be changed (status is {self.status.value})"
            )

    def update_details(
        self,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        wedding_time: Optional[TimeOfDay] = None,
        clear_time: bool = False,
    ):
        self._ensure_editable()
        if location is not None:
            if not location.strip():
                raise InvalidDetails("Location is required")
            self.location = location
        if notes is not None:
            self.notes = notes
        if wedding_time is not None or clear_time:
            self.wedding_time = wedding_time
        self.touch()

    def reschedule(self, new_date: date):
        """
        Move a pending booking to another date

        The caller releases the old slot and reserves the new one in the
        same unit of work.
        Events: BookingRescheduled
        """
        self._ensure_editable()

        from apps.bookings.domain.events import BookingRescheduled

        old_date = self.wedding_date
        self.wedding_date = new_date
        self.touch()

        self.add_event(BookingRescheduled(
            aggregate_id=self.id,
            booking_id=self.id,
            package_id=self.package_id,
            old_date=old_date,
            new_date=new_date,
        ))

    # ----- queries -----

    @property
    def holds_slot(self) -> bool:
        return self.status in SLOT_HOLDING_STATUSES

    def __str__(self):
        return f"Booking {self.booking_code} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, booking_code={self.booking_code}, "
            f"status={self.status.value}, wedding_date={self.wedding_date})"
        )


def parse_status(raw) -> BookingStatus:
    """Map a status string onto BookingStatus, rejecting unknown values"""
    if isinstance(raw, BookingStatus):
        return raw
    try:
        return BookingStatus(raw)
    except ValueError:
        raise InvalidTransition(f"Unknown booking status: {raw!r}") from None
