"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from shared.domain.base import DomainEvent


# ===== Booking Events =====

@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created in PENDING status

    Its slot on wedding_date is already reserved.
    """
    booking_id: UUID
    package_id: int
    client_id: int
    wedding_date: date


@dataclass(kw_only=True)
class BookingConfirmed(DomainEvent):
    """
    Event: Planner confirmed the booking (PENDING -> CONFIRMED)

    From now on the days after wedding_date are blocked for preparation.
    """
    booking_id: UUID
    package_id: int
    client_id: int
    wedding_date: date


@dataclass(kw_only=True)
class BookingCompleted(DomainEvent):
    """Event: Wedding took place (CONFIRMED -> COMPLETED)"""
    booking_id: UUID
    package_id: int
    client_id: int


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled

    The slot on wedding_date is released in the same transaction.
    """
    booking_id: UUID
    package_id: int
    wedding_date: date
    reason: str
    old_status: str


@dataclass(kw_only=True)
class BookingRescheduled(DomainEvent):
    """Event: Pending booking moved from old_date to new_date"""
    booking_id: UUID
    package_id: int
    old_date: date
    new_date: date


@dataclass(kw_only=True)
class BookingPurged(DomainEvent):
    """Event: Booking record was deleted by an administrator"""
    booking_id: UUID
    package_id: int
    status: str
