"""
Availability Decisions

Pure functions that turn already-loaded calendar data into availability
verdicts. The same ``decide`` function serves single-date checks and range
views, so both always agree on any given date.

Decision order (first match wins):
1. Package missing or inactive
2. Date blacked out by the planner
3. Date inside the preparation period of a confirmed booking
4. Slot capacity
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Optional

from apps.bookings.domain.inventory import SlotInventory
from shared.domain.base import ValueObject
from shared.domain.exceptions import (
    CapacityExceeded,
    DateBlackedOut,
    DomainError,
    NotFound,
    PreparationConflict,
)

PACKAGE_UNAVAILABLE_REASON = 'Package not found or inactive'
BLACKOUT_DEFAULT_REASON = 'This date is not available'
PREPARATION_REASON = 'This date falls within the preparation period of another booking'
NO_SLOTS_REASON = 'No available slots for this date'


class VerdictStatus(Enum):
    AVAILABLE = 'available'
    BLOCKED = 'blocked'
    PREPARATION = 'preparation'
    EXHAUSTED = 'exhausted'
    NOT_FOUND = 'not_found'


@dataclass(frozen=True)
class AvailabilityVerdict(ValueObject):
    """
    Outcome of an availability check for one package on one date

    Blocked, preparation and not-found verdicts carry zero slot counts.
    """
    available: bool
    status: VerdictStatus
    reason: str = ''
    total_slots: int = 0
    booked_slots: int = 0
    available_slots: int = 0
    is_blocked: bool = False
    is_preparation_period: bool = False

    def as_error(self) -> Optional[DomainError]:
        """Domain error matching an unavailable verdict, None when available"""
        if self.status == VerdictStatus.NOT_FOUND:
            return NotFound(self.reason)
        if self.status == VerdictStatus.BLOCKED:
            return DateBlackedOut(self.reason)
        if self.status == VerdictStatus.PREPARATION:
            return PreparationConflict(self.reason)
        if self.status == VerdictStatus.EXHAUSTED:
            return CapacityExceeded(self.reason)
        return None

    def to_dict(self) -> dict:
        return {
            'available': self.available,
            'status': self.status.value,
            'reason': self.reason or None,
            'total_slots': self.total_slots,
            'booked_slots': self.booked_slots,
            'available_slots': self.available_slots,
            'is_blocked': self.is_blocked,
            'is_preparation_period': self.is_preparation_period,
        }


def decide(
    package_active: bool,
    blackout_reason: Optional[str],
    in_preparation: bool,
    inventory: SlotInventory,
) -> AvailabilityVerdict:
    """
    Decide availability of one date

    Args:
        package_active: Package exists and is active
        blackout_reason: None when the date is not blacked out, otherwise the
            planner's reason (possibly empty)
        in_preparation: Date is inside a confirmed booking's preparation period
        inventory: Slot inventory of the date
    """
    if not package_active:
        return AvailabilityVerdict(
            available=False,
            status=VerdictStatus.NOT_FOUND,
            reason=PACKAGE_UNAVAILABLE_REASON,
        )

    if blackout_reason is not None:
        return AvailabilityVerdict(
            available=False,
            status=VerdictStatus.BLOCKED,
            reason=blackout_reason or BLACKOUT_DEFAULT_REASON,
            is_blocked=True,
        )

    if in_preparation:
        return AvailabilityVerdict(
            available=False,
            status=VerdictStatus.PREPARATION,
            reason=PREPARATION_REASON,
            is_blocked=True,
            is_preparation_period=True,
        )

    if inventory.available > 0:
        return AvailabilityVerdict(
            available=True,
            status=VerdictStatus.AVAILABLE,
            total_slots=inventory.total,
            booked_slots=inventory.booked,
            available_slots=inventory.available,
        )

    return AvailabilityVerdict(
        available=False,
        status=VerdictStatus.EXHAUSTED,
        reason=NO_SLOTS_REASON,
        total_slots=inventory.total,
        booked_slots=inventory.booked,
        available_slots=0,
    )


# ===== Preparation periods =====

def in_preparation_period(day: date, wedding_dates: Iterable[date], preparation_days: int) -> bool:
    """True when day is one of the preparation_days days after a wedding date"""
    if preparation_days <= 0:
        return False
    return any(1 <= (day - wedding).days <= preparation_days for wedding in wedding_dates)


def preparation_dates(
    wedding_dates: Iterable[date],
    preparation_days: int,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> set[date]:
    """
    Every date blocked for preparation by the given confirmed wedding dates

    For a wedding on D the blocked dates are D+1 .. D+preparation_days.
    The result is optionally clipped to start..end (inclusive).
    """
    blocked: set[date] = set()
    if preparation_days <= 0:
        return blocked

    for wedding in wedding_dates:
        for offset in range(1, preparation_days + 1):
            day = wedding + timedelta(days=offset)
            if start is not None and day < start:
                continue
            if end is not None and day > end:
                break
            blocked.add(day)
    return blocked
