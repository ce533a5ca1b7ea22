"""
Slot Inventory

Capacity of one package on one date, as read from the counters persisted
by the packages app. Availability decisions are made from this value; the
counters themselves are only ever changed by the conditional updates in
``apps.packages.services``.
"""

from dataclasses import dataclass

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class SlotInventory(ValueObject):
    """
    Total and booked slots for a (package, date) pair

    Neither counter is negative. An operator may lower total below an
    already booked count; such an inventory is reported as overbooked and
    offers no available slots.
    """

    total: int
    booked: int = 0

    def __post_init__(self):
        if self.total < 0:
            raise ValueError("Total slots cannot be negative")
        if self.booked < 0:
            raise ValueError("Booked slots cannot be negative")

    @property
    def available(self) -> int:
        return max(self.total - self.booked, 0)

    @property
    def is_overbooked(self) -> bool:
        return self.booked > self.total

    def __str__(self):
        return f"{self.booked}/{self.total} booked"
