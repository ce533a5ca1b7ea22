"""Capacity store and blackout registry for packages.

Capacity lives in two places: the package's default availability and
per-date overrides. An override is materialized the first time a slot is
reserved on a date, seeded from the default, and from then on carries the
booked counter for that date. Counters only ever change through single
conditional UPDATE statements so concurrent writers cannot push them past
their bounds.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import F  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.inventory import SlotInventory
from shared.domain.exceptions import (
    CapacityExceeded,
    DuplicateBlackout,
    NothingToRelease,
)

from .models import DEFAULT_TOTAL_SLOTS, Blackout, DateOverride, DefaultAvailability, Package

logger = logging.getLogger(__name__)


def _package_pk(package) -> int:
    return getattr(package, "pk", package)


# --- capacity -------------------------------------------------------------


def get_default_slots(package) -> int:
    total = (
        DefaultAvailability.objects.filter(package_id=_package_pk(package))
        .values_list("total_slots", flat=True)
        .first()
    )
    return DEFAULT_TOTAL_SLOTS if total is None else total


def set_default_slots(package, total_slots: int) -> DefaultAvailability:
    """Create or update the default slot count of a package."""

    if total_slots < 1:
        raise ValueError("Default slot count must be at least 1")

    default, _ = DefaultAvailability.objects.update_or_create(
        package_id=_package_pk(package),
        defaults={"total_slots": total_slots},
    )
    logger.info(f"Default slots for package {default.package_id} set to {total_slots}")
    return default


def get_capacity(package, day: date) -> SlotInventory:
    """Return the slot inventory of a package on a date.

    An override for the exact date wins; otherwise the default slot count
    applies with nothing booked.
    """

    pk = _package_pk(package)
    counters = (
        DateOverride.objects.filter(package_id=pk, date=day)
        .values_list("total_slots", "booked_slots")
        .first()
    )
    if counters is not None:
        total, booked = counters
        return SlotInventory(total=total, booked=booked)
    return SlotInventory(total=get_default_slots(pk), booked=0)


def set_date_slots(package, day: date, total_slots: int) -> DateOverride:
    """Create or update the override for a date, keeping its booked counter."""

    if total_slots < 0:
        raise ValueError("Slot count cannot be negative")

    override, created = DateOverride.objects.update_or_create(
        package_id=_package_pk(package),
        date=day,
        defaults={"total_slots": total_slots},
    )
    if override.booked_slots > override.total_slots:
        logger.warning(
            f"Override for package {override.package_id} on {day} now has "
            f"{override.booked_slots} booked of {override.total_slots} slots"
        )
    return override


def list_date_overrides(package, start: Optional[date] = None, end: Optional[date] = None):
    queryset = DateOverride.objects.filter(package_id=_package_pk(package))
    if start is not None:
        queryset = queryset.filter(date__gte=start)
    if end is not None:
        queryset = queryset.filter(date__lte=end)
    return queryset.order_by("date")


@transaction.atomic
def reserve_slot(package, day: date) -> SlotInventory:
    """Take one slot on a date.

    Raises:
        CapacityExceeded: when every slot of the date is booked.
    """

    pk = _package_pk(package)
    DateOverride.objects.get_or_create(
        package_id=pk,
        date=day,
        defaults={"total_slots": get_default_slots(pk), "booked_slots": 0},
    )

    updated = DateOverride.objects.filter(
        package_id=pk,
        date=day,
        booked_slots__lt=F("total_slots"),
    ).update(booked_slots=F("booked_slots") + 1, updated_at=timezone.now())

    if updated == 0:
        logger.info(f"No slot left for package {pk} on {day}")
        raise CapacityExceeded()

    inventory = get_capacity(pk, day)
    logger.info(f"Reserved slot for package {pk} on {day} ({inventory})")
    return inventory


def release_slot(package, day: date) -> SlotInventory:
    """Give one slot back on a date.

    Raises:
        NothingToRelease: when no slot is booked on the date.
    """

    pk = _package_pk(package)
    updated = DateOverride.objects.filter(
        package_id=pk,
        date=day,
        booked_slots__gt=0,
    ).update(booked_slots=F("booked_slots") - 1, updated_at=timezone.now())

    if updated == 0:
        raise NothingToRelease()

    inventory = get_capacity(pk, day)
    logger.info(f"Released slot for package {pk} on {day} ({inventory})")
    return inventory


@transaction.atomic
def soft_delete_package(package: Package) -> Package:
    """Deactivate a package and drop its capacity and blackout data."""

    overrides, _ = DateOverride.objects.filter(package=package).delete()
    blackouts, _ = Blackout.objects.filter(package=package).delete()
    DefaultAvailability.objects.filter(package=package).delete()

    package.is_active = False
    package.save(update_fields=["is_active", "updated_at"])

    logger.info(
        f"Package {package.pk} deactivated; removed {overrides} override(s) "
        f"and {blackouts} blackout(s)"
    )
    return package


# --- blackouts ------------------------------------------------------------


def is_blacked_out(package, day: date) -> tuple[bool, str]:
    reason = (
        Blackout.objects.filter(package_id=_package_pk(package), date=day)
        .values_list("reason", flat=True)
        .first()
    )
    if reason is None:
        return False, ""
    return True, reason


def add_blackout(package, day: date, reason: Optional[str] = None, created_by=None) -> Blackout:
    """Mark a date unavailable for a package.

    Raises:
        DuplicateBlackout: when the date is already blacked out.
    """

    pk = _package_pk(package)
    if Blackout.objects.filter(package_id=pk, date=day).exists():
        raise DuplicateBlackout()

    try:
        with transaction.atomic():
            blackout = Blackout.objects.create(
                package_id=pk,
                date=day,
                reason=reason or "",
                created_by=created_by,
            )
    except IntegrityError as exc:
        raise DuplicateBlackout() from exc

    logger.info(f"Blackout added for package {pk} on {day}")
    return blackout


def remove_blackout(package, blackout_id) -> int:
    deleted, _ = Blackout.objects.filter(package_id=_package_pk(package), pk=blackout_id).delete()
    if deleted:
        logger.info(f"Blackout {blackout_id} removed from package {_package_pk(package)}")
    return deleted


def list_blackouts(package, start: Optional[date] = None, end: Optional[date] = None):
    queryset = Blackout.objects.filter(package_id=_package_pk(package))
    if start is not None:
        queryset = queryset.filter(date__gte=start)
    if end is not None:
        queryset = queryset.filter(date__lte=end)
    return queryset.order_by("date")
