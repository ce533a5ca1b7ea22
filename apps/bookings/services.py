"""Availability and preparation-period queries for packages.

Every answer here is computed from live data on each call: the package
record, its capacity overrides, its blackouts and its confirmed bookings.
Nothing is cached between requests.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.domain.availability import (
    AvailabilityVerdict,
    decide,
    in_preparation_period,
    preparation_dates,
)
from apps.bookings.domain.inventory import SlotInventory
from apps.packages.models import Package
from apps.packages.services import (
    get_capacity,
    get_default_slots,
    is_blacked_out,
    list_blackouts,
    list_date_overrides,
)
from shared.domain.exceptions import InvalidDate, PreparationConflict
from shared.domain.value_objects import CalendarRange

from .models import Booking

logger = logging.getLogger(__name__)

_NO_SLOTS = SlotInventory(total=0)


def _get_package(package_id) -> Optional[Package]:
    return Package.objects.filter(pk=package_id).only("id", "is_active", "preparation_days").first()


def _unavailable_package() -> AvailabilityVerdict:
    return decide(False, None, False, _NO_SLOTS)


def confirmed_wedding_dates(package_id, start: date, end: date) -> list[date]:
    """Wedding dates of confirmed bookings of a package within start..end"""
    return list(
        Booking.objects.filter(
            package_id=package_id,
            status=Booking.Status.CONFIRMED,
            wedding_date__gte=start,
            wedding_date__lte=end,
        ).values_list("wedding_date", flat=True)
    )


def is_in_preparation_period(package: Package, day: date) -> bool:
    """True when a confirmed booking falls within the preparation_days before day."""

    days = package.preparation_days
    if days <= 0:
        return False
    weddings = confirmed_wedding_dates(package.pk, day - timedelta(days=days), day - timedelta(days=1))
    return in_preparation_period(day, weddings, days)


def check_availability(package_id, day: date) -> AvailabilityVerdict:
    """Availability verdict for one package on one date."""

    package = _get_package(package_id)
    if package is None or not package.is_active:
        return _unavailable_package()

    blacked_out, reason = is_blacked_out(package, day)
    if blacked_out:
        return decide(True, reason, False, _NO_SLOTS)

    if is_in_preparation_period(package, day):
        return decide(True, None, True, _NO_SLOTS)

    return decide(True, None, False, get_capacity(package, day))


def get_availability_range(package_id, start: date, end: date) -> dict[date, AvailabilityVerdict]:
    """Verdict for every date in start..end (inclusive).

    Ranges longer than ``AVAILABILITY_RANGE_MAX_DAYS`` are truncated to that
    many days from ``start``. Each data source is loaded with a single query.
    """

    window = CalendarRange(start, end).capped(settings.AVAILABILITY_RANGE_MAX_DAYS)
    if window.end_date != end:
        logger.info(f"Availability range for package {package_id} truncated to {window}")

    package = _get_package(package_id)
    if package is None or not package.is_active:
        return {day: _unavailable_package() for day in window}

    overrides = {
        override.date: override.as_inventory()
        for override in list_date_overrides(package, window.start_date, window.end_date)
    }
    blackouts = dict(
        list_blackouts(package, window.start_date, window.end_date).values_list("date", "reason")
    )

    prep_days = package.preparation_days
    blocked_for_preparation: set[date] = set()
    if prep_days > 0:
        weddings = confirmed_wedding_dates(
            package.pk,
            window.start_date - timedelta(days=prep_days),
            window.end_date - timedelta(days=1),
        )
        blocked_for_preparation = preparation_dates(
            weddings, prep_days, window.start_date, window.end_date
        )

    default_inventory = SlotInventory(total=get_default_slots(package))

    verdicts = {}
    for day in window:
        inventory = overrides[day] if day in overrides else default_inventory
        verdicts[day] = decide(
            True,
            blackouts.get(day),
            day in blocked_for_preparation,
            inventory,
        )
    return verdicts


def get_upcoming_available_dates(
    package_id,
    days_ahead: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[tuple[date, AvailabilityVerdict]]:
    """Next available dates after today, in date order."""

    if days_ahead is None:
        days_ahead = settings.UPCOMING_AVAILABILITY_DAYS_AHEAD
    if limit is None:
        limit = settings.UPCOMING_AVAILABILITY_LIMIT
    if limit <= 0:
        return []

    today = timezone.localdate()
    window = CalendarRange.from_horizon(today, days_ahead)
    verdicts = get_availability_range(package_id, window.start_date, window.end_date)

    upcoming = [
        (day, verdict)
        for day, verdict in sorted(verdicts.items())
        if day > today and verdict.available
    ]
    return upcoming[:limit]


def ensure_future_date(day: date) -> None:
    """Raise InvalidDate unless day is strictly after today."""

    if day <= timezone.localdate():
        raise InvalidDate("Wedding date must be in the future")


def ensure_bookable(package_id, day: date) -> AvailabilityVerdict:
    """Raise the domain error matching an unavailable verdict."""

    verdict = check_availability(package_id, day)
    error = verdict.as_error()
    if error is not None:
        raise error
    return verdict


def ensure_preparation_clear(package: Package, day: date) -> None:
    """Raise PreparationConflict when confirming a wedding on day would overlap
    a confirmed booking's preparation period, in either direction."""

    if is_in_preparation_period(package, day):
        raise PreparationConflict()
    days = package.preparation_days
    if days > 0 and confirmed_wedding_dates(package.pk, day + timedelta(days=1), day + timedelta(days=days)):
        raise PreparationConflict(
            "A confirmed booking falls within the preparation period of this date"
        )
