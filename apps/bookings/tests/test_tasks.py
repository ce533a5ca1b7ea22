from __future__ import annotations

from datetime import date, timedelta

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.tasks import purge_cancelled_bookings
from apps.packages.models import Package


@override_settings(BOOKING_PURGE_AFTER_DAYS=30)
class PurgeCancelledBookingsTests(TestCase):
    def setUp(self) -> None:
        planner = User.objects.create_user(username="planner", password="PlannerPass123")
        self.client_user = User.objects.create_user(username="client", password="ClientPass123")
        self.package = Package.objects.create(planner=planner, title="Garden ceremony")

    def _booking(self, day: date, status: str, cancelled_days_ago: int | None = None) -> Booking:
        cancelled_at = None
        if cancelled_days_ago is not None:
            cancelled_at = timezone.now() - timedelta(days=cancelled_days_ago)
        return Booking.objects.create(
            package=self.package,
            client=self.client_user,
            wedding_date=day,
            location="Old Town Hall",
            status=status,
            cancelled_at=cancelled_at,
        )

    def test_purges_only_old_cancelled_bookings(self) -> None:
        old = self._booking(date(2030, 1, 1), Booking.Status.CANCELLED, cancelled_days_ago=45)
        recent = self._booking(date(2030, 1, 2), Booking.Status.CANCELLED, cancelled_days_ago=5)
        live = self._booking(date(2030, 1, 3), Booking.Status.PENDING)

        result = purge_cancelled_bookings.delay().get()

        self.assertEqual(result, {"purged": 1, "failed": 0})
        remaining = set(Booking.objects.values_list("id", flat=True))
        self.assertNotIn(old.id, remaining)
        self.assertEqual(remaining, {recent.id, live.id})

    def test_nothing_to_purge(self) -> None:
        self.assertEqual(purge_cancelled_bookings(), {"purged": 0, "failed": 0})
