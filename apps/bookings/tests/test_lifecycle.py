"""Tests for booking lifecycle commands run through the message bus."""

from __future__ import annotations

from datetime import date, timedelta
from unittest import mock

from django.contrib.auth.models import User
from django.test import TestCase
from django.utils import timezone

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CompleteBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    PurgeBookingCommand,
    TransitionBookingCommand,
    UpdateBookingDateCommand,
    UpdateBookingDetailsCommand,
)
from apps.bookings.domain.entities import BookingStatus
from apps.bookings.models import Booking
from apps.packages import services as package_services
from apps.packages.models import DateOverride, Package
from shared.application.message_bus import message_bus
from shared.domain.exceptions import (
    CapacityExceeded,
    DateBlackedOut,
    DuplicateBooking,
    InvalidDate,
    InvalidDetails,
    InvalidTransition,
    NotFound,
    PreparationConflict,
)


class BookingLifecycleTests(TestCase):
    def setUp(self) -> None:
        self.planner = User.objects.create_user(username="planner", password="PlannerPass123")
        self.alice = User.objects.create_user(username="alice", password="AlicePass123")
        self.bob = User.objects.create_user(username="bob", password="BobPass123")
        self.package = Package.objects.create(planner=self.planner, title="Garden ceremony")
        self.day = timezone.localdate() + timedelta(days=60)

    def _create(self, client=None, day=None, package=None, **kwargs):
        return message_bus.handle_command(CreateBookingCommand(
            client_id=(client or self.alice).id,
            package_id=(package or self.package).id,
            wedding_date=day or self.day,
            location="Old Town Hall",
            **kwargs,
        ))

    def _booked(self, day=None) -> int:
        return package_services.get_capacity(self.package, day or self.day).booked

    # ----- create -----

    def test_create_reserves_slot_at_pending(self) -> None:
        booking = self._create(wedding_time="15:30", notes="outdoor")

        row = Booking.objects.get(pk=booking.id)
        self.assertEqual(row.status, Booking.Status.PENDING)
        self.assertEqual(row.wedding_time.strftime("%H:%M"), "15:30")
        self.assertEqual(row.booking_code, booking.booking_code)
        self.assertEqual(self._booked(), 1)

    def test_second_booking_on_full_date_fails(self) -> None:
        self._create()

        with self.assertRaises(CapacityExceeded):
            self._create(client=self.bob)

        self.assertEqual(Booking.objects.count(), 1)
        self.assertEqual(self._booked(), 1)

    def test_blank_location_is_rejected(self) -> None:
        with self.assertRaises(InvalidDetails):
            message_bus.handle_command(CreateBookingCommand(
                client_id=self.alice.id,
                package_id=self.package.id,
                wedding_date=self.day,
                location="   ",
            ))

        self.assertFalse(Booking.objects.exists())
        self.assertEqual(self._booked(), 0)

    def test_past_and_today_dates_are_rejected(self) -> None:
        for day in (timezone.localdate(), timezone.localdate() - timedelta(days=1)):
            with self.assertRaises(InvalidDate):
                self._create(day=day)
        self.assertFalse(DateOverride.objects.exists())

    def test_malformed_time_is_rejected(self) -> None:
        with self.assertRaises(InvalidDate):
            self._create(wedding_time="25:99")
        self.assertFalse(Booking.objects.exists())

    def test_unknown_or_inactive_package(self) -> None:
        with self.assertRaises(NotFound):
            message_bus.handle_command(CreateBookingCommand(
                client_id=self.alice.id, package_id=999999, wedding_date=self.day, location="x",
            ))

        Package.objects.filter(pk=self.package.pk).update(is_active=False)
        with self.assertRaises(NotFound):
            self._create()

    def test_blacked_out_date_is_rejected(self) -> None:
        package_services.add_blackout(self.package, self.day, "holiday")

        with self.assertRaises(DateBlackedOut) as ctx:
            self._create()

        self.assertEqual(ctx.exception.message, "holiday")
        self.assertEqual(self._booked(), 0)

    def test_preparation_period_is_rejected(self) -> None:
        Package.objects.filter(pk=self.package.pk).update(preparation_days=2)
        first = self._create()
        message_bus.handle_command(ConfirmBookingCommand(booking_id=first.id))

        with self.assertRaises(PreparationConflict):
            self._create(client=self.bob, day=self.day + timedelta(days=1))

    def test_same_client_same_date_across_packages_is_rejected(self) -> None:
        other = Package.objects.create(planner=self.planner, title="Evening reception")
        self._create()

        with self.assertRaises(DuplicateBooking):
            self._create(package=other)

        self.assertEqual(package_services.get_capacity(other, self.day).booked, 0)

    def test_cancelled_booking_does_not_count_as_duplicate(self) -> None:
        other = Package.objects.create(planner=self.planner, title="Evening reception")
        booking = self._create()
        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))

        self._create(package=other)

        self.assertEqual(Booking.objects.exclude(status=Booking.Status.CANCELLED).count(), 1)

    def test_lost_race_for_last_slot_leaves_nothing_behind(self) -> None:
        self._create()

        # Availability looked fine when checked; the slot was taken before the reservation.
        with mock.patch(
            "apps.bookings.application.command_handlers.ensure_bookable",
            return_value=None,
        ):
            with self.assertRaises(CapacityExceeded):
                self._create(client=self.bob)

        self.assertFalse(Booking.objects.filter(client=self.bob).exists())
        self.assertEqual(self._booked(), 1)

    def test_failed_insert_rolls_back_reservation(self) -> None:
        package_services.set_default_slots(self.package, 2)

        with mock.patch(
            "apps.bookings.repositories.DjangoBookingRepository.add",
            side_effect=RuntimeError("disk full"),
        ):
            with self.assertRaises(RuntimeError):
                self._create()

        self.assertEqual(self._booked(), 0)

    # ----- transitions -----

    def test_confirm_and_complete_do_not_touch_slots(self) -> None:
        booking = self._create()

        message_bus.handle_command(ConfirmBookingCommand(booking_id=booking.id, notes="deposit paid"))
        message_bus.handle_command(CompleteBookingCommand(booking_id=booking.id))

        row = Booking.objects.get(pk=booking.id)
        self.assertEqual(row.status, Booking.Status.COMPLETED)
        self.assertEqual(row.notes, "deposit paid")
        self.assertIsNotNone(row.confirmed_at)
        self.assertIsNotNone(row.completed_at)
        self.assertEqual(self._booked(), 1)

    def test_confirm_rejected_when_date_is_overbooked(self) -> None:
        package_services.set_default_slots(self.package, 2)
        booking = self._create()
        self._create(client=self.bob)
        package_services.set_date_slots(self.package, self.day, 1)

        with self.assertRaises(CapacityExceeded):
            message_bus.handle_command(ConfirmBookingCommand(booking_id=booking.id))

        self.assertEqual(Booking.objects.get(pk=booking.id).status, Booking.Status.PENDING)

    def test_confirm_inside_preparation_period_is_rejected(self) -> None:
        Package.objects.filter(pk=self.package.pk).update(preparation_days=3)
        first = self._create()
        second = self._create(client=self.bob, day=self.day + timedelta(days=1))
        message_bus.handle_command(ConfirmBookingCommand(booking_id=first.id))

        with self.assertRaises(PreparationConflict):
            message_bus.handle_command(ConfirmBookingCommand(booking_id=second.id))

        self.assertEqual(Booking.objects.get(pk=second.id).status, Booking.Status.PENDING)
        self.assertEqual(self._booked(self.day + timedelta(days=1)), 1)

    def test_confirm_before_confirmed_booking_is_rejected(self) -> None:
        Package.objects.filter(pk=self.package.pk).update(preparation_days=3)
        earlier = self._create()
        later = self._create(client=self.bob, day=self.day + timedelta(days=2))
        message_bus.handle_command(
            TransitionBookingCommand(booking_id=later.id, new_status="confirmed")
        )

        with self.assertRaises(PreparationConflict):
            message_bus.handle_command(
                TransitionBookingCommand(booking_id=earlier.id, new_status="confirmed")
            )

        self.assertEqual(Booking.objects.get(pk=earlier.id).status, Booking.Status.PENDING)

    def test_confirm_after_preparation_period_succeeds(self) -> None:
        Package.objects.filter(pk=self.package.pk).update(preparation_days=1)
        first = self._create()
        second = self._create(client=self.bob, day=self.day + timedelta(days=2))

        message_bus.handle_command(ConfirmBookingCommand(booking_id=first.id))
        message_bus.handle_command(ConfirmBookingCommand(booking_id=second.id))

        self.assertEqual(Booking.objects.get(pk=second.id).status, Booking.Status.CONFIRMED)

    def test_cancel_releases_slot_for_next_client(self) -> None:
        booking = self._create()

        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id, reason="changed plans"))

        row = Booking.objects.get(pk=booking.id)
        self.assertEqual(row.status, Booking.Status.CANCELLED)
        self.assertEqual(row.cancellation_reason, "changed plans")
        self.assertEqual(self._booked(), 0)

        self._create(client=self.bob)
        self.assertEqual(self._booked(), 1)

    def test_cancel_twice_is_a_noop(self) -> None:
        package_services.set_default_slots(self.package, 3)
        booking = self._create()
        self._create(client=self.bob)

        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))
        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))

        self.assertEqual(self._booked(), 1)

    def test_cancel_confirmed_booking_releases_slot(self) -> None:
        booking = self._create()
        message_bus.handle_command(ConfirmBookingCommand(booking_id=booking.id))

        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))

        self.assertEqual(self._booked(), 0)

    def test_cancel_with_missing_counter_still_cancels(self) -> None:
        booking = self._create()
        DateOverride.objects.filter(package=self.package).update(booked_slots=0)

        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))

        self.assertEqual(Booking.objects.get(pk=booking.id).status, Booking.Status.CANCELLED)

    def test_completed_booking_cannot_be_cancelled(self) -> None:
        booking = self._create()
        message_bus.handle_command(ConfirmBookingCommand(booking_id=booking.id))
        message_bus.handle_command(CompleteBookingCommand(booking_id=booking.id))

        with self.assertRaises(InvalidTransition):
            message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))

        self.assertEqual(self._booked(), 1)

    def test_generic_transition(self) -> None:
        booking = self._create()

        result = message_bus.handle_command(
            TransitionBookingCommand(booking_id=booking.id, new_status="confirmed")
        )
        self.assertEqual(result.status, BookingStatus.CONFIRMED)

        with self.assertRaises(InvalidTransition):
            message_bus.handle_command(
                TransitionBookingCommand(booking_id=booking.id, new_status="pending")
            )

        result = message_bus.handle_command(
            TransitionBookingCommand(booking_id=booking.id, new_status="cancelled", notes="venue closed")
        )
        self.assertEqual(result.cancellation_reason, "venue closed")
        self.assertEqual(self._booked(), 0)

    def test_unknown_booking(self) -> None:
        with self.assertRaises(NotFound):
            message_bus.handle_command(ConfirmBookingCommand(booking_id="00000000-0000-0000-0000-000000000000"))

    # ----- edits -----

    def test_moving_to_blacked_out_date_changes_nothing(self) -> None:
        booking = self._create()
        new_day = self.day + timedelta(days=7)
        package_services.add_blackout(self.package, new_day, "holiday")

        with self.assertRaises(DateBlackedOut):
            message_bus.handle_command(UpdateBookingDateCommand(booking_id=booking.id, new_date=new_day))

        row = Booking.objects.get(pk=booking.id)
        self.assertEqual(row.wedding_date, self.day)
        self.assertEqual(self._booked(self.day), 1)
        self.assertEqual(self._booked(new_day), 0)

    def test_moving_date_moves_the_reservation(self) -> None:
        booking = self._create()
        new_day = self.day + timedelta(days=7)

        message_bus.handle_command(UpdateBookingDateCommand(booking_id=booking.id, new_date=new_day))

        self.assertEqual(Booking.objects.get(pk=booking.id).wedding_date, new_day)
        self.assertEqual(self._booked(self.day), 0)
        self.assertEqual(self._booked(new_day), 1)

    def test_moving_confirmed_booking_is_rejected(self) -> None:
        booking = self._create()
        message_bus.handle_command(ConfirmBookingCommand(booking_id=booking.id))

        with self.assertRaises(InvalidTransition):
            message_bus.handle_command(
                UpdateBookingDateCommand(booking_id=booking.id, new_date=self.day + timedelta(days=1))
            )

    def test_update_details_with_date_failure_rolls_back_everything(self) -> None:
        booking = self._create()
        taken_day = self.day + timedelta(days=3)
        self._create(client=self.bob, day=taken_day)

        with self.assertRaises(CapacityExceeded):
            message_bus.handle_command(UpdateBookingDetailsCommand(
                booking_id=booking.id,
                wedding_date=taken_day,
                location="Lake pavilion",
            ))

        row = Booking.objects.get(pk=booking.id)
        self.assertEqual((row.wedding_date, row.location), (self.day, "Old Town Hall"))
        self.assertEqual(self._booked(self.day), 1)

    def test_update_details_sets_and_clears_time(self) -> None:
        booking = self._create(wedding_time="14:00")

        message_bus.handle_command(UpdateBookingDetailsCommand(
            booking_id=booking.id, location="Lake pavilion", notes="rain plan",
        ))
        row = Booking.objects.get(pk=booking.id)
        self.assertEqual((row.location, row.notes), ("Lake pavilion", "rain plan"))
        self.assertIsNotNone(row.wedding_time)

        message_bus.handle_command(UpdateBookingDetailsCommand(booking_id=booking.id, wedding_time=None))
        self.assertIsNone(Booking.objects.get(pk=booking.id).wedding_time)

    # ----- purge -----

    def test_purge_live_booking_releases_slot(self) -> None:
        booking = self._create()

        message_bus.handle_command(PurgeBookingCommand(booking_id=booking.id))

        self.assertFalse(Booking.objects.filter(pk=booking.id).exists())
        self.assertEqual(self._booked(), 0)

    def test_purge_cancelled_booking_leaves_counters(self) -> None:
        package_services.set_default_slots(self.package, 2)
        booking = self._create()
        self._create(client=self.bob)
        message_bus.handle_command(CancelBookingCommand(booking_id=booking.id))

        message_bus.handle_command(PurgeBookingCommand(booking_id=booking.id))

        self.assertEqual(self._booked(), 1)


class EventPublishingTests(TestCase):
    def setUp(self) -> None:
        self.planner = User.objects.create_user(username="planner", password="PlannerPass123")
        self.package = Package.objects.create(planner=self.planner, title="Garden ceremony")

    def test_events_published_after_commit(self) -> None:
        with mock.patch.object(message_bus, "publish_events") as publish:
            with self.captureOnCommitCallbacks(execute=True):
                message_bus.handle_command(CreateBookingCommand(
                    client_id=self.planner.id,
                    package_id=self.package.id,
                    wedding_date=timezone.localdate() + timedelta(days=30),
                    location="Old Town Hall",
                ))

        publish.assert_called_once()
        events = publish.call_args.args[0]
        self.assertEqual([event.event_type for event in events], ["BookingCreated"])

    def test_no_events_published_on_failure(self) -> None:
        with mock.patch.object(message_bus, "publish_events") as publish:
            with self.captureOnCommitCallbacks(execute=True):
                with self.assertRaises(InvalidDate):
                    message_bus.handle_command(CreateBookingCommand(
                        client_id=self.planner.id,
                        package_id=self.package.id,
                        wedding_date=date(2000, 1, 1),
                        location="Old Town Hall",
                    ))

        publish.assert_not_called()
