"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Create a pending booking and reserve its slot
- ConfirmBookingCommand: Planner confirms a pending booking
- CancelBookingCommand: Cancel a booking and release its slot
- CompleteBookingCommand: Mark a confirmed booking as completed
- TransitionBookingCommand: Apply any permitted status change
- UpdateBookingDetailsCommand: Edit a pending booking
- UpdateBookingDateCommand: Move a pending booking to another date
- PurgeBookingCommand: Delete a booking record (administrators)
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional
from uuid import UUID, uuid4
import logging

from django.db import IntegrityError  # type: ignore

from apps.bookings.domain.entities import Booking, BookingStatus, parse_status
from apps.bookings.domain.events import BookingCreated, BookingPurged
from apps.bookings.models import Booking as BookingModel
from apps.bookings.repositories import DjangoBookingRepository, lock_queryset_if_possible
from apps.bookings.services import ensure_bookable, ensure_future_date, ensure_preparation_clear
from apps.packages.models import Package
from apps.packages.services import get_capacity, release_slot, reserve_slot
from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    CapacityExceeded,
    DuplicateBooking,
    InvalidDetails,
    InvalidTransition,
    NotFound,
    NothingToRelease,
)
from shared.domain.value_objects import TimeOfDay

logger = logging.getLogger(__name__)

# Marks an optional field that was not supplied, as opposed to an explicit None
UNSET: Any = object()


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    client_id: int
    package_id: int
    wedding_date: date
    location: str
    wedding_time: Any = None
    notes: str = ''


@dataclass
class ConfirmBookingCommand:
    """Command to confirm a pending booking"""
    booking_id: UUID
    notes: Optional[str] = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: UUID
    reason: str = ''


@dataclass
class CompleteBookingCommand:
    """Command to complete a confirmed booking"""
    booking_id: UUID
    notes: Optional[str] = None


@dataclass
class TransitionBookingCommand:
    """Command to move a booking to new_status ('confirmed', 'completed' or 'cancelled')"""
    booking_id: UUID
    new_status: Any
    notes: Optional[str] = None


@dataclass
class UpdateBookingDetailsCommand:
    """
    Command to edit a pending booking

    None leaves a field unchanged; wedding_time uses UNSET for that so that
    None can clear it.
    """
    booking_id: UUID
    wedding_date: Optional[date] = None
    wedding_time: Any = UNSET
    location: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class UpdateBookingDateCommand:
    """Command to move a pending booking to another wedding date"""
    booking_id: UUID
    new_date: date


@dataclass
class PurgeBookingCommand:
    """Command to delete a booking record"""
    booking_id: UUID


# ===== Helpers =====

def lock_package(package_id) -> Package:
    """Load and lock the package row for the rest of the transaction"""
    package = lock_queryset_if_possible(Package.objects.filter(pk=package_id)).first()
    if package is None:
        raise NotFound("Package not found or inactive")
    return package


def release_booking_slot(package_id, wedding_date: date) -> None:
    """Release a slot, logging rather than failing when none is booked"""
    try:
        release_slot(package_id, wedding_date)
    except NothingToRelease:
        logger.warning(
            f"No booked slot to release for package {package_id} on {wedding_date}"
        )


class BookingHandler:
    """Base for handlers that load an existing booking"""

    def __init__(self, booking_repo: DjangoBookingRepository):
        self.booking_repo = booking_repo

    def _load(self, booking_id: UUID) -> Booking:
        booking = self.booking_repo.get_by_id(booking_id, lock=True)
        if not booking:
            raise NotFound(f"Booking {booking_id} not found")
        return booking

    def _save_with_guard(self, booking: Booking) -> None:
        """Save, reporting a clash with the one-booking-per-date constraint"""
        try:
            self.booking_repo.save(booking)
        except IntegrityError as exc:
            raise DuplicateBooking() from exc

    def _transition(self, booking_id: UUID, new_status: BookingStatus, notes, label: str) -> Booking:
        """Load, lock and move a booking to new_status in one unit of work"""
        with DjangoUnitOfWork(label=label) as uow:
            booking = self._load(booking_id)

            if new_status == BookingStatus.CANCELLED and booking.status == BookingStatus.CANCELLED:
                logger.info(f"Booking {booking.booking_code} is already cancelled")
                return booking

            if new_status == BookingStatus.CONFIRMED and booking.can_transition_to(new_status):
                self._ensure_confirmable(booking)

            held_slot = booking.holds_slot
            booking.transition_to(new_status, notes)
            if held_slot and not booking.holds_slot:
                release_booking_slot(booking.package_id, booking.wedding_date)

            uow.collect_events(booking)
            self.booking_repo.save(booking)

        return booking

    def _ensure_confirmable(self, booking: Booking) -> None:
        package = lock_package(booking.package_id)

        # Capacity may have been lowered below the booked count since creation
        inventory = get_capacity(package, booking.wedding_date)
        if inventory.is_overbooked:
            raise CapacityExceeded(
                f"Date {booking.wedding_date} is overbooked ({inventory})"
            )
        ensure_preparation_clear(package, booking.wedding_date)

    def _move_to_date(self, booking: Booking, new_date: date) -> None:
        """
        Release the current slot, validate new_date like a new booking and
        reserve a slot there. Runs inside the caller's unit of work, so any
        failure restores the original reservation.
        """
        if booking.status != BookingStatus.PENDING:
            raise InvalidTransition(
                f"Only pending bookings can be changed (status is {booking.status.value})"
            )
        if new_date == booking.wedding_date:
            return

        ensure_future_date(new_date)
        package = lock_package(booking.package_id)

        release_booking_slot(package.pk, booking.wedding_date)
        ensure_bookable(package.pk, new_date)
        if self.booking_repo.client_has_active_booking(
            booking.client_id, new_date, exclude_id=booking.id
        ):
            raise DuplicateBooking()
        reserve_slot(package, new_date)

        booking.reschedule(new_date)


# ===== Command Handlers =====

class CreateBookingHandler(BookingHandler):
    """
    Handler for CreateBooking command

    Strategy:
    1. Validate date and time before touching the database
    2. Start database transaction (atomic)
    3. Lock the package row (SELECT FOR UPDATE)
    4. Check availability with the same rules as the availability API
    5. Reject a second live booking of the client on that date
    6. Reserve the slot with a conditional UPDATE (lost races fail here)
    7. Insert the booking; the partial unique index is the final guard
    8. Commit transaction, then publish events
    """

    def handle(self, command: CreateBookingCommand) -> Booking:
        logger.info(
            f"Creating booking for package {command.package_id}, "
            f"client {command.client_id}, date {command.wedding_date}"
        )

        if not (command.location or '').strip():
            raise InvalidDetails("Location is required")
        wedding_time = TimeOfDay.parse(command.wedding_time)
        ensure_future_date(command.wedding_date)

        with DjangoUnitOfWork(label="CreateBooking") as uow:
            package = lock_package(command.package_id)
            ensure_bookable(package.pk, command.wedding_date)

            if self.booking_repo.client_has_active_booking(command.client_id, command.wedding_date):
                raise DuplicateBooking()

            reserve_slot(package, command.wedding_date)

            booking = Booking(
                id=uuid4(),
                booking_code=BookingModel.generate_booking_code(),
                package_id=package.pk,
                client_id=command.client_id,
                wedding_date=command.wedding_date,
                wedding_time=wedding_time,
                location=command.location,
                notes=command.notes or '',
                status=BookingStatus.PENDING,
            )
            booking.add_event(BookingCreated(
                aggregate_id=booking.id,
                booking_id=booking.id,
                package_id=booking.package_id,
                client_id=booking.client_id,
                wedding_date=booking.wedding_date,
            ))

            try:
                self.booking_repo.add(booking)
            except IntegrityError as exc:
                raise DuplicateBooking() from exc

            uow.collect_events(booking)

        logger.info(f"Booking created successfully: {booking.booking_code} (ID: {booking.id})")
        return booking


class ConfirmBookingHandler(BookingHandler):
    """Handler for confirming a pending booking"""

    def handle(self, command: ConfirmBookingCommand) -> Booking:
        logger.info(f"Confirming booking {command.booking_id}")
        booking = self._transition(
            command.booking_id, BookingStatus.CONFIRMED, command.notes, label="ConfirmBooking"
        )
        logger.info(f"Booking {booking.booking_code} confirmed successfully")
        return booking


class CancelBookingHandler(BookingHandler):
    """Handler for cancelling a booking and releasing its slot"""

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")
        booking = self._transition(
            command.booking_id, BookingStatus.CANCELLED, command.reason, label="CancelBooking"
        )
        logger.info(f"Booking {booking.booking_code} cancelled successfully")
        return booking


class CompleteBookingHandler(BookingHandler):
    """Handler for completing a confirmed booking"""

    def handle(self, command: CompleteBookingCommand) -> Booking:
        logger.info(f"Completing booking {command.booking_id}")
        booking = self._transition(
            command.booking_id, BookingStatus.COMPLETED, command.notes, label="CompleteBooking"
        )
        logger.info(f"Booking {booking.booking_code} completed successfully")
        return booking


class TransitionBookingHandler(BookingHandler):
    """
    Handler for a generic status change

    Notes given with a cancellation become the cancellation reason.
    """

    def handle(self, command: TransitionBookingCommand) -> Booking:
        new_status = parse_status(command.new_status)
        logger.info(f"Moving booking {command.booking_id} to {new_status.value}")
        return self._transition(
            command.booking_id, new_status, command.notes, label="TransitionBooking"
        )


class UpdateBookingDetailsHandler(BookingHandler):
    """Handler for editing a pending booking"""

    def handle(self, command: UpdateBookingDetailsCommand) -> Booking:
        logger.info(f"Updating details of booking {command.booking_id}")

        wedding_time = None
        clear_time = False
        if command.wedding_time is not UNSET:
            wedding_time = TimeOfDay.parse(command.wedding_time)
            clear_time = wedding_time is None

        with DjangoUnitOfWork(label="UpdateBookingDetails") as uow:
            booking = self._load(command.booking_id)

            booking.update_details(
                location=command.location,
                notes=command.notes,
                wedding_time=wedding_time,
                clear_time=clear_time,
            )
            if command.wedding_date is not None:
                self._move_to_date(booking, command.wedding_date)

            uow.collect_events(booking)
            self._save_with_guard(booking)

        return booking


class UpdateBookingDateHandler(BookingHandler):
    """Handler for moving a pending booking to another date"""

    def handle(self, command: UpdateBookingDateCommand) -> Booking:
        logger.info(f"Moving booking {command.booking_id} to {command.new_date}")

        with DjangoUnitOfWork(label="UpdateBookingDate") as uow:
            booking = self._load(command.booking_id)
            self._move_to_date(booking, command.new_date)

            uow.collect_events(booking)
            self._save_with_guard(booking)

        logger.info(f"Booking {booking.booking_code} moved to {booking.wedding_date}")
        return booking


class PurgeBookingHandler(BookingHandler):
    """Handler for deleting a booking record, releasing a held slot"""

    def handle(self, command: PurgeBookingCommand) -> None:
        logger.info(f"Purging booking {command.booking_id}")

        with DjangoUnitOfWork(label="PurgeBooking") as uow:
            booking = self._load(command.booking_id)

            if booking.holds_slot:
                release_booking_slot(booking.package_id, booking.wedding_date)

            booking.add_event(BookingPurged(
                aggregate_id=booking.id,
                booking_id=booking.id,
                package_id=booking.package_id,
                status=booking.status.value,
            ))
            uow.collect_events(booking)
            self.booking_repo.delete(booking.id)

        logger.info(f"Booking {booking.booking_code} purged")


def register_handlers(bus: MessageBus) -> None:
    """Register booking command handlers on the bus (safe to call twice)"""
    if bus.has_command_handler(CreateBookingCommand):
        return

    repo = DjangoBookingRepository()
    bus.register_command_handler(CreateBookingCommand, CreateBookingHandler(repo).handle)
    bus.register_command_handler(ConfirmBookingCommand, ConfirmBookingHandler(repo).handle)
    bus.register_command_handler(CancelBookingCommand, CancelBookingHandler(repo).handle)
    bus.register_command_handler(CompleteBookingCommand, CompleteBookingHandler(repo).handle)
    bus.register_command_handler(
        TransitionBookingCommand, TransitionBookingHandler(repo).handle
    )
    bus.register_command_handler(UpdateBookingDetailsCommand, UpdateBookingDetailsHandler(repo).handle)
    bus.register_command_handler(UpdateBookingDateCommand, UpdateBookingDateHandler(repo).handle)
    bus.register_command_handler(PurgeBookingCommand, PurgeBookingHandler(repo).handle)
