"""Persistence for the Booking aggregate."""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from django.db import transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.bookings.domain.entities import Booking, BookingStatus
from shared.domain.value_objects import TimeOfDay

from .models import Booking as BookingModel


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class DjangoBookingRepository:
    """Maps Booking aggregates onto the bookings table."""

    def to_entity(self, row: BookingModel) -> Booking:
        return Booking(
            id=row.id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            booking_code=row.booking_code,
            package_id=row.package_id,
            client_id=row.client_id,
            wedding_date=row.wedding_date,
            wedding_time=TimeOfDay.parse(row.wedding_time),
            location=row.location,
            notes=row.notes,
            status=BookingStatus(row.status),
            cancellation_reason=row.cancellation_reason,
            confirmed_at=row.confirmed_at,
            completed_at=row.completed_at,
            cancelled_at=row.cancelled_at,
        )

    def _fields(self, booking: Booking) -> dict:
        return {
            "package_id": booking.package_id,
            "client_id": booking.client_id,
            "wedding_date": booking.wedding_date,
            "wedding_time": booking.wedding_time.value if booking.wedding_time else None,
            "location": booking.location,
            "notes": booking.notes,
            "status": booking.status.value,
            "cancellation_reason": booking.cancellation_reason,
            "confirmed_at": booking.confirmed_at,
            "completed_at": booking.completed_at,
            "cancelled_at": booking.cancelled_at,
        }

    def get_by_id(self, booking_id: UUID, lock: bool = False) -> Optional[Booking]:
        queryset = BookingModel.objects.filter(pk=booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        row = queryset.first()
        return self.to_entity(row) if row else None

    def add(self, booking: Booking) -> BookingModel:
        """Insert a new booking; the partial unique constraint may raise IntegrityError"""
        row = BookingModel(id=booking.id, booking_code=booking.booking_code, **self._fields(booking))
        with transaction.atomic():
            row.save(force_insert=True)
        booking.booking_code = row.booking_code
        booking.created_at = row.created_at
        booking.updated_at = row.updated_at
        return row

    def save(self, booking: Booking) -> None:
        fields = self._fields(booking)
        with transaction.atomic():
            row = BookingModel.objects.get(pk=booking.id)
            for name, value in fields.items():
                setattr(row, name, value)
            row.save(update_fields=[*fields.keys(), "updated_at"])
        booking.updated_at = row.updated_at

    def delete(self, booking_id: UUID) -> int:
        deleted, _ = BookingModel.objects.filter(pk=booking_id).delete()
        return deleted

    def client_has_active_booking(
        self,
        client_id: int,
        wedding_date: date,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        queryset = BookingModel.objects.filter(
            client_id=client_id,
            wedding_date=wedding_date,
        ).exclude(status=BookingModel.Status.CANCELLED)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()
