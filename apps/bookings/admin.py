"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "package",
        "client",
        "status",
        "wedding_date",
        "wedding_time",
        "created_at",
    )
    list_filter = ("status", "wedding_date")
    search_fields = ("booking_code", "package__title", "client__email", "location")
    # Status and date changes go through the booking commands so slots stay in sync
    readonly_fields = (
        "booking_code",
        "package",
        "client",
        "wedding_date",
        "status",
        "confirmed_at",
        "completed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
