"""Admin registrations for packages domain."""

from __future__ import annotations

from django.contrib import admin

from .models import Blackout, DateOverride, DefaultAvailability, Package


class DefaultAvailabilityInline(admin.StackedInline):
    model = DefaultAvailability
    extra = 0
    can_delete = False


class BlackoutInline(admin.TabularInline):
    model = Blackout
    extra = 0
    fields = ("date", "reason", "created_by")
    readonly_fields = ("created_by",)


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ("title", "planner", "price", "preparation_days", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("title", "planner__email", "planner__username")
    inlines = (DefaultAvailabilityInline, BlackoutInline)
    readonly_fields = ("created_at", "updated_at")


@admin.register(DateOverride)
class DateOverrideAdmin(admin.ModelAdmin):
    list_display = ("package", "date", "total_slots", "booked_slots")
    list_filter = ("date",)
    search_fields = ("package__title",)
    # booked_slots only moves through reservations and releases
    readonly_fields = ("booked_slots", "updated_at")
