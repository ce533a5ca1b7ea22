"""Package and capacity models for WedPlan."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.inventory import SlotInventory

DEFAULT_TOTAL_SLOTS = 1


class Package(models.Model):
    """Bookable service package published by a planner."""

    planner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="packages",
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True)
    preparation_days = models.PositiveSmallIntegerField(
        default=0,
        help_text=_("Days after a confirmed wedding date that are blocked for preparation."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Package")
        verbose_name_plural = _("Packages")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["planner", "is_active"], name="package_planner_active_idx"),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def default_slots(self) -> int:
        try:
            return self.default_availability.total_slots
        except DefaultAvailability.DoesNotExist:
            return DEFAULT_TOTAL_SLOTS


class DefaultAvailability(models.Model):
    """Fallback slot count for dates without an override."""

    package = models.OneToOneField(
        Package,
        on_delete=models.CASCADE,
        related_name="default_availability",
    )
    total_slots = models.PositiveIntegerField(
        default=DEFAULT_TOTAL_SLOTS,
        validators=[MinValueValidator(1)],
    )

    class Meta:
        verbose_name = _("Default availability")
        verbose_name_plural = _("Default availability")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_slots__gte=1),
                name="default_availability_positive_slots",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.package_id}: {self.total_slots} slot(s) by default"


class DateOverride(models.Model):
    """Capacity counters materialized for one package on one date."""

    package = models.ForeignKey(
        Package,
        on_delete=models.CASCADE,
        related_name="date_overrides",
    )
    date = models.DateField()
    total_slots = models.PositiveIntegerField()
    booked_slots = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Date override")
        verbose_name_plural = _("Date overrides")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(
                fields=["package", "date"],
                name="date_override_unique_package_date",
            ),
            models.CheckConstraint(
                condition=models.Q(booked_slots__gte=0),
                name="date_override_booked_not_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.package_id} @ {self.date}: {self.booked_slots}/{self.total_slots}"

    def as_inventory(self) -> SlotInventory:
        return SlotInventory(total=self.total_slots, booked=self.booked_slots)


class Blackout(models.Model):
    """Date manually disabled by the planner."""

    package = models.ForeignKey(
        Package,
        on_delete=models.CASCADE,
        related_name="blackouts",
    )
    date = models.DateField()
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_blackouts",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Blackout date")
        verbose_name_plural = _("Blackout dates")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(
                fields=["package", "date"],
                name="blackout_unique_package_date",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.package_id}: {self.date} blocked ({self.reason or 'no reason'})"
