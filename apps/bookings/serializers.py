"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Booking


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking representation."""

    client_id = serializers.ReadOnlyField(source="client.id")
    package_id = serializers.ReadOnlyField(source="package.id")
    package_title = serializers.ReadOnlyField(source="package.title")
    wedding_time = serializers.TimeField(format="%H:%M", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "client_id",
            "package_id",
            "package_title",
            "wedding_date",
            "wedding_time",
            "location",
            "notes",
            "status",
            "cancellation_reason",
            "confirmed_at",
            "completed_at",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    """Input for creating a booking as the requesting client."""

    package = serializers.IntegerField(min_value=1)
    wedding_date = serializers.DateField()
    wedding_time = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    location = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_location(self, value):  # type: ignore
        if not value.strip():
            raise serializers.ValidationError("Location is required.")
        return value


class BookingUpdateSerializer(serializers.Serializer):
    """Partial edit of a pending booking; absent fields stay unchanged."""

    wedding_date = serializers.DateField(required=False)
    wedding_time = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    location = serializers.CharField(max_length=255, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_location(self, value):  # type: ignore
        if not value.strip():
            raise serializers.ValidationError("Location is required.")
        return value


class StatusTransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            Booking.Status.CONFIRMED,
            Booking.Status.COMPLETED,
            Booking.Status.CANCELLED,
        ]
    )
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class NotesSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class RescheduleSerializer(serializers.Serializer):
    wedding_date = serializers.DateField()


# ===== Availability =====


class AvailabilityDateQuerySerializer(serializers.Serializer):
    date = serializers.DateField()


class AvailabilityRangeQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()


class UpcomingAvailabilityQuerySerializer(serializers.Serializer):
    days_ahead = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, required=False)


class AvailabilityVerdictSerializer(serializers.Serializer):
    """Renders a (date, AvailabilityVerdict) pair."""

    def to_representation(self, instance):  # type: ignore
        day, verdict = instance
        return {"date": day.isoformat(), **verdict.to_dict()}
