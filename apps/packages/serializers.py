"""Serializers for the packages domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Blackout, DateOverride, Package


class PackageSerializer(serializers.ModelSerializer):
    planner = serializers.ReadOnlyField(source="planner_id")
    default_slots = serializers.ReadOnlyField()

    class Meta:
        model = Package
        fields = [
            "id",
            "planner",
            "title",
            "description",
            "price",
            "is_active",
            "preparation_days",
            "default_slots",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PackageWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Package
        fields = [
            "title",
            "description",
            "price",
            "preparation_days",
        ]

    def validate_price(self, value):  # type: ignore
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value

    def to_representation(self, instance):  # type: ignore
        return PackageSerializer(instance, context=self.context).data


class DefaultSlotsSerializer(serializers.Serializer):
    total_slots = serializers.IntegerField(min_value=1)


class DateOverrideSerializer(serializers.ModelSerializer):
    available_slots = serializers.SerializerMethodField()

    class Meta:
        model = DateOverride
        fields = ["id", "date", "total_slots", "booked_slots", "available_slots", "updated_at"]
        read_only_fields = fields

    def get_available_slots(self, obj: DateOverride) -> int:
        return obj.as_inventory().available


class DateSlotsWriteSerializer(serializers.Serializer):
    date = serializers.DateField()
    total_slots = serializers.IntegerField(min_value=0)


class BlackoutSerializer(serializers.ModelSerializer):
    created_by = serializers.ReadOnlyField(source="created_by_id")

    class Meta:
        model = Blackout
        fields = ["id", "date", "reason", "created_by", "created_at"]
        read_only_fields = fields


class BlackoutWriteSerializer(serializers.Serializer):
    date = serializers.DateField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class DateWindowSerializer(serializers.Serializer):
    """Optional ``start``/``end`` query parameters for calendar listings."""

    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start")
        end = attrs.get("end")
        if start and end and start > end:
            raise serializers.ValidationError("End date cannot be earlier than start date.")
        return attrs
