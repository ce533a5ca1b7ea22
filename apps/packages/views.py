"""Package API views."""

from __future__ import annotations

import logging

from django.db.models import Q  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from . import services
from .models import Package
from .serializers import (
    BlackoutSerializer,
    BlackoutWriteSerializer,
    DateOverrideSerializer,
    DateSlotsWriteSerializer,
    DateWindowSerializer,
    DefaultSlotsSerializer,
    PackageSerializer,
    PackageWriteSerializer,
)

logger = logging.getLogger(__name__)


def is_admin(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


class IsPackageOwnerOrAdmin(permissions.BasePermission):
    """Read for everyone; writes only for the package's planner and staff."""

    def has_permission(self, request, view):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj: Package):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if is_admin(user):
            return True
        return obj.planner_id == user.id


class PackageViewSet(viewsets.ModelViewSet):
    """Packages with their capacity and blackout calendars."""

    queryset = Package.objects.select_related("planner", "default_availability")
    permission_classes = [IsPackageOwnerOrAdmin]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["planner", "is_active"]
    search_fields = ["title", "description"]
    ordering_fields = ["price", "created_at", "title"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if not user.is_authenticated:
            return qs.filter(is_active=True)
        if is_admin(user):
            return qs
        return qs.filter(Q(is_active=True) | Q(planner=user))

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return PackageWriteSerializer
        return PackageSerializer

    def perform_create(self, serializer):  # type: ignore
        package = serializer.save(planner=self.request.user)
        logger.info(f"Package {package.pk} created by user {self.request.user.pk}")

    def perform_destroy(self, instance):  # type: ignore
        services.soft_delete_package(instance)

    def _date_window(self, request):
        window = DateWindowSerializer(data=request.query_params)
        window.is_valid(raise_exception=True)
        return window.validated_data.get("start"), window.validated_data.get("end")

    @action(detail=True, methods=["get", "put"], url_path="default-slots")
    def default_slots(self, request, pk=None):  # type: ignore
        package = self.get_object()
        if request.method == "PUT":
            serializer = DefaultSlotsSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            services.set_default_slots(package, serializer.validated_data["total_slots"])
        return Response({"total_slots": services.get_default_slots(package)})

    @action(detail=True, methods=["get", "post"], url_path="date-slots")
    def date_slots(self, request, pk=None):  # type: ignore
        package = self.get_object()
        if request.method == "POST":
            serializer = DateSlotsWriteSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            override = services.set_date_slots(
                package,
                serializer.validated_data["date"],
                serializer.validated_data["total_slots"],
            )
            return Response(DateOverrideSerializer(override).data, status=status.HTTP_200_OK)

        start, end = self._date_window(request)
        overrides = services.list_date_overrides(package, start, end)
        return Response(DateOverrideSerializer(overrides, many=True).data)

    @action(detail=True, methods=["get", "post"], url_path="blackouts")
    def blackouts(self, request, pk=None):  # type: ignore
        package = self.get_object()
        if request.method == "POST":
            serializer = BlackoutWriteSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            blackout = services.add_blackout(
                package,
                serializer.validated_data["date"],
                reason=serializer.validated_data.get("reason"),
                created_by=request.user,
            )
            return Response(BlackoutSerializer(blackout).data, status=status.HTTP_201_CREATED)

        start, end = self._date_window(request)
        blackouts = services.list_blackouts(package, start, end)
        return Response(BlackoutSerializer(blackouts, many=True).data)

    @action(
        detail=True,
        methods=["delete"],
        url_path=r"blackouts/(?P<blackout_id>\d+)",
        url_name="blackout-detail",
    )
    def remove_blackout(self, request, pk=None, blackout_id=None):  # type: ignore
        package = self.get_object()
        services.remove_blackout(package, int(blackout_id))
        return Response(status=status.HTTP_204_NO_CONTENT)
