"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Count, Q  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import PermissionDenied  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.packages.models import Package
from shared.application.message_bus import message_bus

from . import services
from .application.command_handlers import (
    UNSET,
    CancelBookingCommand,
    CompleteBookingCommand,
    ConfirmBookingCommand,
    CreateBookingCommand,
    PurgeBookingCommand,
    TransitionBookingCommand,
    UpdateBookingDateCommand,
    UpdateBookingDetailsCommand,
)
from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    AvailabilityDateQuerySerializer,
    AvailabilityRangeQuerySerializer,
    AvailabilityVerdictSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    CancelSerializer,
    NotesSerializer,
    RescheduleSerializer,
    StatusTransitionSerializer,
    UpcomingAvailabilityQuerySerializer,
)


def is_admin(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


def is_planner_of(user, booking: Booking) -> bool:
    return booking.package.planner_id == user.id


class IsBookingStakeholder(permissions.BasePermission):
    """Clients, package planners and administrators have access to a booking."""

    def has_permission(self, request, view):  # type: ignore
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if is_admin(user):
            return True
        return obj.client_id == user.id or is_planner_of(user, obj)


class BookingViewSet(viewsets.ModelViewSet):
    """Viewset for creating bookings and driving their lifecycle."""

    queryset = Booking.objects.select_related("package", "client").all()
    permission_classes = [IsBookingStakeholder]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = BookingFilterSet
    ordering_fields = ["wedding_date", "created_at", "status"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if not user.is_authenticated:
            return qs.none()
        if is_admin(user):
            return qs
        return qs.filter(Q(client=user) | Q(package__planner=user))

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "partial_update":
            return BookingUpdateSerializer
        return BookingSerializer

    def _respond(self, booking_id, status_code=status.HTTP_200_OK):
        booking = Booking.objects.select_related("package", "client").get(pk=booking_id)
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        return Response(data, status=status_code)

    def _require_planner_or_admin(self, booking: Booking) -> None:
        user = self.request.user
        if not (is_admin(user) or is_planner_of(user, booking)):
            raise PermissionDenied("Only the package planner can change this booking status.")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = message_bus.handle_command(CreateBookingCommand(
            client_id=request.user.id,
            package_id=data["package"],
            wedding_date=data["wedding_date"],
            location=data["location"],
            wedding_time=data.get("wedding_time"),
            notes=data.get("notes", ""),
        ))
        return self._respond(booking.id, status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message_bus.handle_command(UpdateBookingDetailsCommand(
            booking_id=booking.id,
            wedding_date=data.get("wedding_date"),
            wedding_time=data["wedding_time"] if "wedding_time" in data else UNSET,
            location=data.get("location"),
            notes=data.get("notes"),
        ))
        return self._respond(booking.id)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        if not is_admin(request.user):
            raise PermissionDenied("Only administrators can delete bookings.")
        message_bus.handle_command(PurgeBookingCommand(booking_id=booking.id))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = StatusTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]
        if new_status != Booking.Status.CANCELLED:
            self._require_planner_or_admin(booking)

        message_bus.handle_command(TransitionBookingCommand(
            booking_id=booking.id,
            new_status=new_status,
            notes=serializer.validated_data.get("notes"),
        ))
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        self._require_planner_or_admin(booking)
        serializer = NotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(ConfirmBookingCommand(
            booking_id=booking.id,
            notes=serializer.validated_data.get("notes"),
        ))
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        self._require_planner_or_admin(booking)
        serializer = NotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(CompleteBookingCommand(
            booking_id=booking.id,
            notes=serializer.validated_data.get("notes"),
        ))
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(CancelBookingCommand(
            booking_id=booking.id,
            reason=serializer.validated_data.get("reason", ""),
        ))
        return self._respond(booking.id)

    @action(detail=True, methods=["post"])
    def reschedule(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message_bus.handle_command(UpdateBookingDateCommand(
            booking_id=booking.id,
            new_date=serializer.validated_data["wedding_date"],
        ))
        return self._respond(booking.id)

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        qs = self.filter_queryset(self.get_queryset())
        counts = {value: 0 for value in Booking.Status.values}
        for row in qs.order_by().values("status").annotate(total=Count("id")):
            counts[row["status"]] = row["total"]
        return Response({**counts, "total": sum(counts.values())})


# ===== Availability =====


class AvailabilityView(APIView):
    """GET ?date=YYYY-MM-DD: availability verdict for one date."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, package_id: int):  # type: ignore
        query = AvailabilityDateQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        day = query.validated_data["date"]
        verdict = services.check_availability(package_id, day)
        return Response(AvailabilityVerdictSerializer((day, verdict)).data)


class AvailabilityRangeView(APIView):
    """GET ?start=&end=: one verdict per date of the inclusive range."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, package_id: int):  # type: ignore
        query = AvailabilityRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        verdicts = services.get_availability_range(
            package_id,
            query.validated_data["start"],
            query.validated_data["end"],
        )
        days = sorted(verdicts.items())
        return Response({
            "package_id": package_id,
            "start": days[0][0].isoformat(),
            "end": days[-1][0].isoformat(),
            "dates": AvailabilityVerdictSerializer(days, many=True).data,
        })


class UpcomingAvailabilityView(APIView):
    """GET ?days_ahead=&limit=: next available dates after today."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, package_id: int):  # type: ignore
        query = UpcomingAvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        upcoming = services.get_upcoming_available_dates(
            package_id,
            days_ahead=query.validated_data.get("days_ahead"),
            limit=query.validated_data.get("limit"),
        )
        return Response({
            "package_id": package_id,
            "dates": AvailabilityVerdictSerializer(upcoming, many=True).data,
        })


class PreparationPeriodView(APIView):
    """GET ?date=: whether the date is blocked for preparation."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, package_id: int):  # type: ignore
        package = get_object_or_404(Package, pk=package_id)
        query = AvailabilityDateQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        day = query.validated_data["date"]
        return Response({
            "package_id": package.pk,
            "date": day.isoformat(),
            "preparation_days": package.preparation_days,
            "is_preparation_period": services.is_in_preparation_period(package, day),
        })
