"""URL routing for package availability queries."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import (
    AvailabilityRangeView,
    AvailabilityView,
    PreparationPeriodView,
    UpcomingAvailabilityView,
)

urlpatterns = [
    path("<int:package_id>/", AvailabilityView.as_view(), name="availability-check"),
    path("<int:package_id>/range/", AvailabilityRangeView.as_view(), name="availability-range"),
    path("<int:package_id>/upcoming/", UpcomingAvailabilityView.as_view(), name="availability-upcoming"),
    path(
        "<int:package_id>/preparation-period/",
        PreparationPeriodView.as_view(),
        name="availability-preparation-period",
    ),
]
