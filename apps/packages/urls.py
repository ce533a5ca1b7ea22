"""URL routing for the packages domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import PackageViewSet

router = DefaultRouter()
router.register(r"", PackageViewSet, basename="package")

urlpatterns = [
    path("", include(router.urls)),
]
