"""Model signal handlers for packages."""

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import DEFAULT_TOTAL_SLOTS, DefaultAvailability, Package


@receiver(post_save, sender=Package)
def ensure_default_availability(sender, instance, created, **kwargs):
    """Every new package starts with one default availability record."""
    if not created:
        return
    DefaultAvailability.objects.get_or_create(
        package=instance,
        defaults={"total_slots": DEFAULT_TOTAL_SLOTS},
    )
