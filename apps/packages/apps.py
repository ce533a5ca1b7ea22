from django.apps import AppConfig


class PackagesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.packages"
    label = "packages"

    def ready(self) -> None:  # pragma: no cover - import side effects
        from . import signals  # noqa: F401
