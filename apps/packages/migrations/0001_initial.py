import decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Package",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("price", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "preparation_days",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Days after a confirmed wedding date that are blocked for preparation.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "planner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="packages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Package",
                "verbose_name_plural": "Packages",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["planner", "is_active"], name="package_planner_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="DefaultAvailability",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "total_slots",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "package",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="default_availability",
                        to="packages.package",
                    ),
                ),
            ],
            options={
                "verbose_name": "Default availability",
                "verbose_name_plural": "Default availability",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(total_slots__gte=1),
                        name="default_availability_positive_slots",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DateOverride",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("total_slots", models.PositiveIntegerField()),
                ("booked_slots", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="date_overrides",
                        to="packages.package",
                    ),
                ),
            ],
            options={
                "verbose_name": "Date override",
                "verbose_name_plural": "Date overrides",
                "ordering": ["date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("package", "date"),
                        name="date_override_unique_package_date",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(booked_slots__gte=0),
                        name="date_override_booked_not_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Blackout",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_blackouts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "package",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blackouts",
                        to="packages.package",
                    ),
                ),
            ],
            options={
                "verbose_name": "Blackout date",
                "verbose_name_plural": "Blackout dates",
                "ordering": ["date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("package", "date"),
                        name="blackout_unique_package_date",
                    ),
                ],
            },
        ),
    ]
