from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("recipes", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Location",
                "verbose_name_plural": "Locations",
                "ordering": ["sort_order", "name"],
            },
        ),
        migrations.CreateModel(
            name="BakeSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField(db_index=True)),
                ("total_capacity", models.PositiveIntegerField()),
                ("current_orders", models.PositiveIntegerField(default=0)),
                ("cutoff_at", models.DateTimeField(help_text="No new orders are accepted after this moment.")),
                ("is_open", models.BooleanField(default=True)),
                ("manually_closed_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("version", models.PositiveIntegerField(default=0, editable=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bake_slots",
                        to="bake_slots.location",
                    ),
                ),
                (
                    "manually_closed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="closed_bake_slots",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Bake Slot",
                "verbose_name_plural": "Bake Slots",
                "ordering": ["date", "location__sort_order"],
                "indexes": [models.Index(fields=["date", "is_open"], name="bake_slot_date_open_idx")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("current_orders__lte", models.F("total_capacity"))),
                        name="bake_slot_orders_within_capacity",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="FlavorCap",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("max_quantity", models.PositiveIntegerField()),
                ("current_quantity", models.PositiveIntegerField(default=0)),
                (
                    "bake_slot",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="flavor_caps",
                        to="bake_slots.bakeslot",
                    ),
                ),
                (
                    "flavor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="caps", to="recipes.flavor"
                    ),
                ),
            ],
            options={
                "verbose_name": "Flavor Cap",
                "verbose_name_plural": "Flavor Caps",
                "constraints": [
                    models.UniqueConstraint(fields=("bake_slot", "flavor"), name="unique_flavor_cap_per_slot"),
                    models.CheckConstraint(
                        condition=models.Q(("current_quantity__lte", models.F("max_quantity"))),
                        name="flavor_cap_within_max",
                    ),
                ],
            },
        ),
    ]
