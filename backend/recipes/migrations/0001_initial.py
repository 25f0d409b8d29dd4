from django.db import migrations, models
import django.db.models.deletion

import recipes.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Flavor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("description", models.TextField(blank=True)),
                ("sizes", models.JSONField(default=list, validators=[recipes.models.validate_sizes])),
                ("is_active", models.BooleanField(default=True)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Flavor",
                "verbose_name_plural": "Flavors",
                "ordering": ["sort_order", "name"],
            },
        ),
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("base_ingredients", models.JSONField(default=list, validators=[recipes.models.validate_ingredients])),
                (
                    "fold_ingredients",
                    models.JSONField(blank=True, default=list, validators=[recipes.models.validate_ingredients]),
                ),
                (
                    "lamination_ingredients",
                    models.JSONField(blank=True, default=list, validators=[recipes.models.validate_ingredients]),
                ),
                ("steps", models.JSONField(blank=True, default=list, validators=[recipes.models.validate_steps])),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "flavor",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE, related_name="recipe", to="recipes.flavor"
                    ),
                ),
            ],
            options={
                "verbose_name": "Recipe",
                "verbose_name_plural": "Recipes",
                "ordering": ["name"],
            },
        ),
    ]
