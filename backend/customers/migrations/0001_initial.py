from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(max_length=100)),
                ("email", models.EmailField(help_text="Stored lower-cased.", max_length=254, unique=True)),
                ("phone", models.CharField(max_length=20)),
                (
                    "notification_pref",
                    models.CharField(
                        choices=[("email", "Email"), ("sms", "SMS"), ("both", "Email and SMS")],
                        default="email",
                        max_length=10,
                    ),
                ),
                ("sms_opt_in", models.BooleanField(default=False)),
                ("sms_opt_in_date", models.DateTimeField(blank=True, null=True)),
                ("total_orders", models.PositiveIntegerField(default=0)),
                ("total_spent", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("first_order_date", models.DateTimeField(blank=True, null=True)),
                ("last_order_date", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "ordering": ["last_name", "first_name"],
                "indexes": [models.Index(fields=["last_name", "first_name"], name="customer_name_idx")],
            },
        ),
    ]
