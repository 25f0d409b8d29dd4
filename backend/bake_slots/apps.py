from django.apps import AppConfig


class BakeSlotsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "bake_slots"
    verbose_name = "Bake Slots"
