from django.apps import AppConfig


class PrepSheetsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "prep_sheets"
    verbose_name = "Prep Sheets"
