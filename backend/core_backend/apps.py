from django.apps import AppConfig


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        # Registers the BAKERY setting_changed receiver.
        import core_backend.config  # noqa
