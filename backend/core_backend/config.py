"""
Centralized access to pipeline limits.

Values come from the ``BAKERY`` dict in Django settings, falling back to the
defaults below. The singleton loads lazily on first attribute access and is
reloaded whenever ``BAKERY`` changes (e.g. ``override_settings`` in tests).
"""
from decimal import Decimal
from typing import Any, Optional
import logging

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

logger = logging.getLogger(__name__)


DEFAULTS = {
    "MAX_ITEMS_PER_ORDER": 20,
    "MAX_QUANTITY_PER_ITEM": 50,
    "MAX_ORDER_TOTAL": Decimal("5000"),
    "MAX_NAME_LENGTH": 100,
    "MAX_NOTES_LENGTH": 500,
    "CAPACITY_CAS_RETRIES": 5,
}


class PipelineSettings:
    """
    A lazy singleton exposing the BAKERY settings as lower-case attributes,
    e.g. ``app_settings.max_items_per_order``.
    """

    _instance: Optional["PipelineSettings"] = None

    def __new__(cls) -> "PipelineSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._values = None
        return cls._instance

    def _setup(self) -> None:
        overrides = getattr(settings, "BAKERY", {}) or {}
        unknown = set(overrides) - set(DEFAULTS)
        if unknown:
            logger.warning(f"Ignoring unknown BAKERY settings: {', '.join(sorted(unknown))}")

        values = {}
        for key, default in DEFAULTS.items():
            value = overrides.get(key, default)
            if isinstance(default, Decimal):
                value = Decimal(str(value))
            values[key.lower()] = value
        self._values = values

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if self._values is None:
            self._setup()
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(f"'PipelineSettings' object has no attribute '{name}'")

    def reload(self) -> None:
        self._values = None


app_settings = PipelineSettings()


@receiver(setting_changed)
def reload_pipeline_settings(sender, setting, **kwargs):
    if setting == "BAKERY":
        app_settings.reload()
