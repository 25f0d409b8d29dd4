"""
Tests for the BAKERY settings singleton.
"""
from decimal import Decimal

import pytest

from core_backend.config import DEFAULTS, PipelineSettings, app_settings


def test_singleton():
    assert PipelineSettings() is app_settings


def test_defaults_apply_when_not_overridden(settings):
    settings.BAKERY = {}

    assert app_settings.max_items_per_order == DEFAULTS["MAX_ITEMS_PER_ORDER"]
    assert app_settings.capacity_cas_retries == DEFAULTS["CAPACITY_CAS_RETRIES"]


def test_overrides_reload_on_setting_change(settings):
    settings.BAKERY = {"MAX_QUANTITY_PER_ITEM": 12, "MAX_ORDER_TOTAL": "250.50"}

    assert app_settings.max_quantity_per_item == 12
    assert app_settings.max_order_total == Decimal("250.50")
    assert app_settings.max_notes_length == DEFAULTS["MAX_NOTES_LENGTH"]


def test_unknown_keys_are_ignored(settings, caplog):
    settings.BAKERY = {"MAX_LOAVES_PER_OVEN": 40}

    assert app_settings.max_items_per_order == DEFAULTS["MAX_ITEMS_PER_ORDER"]
    assert "MAX_LOAVES_PER_OVEN" in caplog.text


def test_unknown_attribute(settings):
    settings.BAKERY = {}

    with pytest.raises(AttributeError, match="oven_temperature"):
        app_settings.oven_temperature
