"""
Shared test fixtures for all backend tests.

This module provides reusable pytest fixtures for common test objects
like users, flavors, bake slots, orders and prep sheets.
"""
import pytest
from datetime import timedelta
from django.contrib.auth import get_user_model
from django.utils import timezone

from bake_slots.models import BakeSlot, Location
from customers.models import Customer
from orders.services import OrderService
from prep_sheets.services import PrepSheetService
from recipes.models import Flavor, Recipe


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def staff_user(db):
    """Create a staff user (bakery admin)"""
    return get_user_model().objects.create_user(
        username='baker',
        email='baker@bakehouse.test',
        password='password123',
        is_staff=True,
    )


@pytest.fixture
def regular_user(db):
    """Create a non-staff user"""
    return get_user_model().objects.create_user(
        username='visitor',
        email='visitor@bakehouse.test',
        password='password123',
    )


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def flavor(db):
    """Country Sourdough: regular $12, mini $6"""
    return Flavor.objects.create(
        name='Country Sourdough',
        sizes=[
            {'name': 'regular', 'price': '12.00'},
            {'name': 'mini', 'price': '6.00'},
        ],
        sort_order=1,
    )


@pytest.fixture
def second_flavor(db):
    """Cinnamon Raisin: regular $14, no recipe configured"""
    return Flavor.objects.create(
        name='Cinnamon Raisin',
        sizes=[{'name': 'regular', 'price': '14.00'}],
        sort_order=2,
    )


@pytest.fixture
def recipe(flavor):
    """One-loaf recipe for Country Sourdough with 500 g flour"""
    return Recipe.objects.create(
        flavor=flavor,
        name='Country Sourdough',
        base_ingredients=[
            {'name': 'flour', 'quantity': 500, 'unit': 'g'},
            {'name': 'water', 'quantity': 350, 'unit': 'g'},
            {'name': 'salt', 'quantity': 10, 'unit': 'g'},
        ],
        steps=[
            {'order': 1, 'instruction': 'Mix and autolyse', 'duration_minutes': 30},
            {'order': 2, 'instruction': 'Bulk ferment overnight'},
        ],
    )


# ============================================================================
# BAKE SLOT FIXTURES
# ============================================================================

@pytest.fixture
def location(db):
    return Location.objects.create(name='Farmstand', address='12 Orchard Rd')


@pytest.fixture
def make_bake_slot(location):
    """
    Factory for bake slots.

    Usage:
        slot = make_bake_slot(total_capacity=10, current_orders=8)
    """
    def _make(days_ahead=3, total_capacity=10, current_orders=0, cutoff_at=None, **kwargs):
        now = timezone.now()
        slot_location = kwargs.pop('location', location)
        return BakeSlot.objects.create(
            date=timezone.localdate(now) + timedelta(days=days_ahead),
            location=slot_location,
            total_capacity=total_capacity,
            current_orders=current_orders,
            cutoff_at=cutoff_at or now + timedelta(days=max(days_ahead - 1, 0), hours=1),
            **kwargs,
        )
    return _make


@pytest.fixture
def bake_slot(make_bake_slot):
    """Open slot three days out with room for 10 loaves"""
    return make_bake_slot()


# ============================================================================
# CUSTOMER & ORDER FIXTURES
# ============================================================================

@pytest.fixture
def customer_data():
    return {
        'first_name': 'Ada',
        'last_name': 'Baker',
        'email': 'ada@example.com',
        'phone': '(555) 123-4567',
        'notification_pref': Customer.NotificationPreference.EMAIL,
    }


@pytest.fixture
def make_order(bake_slot, flavor, customer_data):
    """
    Factory that submits orders through OrderService.

    Usage:
        order = make_order(quantity=3)
        order = make_order(slot=other_slot, items=[...])
    """
    def _make(quantity=2, slot=None, items=None, customer=None):
        return OrderService.submit(
            (slot or bake_slot).pk,
            items or [{'flavor_id': flavor.pk, 'size': 'regular', 'quantity': quantity}],
            customer or customer_data,
        )
    return _make


@pytest.fixture
def order(make_order):
    """A submitted order for 2 regular Country Sourdough loaves"""
    return make_order()


# ============================================================================
# PREP SHEET FIXTURES
# ============================================================================

@pytest.fixture
def draft_sheet(bake_slot):
    """Draft prep sheet for the default slot's bake date"""
    return PrepSheetService.create(bake_slot.date)
