"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
import pytest


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "concurrency: mark test as a concurrent access test (needs row locking)"
    )
    config.addinivalue_line(
        "markers", "business_logic: mark test as business logic test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (API + DB)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow (>5 seconds)"
    )
    config.addinivalue_line(
        "markers", "postgres: mark test as needing PostgreSQL (skipped on SQLite)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip PostgreSQL-only tests when the default database is SQLite"""
    from django.conf import settings

    if "sqlite" not in settings.DATABASES["default"]["ENGINE"]:
        return
    skip_postgres = pytest.mark.skip(reason="needs row locking across connections; set POSTGRES_DB to run")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_postgres)


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """
    Provide DRF API client for API tests.

    Usage:
        def test_my_api(api_client):
            response = api_client.get('/api/bake-slots/available/')
            assert response.status_code == 200
    """
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def staff_client(api_client, staff_user):
    """
    Provide an API client logged in as a staff user.

    Usage:
        def test_protected_endpoint(staff_client):
            response = staff_client.get('/api/orders/')
            assert response.status_code == 200
    """
    api_client.force_authenticate(user=staff_user)
    return api_client


# ============================================================================
# IMPORT ALL FIXTURES FROM core_backend/tests/fixtures.py
# ============================================================================
from core_backend.tests.fixtures import *
