"""
API tests for the flavor catalog.
"""
import pytest
from rest_framework import status

from recipes.models import Flavor


@pytest.mark.django_db
@pytest.mark.integration
class TestFlavorAPI:
    def test_public_catalog_hides_inactive_flavors(self, api_client, flavor, recipe):
        Flavor.objects.create(name="Seasonal Pumpkin", sizes=[{"name": "regular", "price": "13.00"}], is_active=False)

        response = api_client.get("/api/flavors/")

        assert response.status_code == status.HTTP_200_OK
        assert [row["name"] for row in response.data] == ["Country Sourdough"]
        assert response.data[0]["has_recipe"] is True

    def test_staff_see_inactive_flavors(self, staff_client, flavor, second_flavor):
        second_flavor.is_active = False
        second_flavor.save()

        response = staff_client.get("/api/flavors/")

        assert [row["name"] for row in response.data] == ["Country Sourdough", "Cinnamon Raisin"]
        assert response.data[1]["has_recipe"] is False

    def test_catalog_is_read_only(self, staff_client, flavor):
        response = staff_client.delete(f"/api/flavors/{flavor.pk}/")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
