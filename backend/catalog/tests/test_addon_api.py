from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from catalog.models import Addon


@pytest.fixture
def addons(db):
    return [
        Addon.objects.create(
            name="Pet Hair Removal",
            slug="pet-hair-removal",
            sedan_price=Decimal("15.00"),
            suv_price=Decimal("20.00"),
            commercial_price=Decimal("30.00"),
        ),
        Addon.objects.create(
            name="Headlight Restoration",
            slug="headlight-restoration",
            sedan_price=Decimal("40.00"),
            suv_price=Decimal("40.00"),
            commercial_price=Decimal("55.50"),
            is_active=False,
        ),
    ]


@pytest.mark.django_db
def test_calculate_skips_inactive_addons(addons):
    pet_hair, headlights = addons

    response = APIClient().post(
        "/api/addons/calculate/",
        {"addonIds": [pet_hair.id, headlights.id], "vehicleType": "Commercial"},
        format="json",
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 30.0
    assert [item["slug"] for item in data["addons"]] == ["pet-hair-removal"]


@pytest.mark.django_db
def test_calculate_without_addons_is_zero():
    response = APIClient().post("/api/addons/calculate/", {}, format="json")

    assert response.status_code == 200
    assert response.json() == {"total": 0.0, "addons": []}


@pytest.mark.django_db
def test_calculate_requires_vehicle_type(addons):
    response = APIClient().post("/api/addons/calculate/", {"addonIds": [addons[0].id]}, format="json")

    assert response.status_code == 400
    assert response.json() == {"error": "Vehicle type required"}


@pytest.mark.django_db
def test_calculate_rejects_unknown_vehicle_type(addons):
    response = APIClient().post(
        "/api/addons/calculate/",
        {"addonIds": [addons[0].id], "vehicleType": "boat"},
        format="json",
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid vehicle type"}
