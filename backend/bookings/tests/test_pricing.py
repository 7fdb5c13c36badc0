from decimal import Decimal

import pytest

from bookings import pricing
from bookings.pricing import Selection
from catalog.models import Addon, Package, Service, Setting
from core.exceptions import InvalidInput, NotFound


@pytest.fixture
def addons(db):
    pet_hair = Addon.objects.create(
        name="Pet Hair Removal",
        slug="pet-hair-removal",
        sedan_price=Decimal("15.00"),
        suv_price=Decimal("20.00"),
        commercial_price=Decimal("30.00"),
        sort_order=1,
    )
    headlights = Addon.objects.create(
        name="Headlight Restoration",
        slug="headlight-restoration",
        sedan_price=Decimal("40.00"),
        suv_price=Decimal("45.00"),
        commercial_price=Decimal("55.00"),
        sort_order=2,
    )
    retired = Addon.objects.create(
        name="Clay Bar",
        slug="clay-bar",
        sedan_price=Decimal("25.00"),
        suv_price=Decimal("25.00"),
        commercial_price=Decimal("25.00"),
        is_active=False,
    )
    return pet_hair, headlights, retired


@pytest.mark.django_db
@pytest.mark.parametrize("level", sorted(pricing.SERVICE_LEVEL_PRICES))
@pytest.mark.parametrize("vehicle_type", ["sedan", "suv", "commercial"])
def test_service_level_prices_without_addons(level, vehicle_type):
    service = Service.objects.get(slug=level)

    quote = pricing.quote(vehicle_type, Selection(service_id=service.id), [])

    assert quote.total == pricing.SERVICE_LEVEL_PRICES[level][vehicle_type]
    assert quote.addon_total == Decimal("0")


@pytest.mark.django_db
def test_vehicle_type_is_case_insensitive():
    service = Service.objects.get(slug="interior")

    quote = pricing.quote(" SUV ", Selection(service_id=service.id))

    assert quote.vehicle_type == "suv"
    assert quote.base_price == Decimal("160")


@pytest.mark.django_db
@pytest.mark.parametrize("vehicle_type", ["truck", "", None, "motorbike"])
def test_invalid_vehicle_type_rejected(vehicle_type):
    service = Service.objects.get(slug="exterior")

    with pytest.raises(InvalidInput):
        pricing.quote(vehicle_type, Selection(service_id=service.id))


def test_commercial_reads_truck_price_for_services_and_commercial_price_for_addons():
    assert pricing.vehicle_price_field("commercial", pricing.SERVICE_CATALOG) == "truck_price"
    assert pricing.vehicle_price_field("commercial", pricing.ADDON_CATALOG) == "commercial_price"
    assert pricing.vehicle_price_field("suv", pricing.SERVICE_CATALOG) == "suv_price"
    assert pricing.vehicle_price_field("sedan", pricing.ADDON_CATALOG) == "sedan_price"


@pytest.mark.django_db
def test_missing_or_inactive_service_is_not_found():
    inactive = Service.objects.create(
        name="Retired",
        slug="retired",
        sedan_price=Decimal("1"),
        suv_price=Decimal("1"),
        truck_price=Decimal("1"),
        is_active=False,
    )

    with pytest.raises(NotFound):
        pricing.quote("sedan", Selection(service_id=inactive.id))
    with pytest.raises(NotFound):
        pricing.quote("sedan", Selection(service_id=999999))
    with pytest.raises(NotFound):
        pricing.quote("sedan", Selection(package_id=999999))


@pytest.mark.django_db
def test_selection_required():
    with pytest.raises(InvalidInput):
        pricing.quote("sedan", Selection())


@pytest.mark.django_db
def test_service_preferred_over_package():
    service = Service.objects.get(slug="exterior")
    package = Package.objects.create(name="Legacy", base_price=Decimal("999"))

    quote = pricing.quote("sedan", Selection(service_id=service.id, package_id=package.id))

    assert quote.service == service
    assert quote.package is None
    assert quote.total == Decimal("50")


@pytest.mark.django_db
def test_package_price_uses_vehicle_multiplier():
    package = Package.objects.create(
        name="Full Detail",
        base_price=Decimal("150.00"),
        vehicle_multipliers={"suv": 1.25, "commercial": 1.5},
    )

    assert pricing.quote("suv", Selection(package_id=package.id)).total == Decimal("187.5")
    assert pricing.quote("commercial", Selection(package_id=package.id)).total == Decimal("225")
    # No multiplier for sedan: base price applies.
    assert pricing.quote("sedan", Selection(package_id=package.id)).total == Decimal("150")


@pytest.mark.django_db
@pytest.mark.parametrize("multiplier", [0, -2, "0", "abc"])
def test_unusable_package_multiplier_falls_back_to_base_price(multiplier):
    package = Package.objects.create(
        name="Full Detail",
        base_price=Decimal("150.00"),
        vehicle_multipliers={"suv": multiplier},
    )

    assert pricing.quote("suv", Selection(package_id=package.id)).total == Decimal("150")


@pytest.mark.django_db
def test_addons_priced_per_vehicle_and_inactive_or_unknown_skipped(addons):
    pet_hair, headlights, retired = addons
    service = Service.objects.get(slug="interior")

    quote = pricing.quote(
        "suv",
        Selection(service_id=service.id),
        [pet_hair.id, headlights.id, retired.id, 987654, pet_hair.id],
    )

    assert [line.addon.slug for line in quote.addon_breakdown] == [
        "pet-hair-removal",
        "headlight-restoration",
    ]
    assert quote.addon_total == Decimal("65.00")
    assert quote.total == Decimal("225.00")
    payload = quote.as_dict()
    assert payload["total"] == Decimal("225.00")
    assert payload["addons"][0] == {
        "id": pet_hair.id,
        "name": "Pet Hair Removal",
        "slug": "pet-hair-removal",
        "price": Decimal("20.00"),
    }


@pytest.mark.django_db
def test_full_precision_kept_until_boundary():
    package = Package.objects.create(
        name="Odd",
        base_price=Decimal("99.99"),
        vehicle_multipliers={"sedan": 1.333},
    )

    quote = pricing.quote("sedan", Selection(package_id=package.id))

    assert quote.total == Decimal("99.99") * Decimal("1.333")
    assert quote.as_dict()["total"] == Decimal("133.29")


@pytest.mark.django_db
def test_deposit_percentage_defaults_to_quarter(settings):
    settings.DEFAULT_DEPOSIT_PERCENTAGE = None

    percentage = pricing.get_deposit_percentage()

    assert percentage == Decimal("0.25")
    assert pricing.deposit_for(Decimal("180"), percentage) == Decimal("45.00")
    assert pricing.deposit_for(Decimal("133.29"), percentage) == Decimal("33.32")


@pytest.mark.django_db
def test_deposit_percentage_prefers_stored_setting(settings):
    settings.DEFAULT_DEPOSIT_PERCENTAGE = "0.30"
    assert pricing.get_deposit_percentage() == Decimal("0.30")

    Setting.objects.create(key=Setting.DEPOSIT_PERCENTAGE, value="0.5")
    assert pricing.get_deposit_percentage() == Decimal("0.5")


@pytest.mark.django_db
def test_out_of_range_deposit_setting_ignored(settings):
    settings.DEFAULT_DEPOSIT_PERCENTAGE = "0.25"
    Setting.objects.create(key=Setting.DEPOSIT_PERCENTAGE, value="25")

    assert pricing.get_deposit_percentage() == Decimal("0.25")


def test_estimate_service_level_falls_back_to_exterior_sedan():
    assert pricing.estimate_service_level("Deep-Interior", "commercial") == Decimal("280")
    assert pricing.estimate_service_level(None, "suv") == Decimal("60")
    assert pricing.estimate_service_level("ceramic", "suv") == Decimal("50")


@pytest.mark.django_db
def test_calculate_addons(addons):
    pet_hair, headlights, _ = addons

    assert pricing.calculate_addons("", []) == {"total": Decimal("0.00"), "addons": []}

    result = pricing.calculate_addons("Commercial", [pet_hair.id, headlights.id])
    assert result["total"] == Decimal("85.00")
    assert result["vehicleType"] == "commercial"
    assert [addon["price"] for addon in result["addons"]] == [Decimal("30.00"), Decimal("55.00")]

    with pytest.raises(InvalidInput):
        pricing.calculate_addons("boat", [pet_hair.id])
