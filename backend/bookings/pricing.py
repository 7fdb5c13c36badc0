from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings

from bookings.models import VehicleType
from catalog.models import Addon, Package, Service, Setting
from core.exceptions import InvalidInput, NotFound

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
FALLBACK_DEPOSIT_PERCENTAGE = Decimal("0.25")

SERVICE_LEVEL_PRICES: Dict[str, Dict[str, Decimal]] = {
    "exterior": {"sedan": Decimal("50"), "suv": Decimal("60"), "commercial": Decimal("80")},
    "interior": {"sedan": Decimal("120"), "suv": Decimal("160"), "commercial": Decimal("200")},
    "deep-interior": {"sedan": Decimal("200"), "suv": Decimal("240"), "commercial": Decimal("280")},
    "package-deal": {"sedan": Decimal("150"), "suv": Decimal("200"), "commercial": Decimal("250")},
    "disaster": {"sedan": Decimal("230"), "suv": Decimal("270"), "commercial": Decimal("310")},
}

SERVICE_CATALOG = "service"
ADDON_CATALOG = "addon"

_PRICE_FIELDS = {
    SERVICE_CATALOG: {
        VehicleType.SEDAN: "sedan_price",
        VehicleType.SUV: "suv_price",
        VehicleType.COMMERCIAL: "truck_price",
    },
    ADDON_CATALOG: {
        VehicleType.SEDAN: "sedan_price",
        VehicleType.SUV: "suv_price",
        VehicleType.COMMERCIAL: "commercial_price",
    },
}


def vehicle_price_field(vehicle_type: str, catalog: str) -> str:
    """
    Return the price column holding ``vehicle_type``'s price in ``catalog``.

    Services store the commercial price in ``truck_price`` while add-ons store
    it in ``commercial_price``. Both mean "commercial vehicle"; historical
    prices were recorded against these exact columns.
    """
    return _PRICE_FIELDS[catalog][VehicleType(vehicle_type)]


def normalize_vehicle_type(value: Any) -> str:
    normalized = str(value or "").strip().lower()
    if normalized not in VehicleType.values:
        raise InvalidInput("Invalid vehicle type")
    return normalized


def to_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Selection:
    """Either a service (preferred) or a legacy package."""

    service_id: Optional[int] = None
    package_id: Optional[int] = None


@dataclass(frozen=True)
class AddonLine:
    addon: Addon
    price: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.addon.id,
            "name": self.addon.name,
            "slug": self.addon.slug,
            "price": to_cents(self.price),
        }


@dataclass(frozen=True)
class Quote:
    vehicle_type: str
    base_price: Decimal
    service: Optional[Service] = None
    package: Optional[Package] = None
    addon_breakdown: List[AddonLine] = field(default_factory=list)

    @property
    def addon_total(self) -> Decimal:
        return sum((line.price for line in self.addon_breakdown), Decimal("0"))

    @property
    def total(self) -> Decimal:
        return self.base_price + self.addon_total

    @property
    def selection_name(self) -> str:
        item = self.service or self.package
        return item.name if item else ""

    def as_dict(self) -> Dict[str, Any]:
        return {
            "vehicleType": self.vehicle_type,
            "basePrice": to_cents(self.base_price),
            "addons": [line.as_dict() for line in self.addon_breakdown],
            "addonTotal": to_cents(self.addon_total),
            "total": to_cents(self.total),
        }


def resolve_base_price(vehicle_type: str, selection: Selection):
    """Return ``(service, package, base_price)`` for the selection."""
    if selection.service_id:
        service = Service.objects.filter(pk=selection.service_id, is_active=True).first()
        if service is None:
            raise NotFound("Service not found")
        price = getattr(service, vehicle_price_field(vehicle_type, SERVICE_CATALOG))
        return service, None, Decimal(price)

    if selection.package_id:
        package = Package.objects.filter(pk=selection.package_id, is_active=True).first()
        if package is None:
            raise NotFound("Package not found")
        multipliers = package.vehicle_multipliers or {}
        multiplier = _to_decimal(multipliers.get(vehicle_type))
        if multiplier is None or multiplier <= 0:
            multiplier = Decimal("1")
        return None, package, Decimal(package.base_price) * multiplier

    raise InvalidInput("Service or package ID required")


def price_addons(vehicle_type: str, addon_ids: Iterable[int] | None) -> List[AddonLine]:
    """
    Price the requested add-ons for ``vehicle_type``.

    Ids that do not match an active add-on are left out of the result instead
    of failing the request: the catalog may retire an add-on while a customer
    still has it selected, and the booking proceeds without it.
    """
    requested = list(dict.fromkeys(addon_ids or []))
    if not requested:
        return []

    price_field = vehicle_price_field(vehicle_type, ADDON_CATALOG)
    addons = Addon.objects.filter(pk__in=requested, is_active=True)
    lines = [AddonLine(addon=addon, price=Decimal(getattr(addon, price_field))) for addon in addons]

    skipped = len(requested) - len(lines)
    if skipped:
        logger.info("Ignored %d unknown or inactive add-on(s) in %s", skipped, requested)
    return lines


def quote(vehicle_type: Any, selection: Selection, addon_ids: Iterable[int] | None = None) -> Quote:
    normalized = normalize_vehicle_type(vehicle_type)
    service, package, base_price = resolve_base_price(normalized, selection)
    return Quote(
        vehicle_type=normalized,
        base_price=base_price,
        service=service,
        package=package,
        addon_breakdown=price_addons(normalized, addon_ids),
    )


def get_deposit_percentage() -> Decimal:
    """Deposit fraction from the settings table, then configuration, then 25%."""
    stored = (
        Setting.objects.filter(key=Setting.DEPOSIT_PERCENTAGE)
        .values_list("value", flat=True)
        .first()
    )
    for candidate in (stored, getattr(settings, "DEFAULT_DEPOSIT_PERCENTAGE", None)):
        percentage = _to_decimal(candidate)
        if percentage is None:
            continue
        if Decimal("0") <= percentage <= Decimal("1"):
            return percentage
        logger.warning("Ignoring out-of-range deposit percentage %r", candidate)
    return FALLBACK_DEPOSIT_PERCENTAGE


def deposit_for(total: Decimal, percentage: Decimal) -> Decimal:
    return to_cents(to_cents(total) * percentage)


def estimate_service_level(service_level: Optional[str], vehicle_type: str) -> Decimal:
    level = (service_level or "exterior").strip().lower()
    prices = SERVICE_LEVEL_PRICES.get(level)
    if prices is None:
        return SERVICE_LEVEL_PRICES["exterior"]["sedan"]
    return prices.get(vehicle_type, SERVICE_LEVEL_PRICES["exterior"]["sedan"])


def calculate_addons(vehicle_type: Any, addon_ids: Iterable[int] | None) -> Dict[str, Any]:
    """Add-on subtotal for the price calculator."""
    requested = list(addon_ids or [])
    if not requested:
        return {"total": Decimal("0.00"), "addons": []}

    normalized = normalize_vehicle_type(vehicle_type)
    lines = price_addons(normalized, requested)
    return {
        "total": to_cents(sum((line.price for line in lines), Decimal("0"))),
        "vehicleType": normalized,
        "addons": [line.as_dict() for line in lines],
    }
