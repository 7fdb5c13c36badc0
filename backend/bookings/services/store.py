from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from django.db import transaction

from bookings import pricing
from bookings.models import Booking, BookingAddon, BookingStatus
from bookings.services.notifications import (
    NotificationKind,
    Notifier,
    booking_payload,
    get_notifier,
)
from core.exceptions import NotFound

logger = logging.getLogger(__name__)


def get_booking(booking_id) -> Booking:
    try:
        return Booking.objects.select_related("service", "package").get(pk=booking_id)
    except (Booking.DoesNotExist, ValueError, TypeError):
        raise NotFound("Booking not found")


def create_booking(
    *,
    customer_name: str,
    customer_email: str,
    vehicle_type: str,
    selection: pricing.Selection,
    booking_date,
    booking_time: str,
    address: str,
    customer_phone: str = "",
    notes: str = "",
    addon_ids: Optional[Iterable[int]] = None,
    notifier: Optional[Notifier] = None,
) -> Tuple[Booking, pricing.Quote]:
    """
    Price and persist a booking together with its add-ons.

    Totals are computed once here and stored; later catalog price changes do
    not touch existing bookings. The booking row and its add-on rows are
    written in one transaction.
    """
    quote = pricing.quote(vehicle_type, selection, addon_ids)
    percentage = pricing.get_deposit_percentage()
    total = pricing.to_cents(quote.total)

    with transaction.atomic():
        booking = Booking.objects.create(
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone or "",
            vehicle_type=quote.vehicle_type,
            service=quote.service,
            package=quote.package,
            booking_date=booking_date,
            booking_time=booking_time,
            address=address,
            notes=notes or "",
            total_amount=total,
            deposit_amount=pricing.deposit_for(total, percentage),
            deposit_percentage=percentage,
            status=BookingStatus.PENDING,
        )
        BookingAddon.objects.bulk_create(
            [
                BookingAddon(
                    booking=booking,
                    addon=line.addon,
                    price_charged=pricing.to_cents(line.price),
                )
                for line in quote.addon_breakdown
            ]
        )

    logger.info(
        "Created booking %s: total=%s deposit=%s (%d add-on(s))",
        booking.pk,
        booking.total_amount,
        booking.deposit_amount,
        len(quote.addon_breakdown),
    )

    notifier = notifier or get_notifier()
    notifier.notify(
        NotificationKind.NEW_BOOKING,
        booking_payload(booking, addons=[line.as_dict() for line in quote.addon_breakdown]),
    )
    return booking, quote
