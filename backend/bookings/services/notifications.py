from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    QUOTE_REQUEST = "quote_request"
    NEW_BOOKING = "new_booking"
    DEPOSIT_PAID = "deposit_paid"
    PAYMENT_COMPLETED = "payment_completed"


@dataclass(frozen=True)
class OutgoingEmail:
    recipients: List[str]
    subject: str
    body: str


def booking_payload(booking, addons=None) -> Dict[str, Any]:
    """Flatten a booking into the payload every booking notification receives."""
    if addons is None:
        addons = [
            {"id": row.addon_id, "name": row.addon.name, "price": row.price_charged}
            for row in booking.booking_addons.select_related("addon")
        ]
    return {
        "bookingId": booking.id,
        "customerName": booking.customer_name,
        "customerEmail": booking.customer_email,
        "customerPhone": booking.customer_phone,
        "vehicleType": booking.vehicle_type,
        "serviceName": booking.selection_name,
        "bookingDate": str(booking.booking_date),
        "bookingTime": booking.booking_time,
        "totalAmount": booking.total_amount,
        "depositAmount": booking.deposit_amount,
        "status": booking.status,
        "addons": addons,
    }


def _format_from_email(business_name: str) -> str:
    default_from = settings.DEFAULT_FROM_EMAIL
    email_addr = default_from
    if '<' in default_from and default_from.endswith('>'):
        email_addr = default_from.split('<', 1)[1].rstrip('>')
    return f"{business_name} <{email_addr}>"


class Notifier:
    """
    Best-effort email notifications for booking events.

    ``notify`` never raises: a failed delivery is logged and dropped so the
    booking or payment operation that triggered it still succeeds.
    """

    def __init__(
        self,
        *,
        owner_email: str,
        business_name: str,
        business_phone: str = "",
        enabled: bool = True,
    ):
        self.owner_email = owner_email
        self.business_name = business_name
        self.business_phone = business_phone
        self.enabled = enabled

    def notify(self, kind: NotificationKind, payload: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        try:
            kind = NotificationKind(kind)
            messages = _RENDERERS[kind](self, payload)
            from_email = _format_from_email(self.business_name)
            for message in messages:
                if not message.recipients:
                    continue
                send_mail(
                    message.subject,
                    message.body,
                    from_email,
                    message.recipients,
                    fail_silently=False,
                )
            logger.info("Sent %s notification (%d message(s))", kind.value, len(messages))
        except Exception:
            logger.exception("Failed to send %s notification", getattr(kind, "value", kind))

    def _customer(self, payload) -> List[str]:
        email = payload.get("customerEmail")
        return [email] if email else []

    def _signature(self) -> List[str]:
        lines = ["", "Best regards,", self.business_name]
        if self.business_phone:
            lines.append(self.business_phone)
        return lines


def _render_quote_request(notifier: Notifier, payload) -> List[OutgoingEmail]:
    owner = OutgoingEmail(
        recipients=[notifier.owner_email],
        subject=f"New Quote Request from {payload.get('customerName')}",
        body="\n".join([
            "New quote request received:",
            "",
            f"Customer: {payload.get('customerName')}",
            f"Email: {payload.get('customerEmail')}",
            f"Phone: {payload.get('customerPhone')}",
            f"Vehicle: {payload.get('vehicleType')}",
            f"Service Level: {payload.get('serviceLevel')}",
            f"Estimated Price: ${payload.get('estimatedPrice')}",
            f"Message: {payload.get('message') or 'N/A'}",
        ]),
    )
    customer = OutgoingEmail(
        recipients=notifier._customer(payload),
        subject=f"Quote Request Received - {notifier.business_name}",
        body="\n".join([
            f"Hi {payload.get('customerName')},",
            "",
            f"Thank you for requesting a quote from {notifier.business_name}!",
            "We've received your request and will get back to you shortly.",
            "",
            f"Estimated price for your {payload.get('vehicleType')}: ${payload.get('estimatedPrice')}",
            *notifier._signature(),
        ]),
    )
    return [owner, customer]


def _render_new_booking(notifier: Notifier, payload) -> List[OutgoingEmail]:
    booking_id = payload.get("bookingId")
    details = [
        f"Booking ID: #{booking_id}",
        f"Service: {payload.get('serviceName')}",
        f"Vehicle: {payload.get('vehicleType')}",
        f"Date: {payload.get('bookingDate')}",
        f"Time: {payload.get('bookingTime')}",
        f"Total: ${payload.get('totalAmount')}",
        f"Deposit: ${payload.get('depositAmount')}",
    ]
    owner = OutgoingEmail(
        recipients=[notifier.owner_email],
        subject=f"New Booking #{booking_id} from {payload.get('customerName')}",
        body="\n".join([
            "New booking received:",
            "",
            f"Customer: {payload.get('customerName')}",
            f"Email: {payload.get('customerEmail')}",
            f"Phone: {payload.get('customerPhone')}",
            *details,
        ]),
    )
    customer = OutgoingEmail(
        recipients=notifier._customer(payload),
        subject=f"Booking Received #{booking_id} - {notifier.business_name}",
        body="\n".join([
            f"Hi {payload.get('customerName')},",
            "",
            "We've received your booking. It is confirmed once the deposit is paid.",
            "",
            *details,
            *notifier._signature(),
        ]),
    )
    return [owner, customer]


def _render_deposit_paid(notifier: Notifier, payload) -> List[OutgoingEmail]:
    booking_id = payload.get("bookingId")
    owner = OutgoingEmail(
        recipients=[notifier.owner_email],
        subject=f"Deposit Paid - Booking #{booking_id}",
        body="\n".join([
            f"Deposit payment confirmed for booking #{booking_id}",
            "",
            f"Customer: {payload.get('customerName')}",
            f"Amount Paid: ${payload.get('depositAmount')}",
            f"Date: {payload.get('bookingDate')}",
            f"Time: {payload.get('bookingTime')}",
        ]),
    )
    customer = OutgoingEmail(
        recipients=notifier._customer(payload),
        subject=f"Booking Confirmed #{booking_id} - {notifier.business_name}",
        body="\n".join([
            f"Hi {payload.get('customerName')},",
            "",
            f"We received your ${payload.get('depositAmount')} deposit and your booking is confirmed.",
            f"See you on {payload.get('bookingDate')} at {payload.get('bookingTime')}.",
            *notifier._signature(),
        ]),
    )
    return [owner, customer]


def _render_payment_completed(notifier: Notifier, payload) -> List[OutgoingEmail]:
    booking_id = payload.get("bookingId")
    owner = OutgoingEmail(
        recipients=[notifier.owner_email],
        subject=f"Payment Completed - Booking #{booking_id}",
        body="\n".join([
            f"Full payment received for booking #{booking_id}",
            "",
            f"Customer: {payload.get('customerName')}",
            f"Total Amount: ${payload.get('totalAmount')}",
            f"Date: {payload.get('bookingDate')}",
        ]),
    )
    customer = OutgoingEmail(
        recipients=notifier._customer(payload),
        subject=f"Thank you! Booking #{booking_id} is paid in full",
        body="\n".join([
            f"Hi {payload.get('customerName')},",
            "",
            f"Your payment is complete. Total paid: ${payload.get('totalAmount')}.",
            f"Thank you for choosing {notifier.business_name}!",
            *notifier._signature(),
        ]),
    )
    return [owner, customer]


_RENDERERS: Dict[NotificationKind, Callable[[Notifier, Mapping[str, Any]], List[OutgoingEmail]]] = {
    NotificationKind.QUOTE_REQUEST: _render_quote_request,
    NotificationKind.NEW_BOOKING: _render_new_booking,
    NotificationKind.DEPOSIT_PAID: _render_deposit_paid,
    NotificationKind.PAYMENT_COMPLETED: _render_payment_completed,
}

_missing = set(NotificationKind) - set(_RENDERERS)
if _missing:
    raise ImproperlyConfigured(f"No notification renderer for: {sorted(k.value for k in _missing)}")


def get_notifier() -> Notifier:
    return Notifier(
        owner_email=settings.NOTIFICATION_EMAIL_TO,
        business_name=settings.BUSINESS_NAME,
        business_phone=getattr(settings, "BUSINESS_PHONE", ""),
        enabled=getattr(settings, "NOTIFICATIONS_ENABLED", True),
    )
