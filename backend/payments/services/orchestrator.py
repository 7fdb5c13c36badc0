from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from bookings.models import Booking, BookingStatus
from bookings.pricing import to_cents
from bookings.services import lifecycle
from bookings.services.notifications import Notifier, get_notifier
from bookings.services.store import get_booking
from core.exceptions import Conflict, InternalError, PaymentRejected
from payments.models import Payment, PaymentType
from payments.reference import PaymentReference
from payments.services.gateway import (
    GatewayRejected,
    GatewayUnavailable,
    IdempotencyConflict,
    get_payment_gateway,
)

logger = logging.getLogger(__name__)

_BOOKING_FIELDS = {
    PaymentType.DEPOSIT: ("deposit_attempts", "deposit_payment_id"),
    PaymentType.FINAL: ("final_attempts", "final_payment_id"),
}


def idempotency_key_for(booking_id: int, payment_type: str, attempt: int) -> str:
    """Same booking, payment type and attempt always give the same key."""
    return hashlib.sha256(f"{booking_id}:{payment_type}:{attempt}".encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class PaymentResult:
    payment_id: str
    status: str
    amount: Decimal

    def as_dict(self):
        return {"paymentId": self.payment_id, "status": self.status, "amount": self.amount}


class PaymentOrchestrator:
    """Requests deposit and final payments from the gateway for a booking."""

    def __init__(self, *, gateway, notifier: Notifier, currency: str = "usd"):
        self.gateway = gateway
        self.notifier = notifier
        self.currency = currency

    def create_deposit_payment(self, booking_id, source_token: str) -> PaymentResult:
        booking = get_booking(booking_id)
        if booking.deposit_paid:
            raise Conflict("Deposit already paid")
        if booking.status == BookingStatus.CANCELLED:
            raise Conflict("Booking is cancelled")
        return self._charge(booking, PaymentType.DEPOSIT, booking.deposit_amount, source_token)

    def create_final_payment(self, booking_id, source_token: str) -> PaymentResult:
        booking = get_booking(booking_id)
        if not booking.deposit_paid:
            raise Conflict("Deposit must be paid first")
        if booking.status in Booking.TERMINAL_STATUSES:
            raise Conflict(f"Booking is already {booking.status}")
        return self._charge(booking, PaymentType.FINAL, booking.remaining_amount, source_token)

    def _charge(self, booking: Booking, payment_type: str, amount: Decimal, source_token: str) -> PaymentResult:
        amount = to_cents(amount)
        amount_cents = int(amount * 100)
        if amount_cents <= 0:
            raise Conflict("No balance due")

        attempt_field, payment_id_field = _BOOKING_FIELDS[payment_type]
        attempt = getattr(booking, attempt_field)
        reference = PaymentReference(booking.pk, payment_type)
        label = "Deposit" if payment_type == PaymentType.DEPOSIT else "Final payment"

        payment = None
        for _ in range(2):
            idempotency_key = idempotency_key_for(booking.pk, payment_type, attempt)
            try:
                payment = self.gateway.create_payment(
                    source_token=source_token,
                    amount_cents=amount_cents,
                    currency=self.currency,
                    idempotency_key=idempotency_key,
                    reference=reference,
                    buyer_email=booking.customer_email,
                    note=f"{label} for booking #{booking.pk}",
                )
                break
            except IdempotencyConflict:
                # A still-pending attempt used another source; retry once on a fresh key.
                logger.info("%s for booking %s changed source on attempt %s", label, booking.pk, attempt)
                attempt = self._start_next_attempt(booking, attempt_field, attempt)
            except GatewayRejected as exc:
                logger.warning("%s for booking %s rejected: %s", label, booking.pk, exc)
                self._start_next_attempt(booking, attempt_field, attempt)
                raise PaymentRejected(exc.details) from exc
            except GatewayUnavailable as exc:
                raise InternalError("Failed to create payment") from exc
        if payment is None:
            raise InternalError("Failed to create payment")

        # Store the id before settlement is known so the webhook can match it.
        Booking.objects.filter(pk=booking.pk).update(
            **{payment_id_field: payment.id, "updated_at": timezone.now()}
        )
        Payment.objects.update_or_create(
            gateway_payment_id=payment.id,
            defaults={
                "booking": booking,
                "payment_type": payment_type,
                "amount_cents": amount_cents,
                "currency": self.currency,
                "idempotency_key": idempotency_key,
                "status": payment.status,
            },
        )
        logger.info(
            "%s %s for booking %s: %s (%s cents)",
            label,
            payment.id,
            booking.pk,
            payment.status,
            amount_cents,
        )

        if payment.status in (Payment.FAILED, Payment.CANCELED):
            self._start_next_attempt(booking, attempt_field, attempt)
        elif payment.is_completed:
            if payment_type == PaymentType.DEPOSIT:
                lifecycle.confirm(booking, notifier=self.notifier)
            else:
                lifecycle.complete(booking, notifier=self.notifier)

        return PaymentResult(payment_id=payment.id, status=payment.status, amount=amount)

    def _start_next_attempt(self, booking: Booking, attempt_field: str, attempt: int) -> int:
        # Conditional on the attempt we used, so concurrent failures bump once.
        Booking.objects.filter(pk=booking.pk, **{attempt_field: attempt}).update(
            **{attempt_field: F(attempt_field) + 1}
        )
        return Booking.objects.values_list(attempt_field, flat=True).get(pk=booking.pk)


def get_payment_orchestrator() -> PaymentOrchestrator:
    return PaymentOrchestrator(
        gateway=get_payment_gateway(),
        notifier=get_notifier(),
        currency=getattr(settings, "PAYMENT_CURRENCY", "usd"),
    )
