from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import stripe
from django.conf import settings

from bookings.models import Booking
from bookings.services import lifecycle
from bookings.services.notifications import Notifier, get_notifier
from core.exceptions import InternalError, InvalidInput, Unauthorized
from payments.models import Payment, PaymentType
from payments.reference import PaymentReference
from payments.services.gateway import normalize_status

logger = logging.getLogger(__name__)

PAYMENT_COMPLETED_EVENTS = frozenset({"payment.completed", "payment_intent.succeeded"})


def compute_signature(body: bytes, *, notification_url: str, signature_key: str) -> str:
    """Base64 HMAC-SHA256 of the notification URL followed by the raw body."""
    digest = hmac.new(
        signature_key.encode("utf-8"),
        notification_url.encode("utf-8") + body,
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    applied: bool = False
    reason: str = ""


class WebhookReconciler:
    """
    Applies signed payment events from the gateway to bookings.

    Only signature failures and malformed bodies raise; every other event,
    including ones for unknown bookings or unrecognised references, is
    acknowledged so the gateway stops redelivering it. Replays are harmless
    because ``lifecycle.confirm``/``complete`` only act once.
    """

    def __init__(
        self,
        *,
        signature_key: str,
        notification_url: str,
        notifier: Notifier,
        stripe_webhook_secret: str = "",
    ):
        self.signature_key = signature_key
        self.stripe_webhook_secret = stripe_webhook_secret
        self.notification_url = notification_url
        self.notifier = notifier

    def verify(self, body: bytes, signature: Optional[str]) -> None:
        if not self.signature_key:
            logger.error("Payment webhook signature key not configured.")
            raise InternalError("Webhook signature key not configured.")
        expected = compute_signature(
            body,
            notification_url=self.notification_url,
            signature_key=self.signature_key,
        )
        if not signature or not hmac.compare_digest(expected, signature):
            logger.warning("Invalid payment webhook signature.")
            raise Unauthorized()

    def verify_stripe(self, body: bytes, stripe_signature: str) -> None:
        if not self.stripe_webhook_secret:
            logger.error("Stripe webhook secret not configured.")
            raise InternalError("Stripe webhook secret not configured.")
        try:
            stripe.Webhook.construct_event(body, stripe_signature, self.stripe_webhook_secret)
        except ValueError as exc:
            logger.warning("Invalid payload received on Stripe webhook.")
            raise InvalidInput("Malformed webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            logger.warning("Invalid Stripe signature.")
            raise Unauthorized() from exc

    def handle(
        self,
        body: bytes,
        signature: Optional[str],
        stripe_signature: Optional[str] = None,
    ) -> WebhookOutcome:
        if stripe_signature:
            self.verify_stripe(body, stripe_signature)
        else:
            self.verify(body, signature)
        event = self._parse(body)
        event_type = event["type"]

        if event_type not in PAYMENT_COMPLETED_EVENTS:
            logger.debug("Ignoring payment webhook event %s", event_type)
            return WebhookOutcome(event_type, reason="ignored event type")

        payment = self._payment_from_event(event)
        status = payment.get("status")
        if status and normalize_status(status) != Payment.COMPLETED:
            logger.info("Ignoring %s for payment %s with status %s", event_type, payment.get("id"), status)
            return WebhookOutcome(event_type, reason="payment not completed")

        reference = PaymentReference.from_payment(payment)
        if reference is None:
            logger.warning(
                "Payment %s has no recognisable booking reference (metadata=%r, reference_id=%r)",
                payment.get("id"),
                payment.get("metadata"),
                payment.get("reference_id"),
            )
            return WebhookOutcome(event_type, reason="unrecognised reference")

        return self._apply(event_type, reference, payment)

    def _parse(self, body: bytes) -> Mapping[str, Any]:
        try:
            event = json.loads(body)
        except (TypeError, ValueError, UnicodeDecodeError) as exc:
            logger.warning("Invalid payload received on payment webhook.")
            raise InvalidInput("Malformed webhook payload") from exc
        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise InvalidInput("Malformed webhook payload")
        return event

    def _payment_from_event(self, event: Mapping[str, Any]) -> Mapping[str, Any]:
        data = event.get("data")
        data_object = data.get("object") if isinstance(data, Mapping) else None
        if not isinstance(data_object, Mapping):
            raise InvalidInput("Malformed webhook payload")
        payment = data_object.get("payment", data_object)
        if not isinstance(payment, Mapping):
            raise InvalidInput("Malformed webhook payload")
        return payment

    def _apply(self, event_type: str, reference: PaymentReference, payment: Mapping[str, Any]) -> WebhookOutcome:
        booking = Booking.objects.filter(pk=reference.booking_id).first()
        if booking is None:
            logger.warning("Payment webhook references unknown booking %s", reference.booking_id)
            return WebhookOutcome(event_type, reason="unknown booking")

        payment_id = payment.get("id")
        if payment_id:
            self._record_payment_id(booking, reference.payment_type, str(payment_id))

        if reference.payment_type == PaymentType.DEPOSIT:
            transition = lifecycle.confirm(booking, notifier=self.notifier)
        else:
            transition = lifecycle.complete(booking, notifier=self.notifier)

        return WebhookOutcome(
            event_type,
            applied=transition.changed,
            reason="" if transition.changed else "already applied",
        )

    def _record_payment_id(self, booking: Booking, payment_type: str, payment_id: str) -> None:
        field = "deposit_payment_id" if payment_type == PaymentType.DEPOSIT else "final_payment_id"
        recorded = getattr(booking, field)
        if recorded is None:
            Booking.objects.filter(pk=booking.pk, **{f"{field}__isnull": True}).update(**{field: payment_id})
        elif recorded != payment_id:
            logger.warning(
                "Booking %s %s recorded as %s but webhook reports %s",
                booking.pk,
                field,
                recorded,
                payment_id,
            )
        Payment.objects.filter(gateway_payment_id=payment_id).exclude(status=Payment.COMPLETED).update(
            status=Payment.COMPLETED
        )


def get_webhook_reconciler() -> WebhookReconciler:
    return WebhookReconciler(
        signature_key=settings.PAYMENT_WEBHOOK_SIGNATURE_KEY,
        notification_url=settings.PAYMENT_WEBHOOK_URL,
        notifier=get_notifier(),
        stripe_webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
    )
