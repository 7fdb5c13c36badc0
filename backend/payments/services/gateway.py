from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import List, Optional

import stripe
from django.conf import settings

from payments.models import Payment
from payments.reference import PaymentReference

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "succeeded": Payment.COMPLETED,
    "completed": Payment.COMPLETED,
    "approved": Payment.PENDING,
    "pending": Payment.PENDING,
    "processing": Payment.PENDING,
    "requires_action": Payment.PENDING,
    "requires_capture": Payment.PENDING,
    "requires_confirmation": Payment.PENDING,
    "requires_payment_method": Payment.FAILED,
    "failed": Payment.FAILED,
    "canceled": Payment.CANCELED,
    "cancelled": Payment.CANCELED,
}


def normalize_status(raw_status) -> str:
    """Map gateway-specific payment statuses onto COMPLETED/PENDING/FAILED/CANCELED."""
    if not raw_status:
        return Payment.PENDING
    return _STATUS_MAP.get(str(raw_status).lower(), str(raw_status).upper())


@dataclass
class GatewayPayment:
    id: str
    status: str

    @property
    def is_completed(self) -> bool:
        return self.status == Payment.COMPLETED


class GatewayRejected(Exception):
    """The gateway refused the payment (declined card, invalid source...)."""

    def __init__(self, details: List[str]):
        super().__init__(", ".join(details))
        self.details = details


class GatewayUnavailable(Exception):
    """The gateway could not be reached or failed unexpectedly."""


class IdempotencyConflict(Exception):
    """The idempotency key was already used with different parameters."""


class StripeGateway:
    """Creates and confirms Stripe PaymentIntents for a payment source token."""

    def __init__(self, api_key: str):
        if not api_key:
            raise RuntimeError("Stripe secret key is not configured.")
        self.api_key = api_key

    def create_payment(
        self,
        *,
        source_token: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        reference: PaymentReference,
        buyer_email: Optional[str] = None,
        note: str = "",
    ) -> GatewayPayment:
        params = {
            "amount": amount_cents,
            "currency": currency,
            "payment_method": source_token,
            "confirm": True,
            "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
            "metadata": reference.as_metadata(),
            "description": note,
        }
        if buyer_email:
            params["receipt_email"] = buyer_email

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                idempotency_key=idempotency_key,
                **params,
            )
        except (stripe.CardError, stripe.InvalidRequestError) as exc:
            message = getattr(exc, "user_message", None) or str(exc)
            raise GatewayRejected([message]) from exc
        except stripe.IdempotencyError as exc:
            logger.warning("Idempotency key %s reused with different parameters", idempotency_key)
            raise IdempotencyConflict(str(exc)) from exc
        except stripe.StripeError as exc:
            logger.exception("Stripe payment request failed: %s", exc)
            raise GatewayUnavailable(str(exc)) from exc

        return GatewayPayment(id=intent.id, status=normalize_status(intent.status))


class StubGateway:
    """
    Stand-in gateway for local development and tests.

    Returns predictable payment ids derived from the idempotency key, so a
    repeated request yields the same payment just like the real gateway.
    """

    def __init__(self, status: str = Payment.PENDING):
        self.status = status

    def create_payment(
        self,
        *,
        source_token: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        reference: PaymentReference,
        buyer_email: Optional[str] = None,
        note: str = "",
    ) -> GatewayPayment:
        digest = hashlib.sha256(idempotency_key.encode("utf-8")).hexdigest()[:24]
        return GatewayPayment(id=f"pi_test_{digest}", status=self.status)


def _get_stripe_api_key() -> Optional[str]:
    key = getattr(settings, "STRIPE_SECRET_KEY", "")
    return key or None


def _should_use_stub() -> bool:
    if getattr(settings, "STRIPE_USE_STUB", False):
        return True
    return _get_stripe_api_key() is None


def get_payment_gateway():
    if _should_use_stub():
        return StubGateway()
    return StripeGateway(api_key=_get_stripe_api_key())
