import types

import pytest
import stripe

from payments.models import Payment
from payments.reference import PaymentReference
from payments.services import gateway
from payments.services.gateway import (
    GatewayRejected,
    GatewayUnavailable,
    IdempotencyConflict,
    StripeGateway,
    StubGateway,
)


def _create(gw, **overrides):
    kwargs = {
        "source_token": "pm_card_visa",
        "amount_cents": 4500,
        "currency": "usd",
        "idempotency_key": "key-1",
        "reference": PaymentReference(12, "deposit"),
        "buyer_email": "casey@example.com",
        "note": "Deposit for booking #12",
    }
    kwargs.update(overrides)
    return gw.create_payment(**kwargs)


def test_stub_gateway_is_deterministic_per_idempotency_key():
    stub = StubGateway()

    first = _create(stub)
    retry = _create(stub)
    next_attempt = _create(stub, idempotency_key="key-2")

    assert first.id.startswith("pi_test_")
    assert first.id == retry.id
    assert next_attempt.id != first.id
    assert first.status == Payment.PENDING
    assert _create(StubGateway(status=Payment.COMPLETED)).is_completed


def test_gateway_selection_follows_settings(settings):
    settings.STRIPE_USE_STUB = True
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    assert isinstance(gateway.get_payment_gateway(), StubGateway)

    settings.STRIPE_USE_STUB = False
    settings.STRIPE_SECRET_KEY = ""
    assert isinstance(gateway.get_payment_gateway(), StubGateway)

    settings.STRIPE_SECRET_KEY = "sk_test_123"
    real = gateway.get_payment_gateway()
    assert isinstance(real, StripeGateway)
    assert real.api_key == "sk_test_123"


def test_stripe_gateway_sends_reference_and_idempotency_key(monkeypatch):
    captured = {}
    original_api_key = stripe.api_key

    def fake_create(**kwargs):
        captured["kwargs"] = kwargs
        return types.SimpleNamespace(id="pi_real_123", status="succeeded")

    monkeypatch.setattr(stripe.PaymentIntent, "create", staticmethod(fake_create))

    payment = _create(StripeGateway(api_key="sk_test_123"))

    assert payment.id == "pi_real_123"
    assert payment.status == Payment.COMPLETED
    kwargs = captured["kwargs"]
    assert kwargs["api_key"] == "sk_test_123"
    assert kwargs["idempotency_key"] == "key-1"
    assert kwargs["amount"] == 4500
    assert kwargs["payment_method"] == "pm_card_visa"
    assert kwargs["metadata"] == {"booking_id": "12", "payment_type": "deposit", "reference": "BK0000000012-deposit"}
    assert kwargs["receipt_email"] == "casey@example.com"
    # The key is passed per request; the module-level key is untouched.
    assert stripe.api_key == original_api_key


def test_stripe_gateway_omits_empty_receipt_email(monkeypatch):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return types.SimpleNamespace(id="pi_real_124", status="processing")

    monkeypatch.setattr(stripe.PaymentIntent, "create", staticmethod(fake_create))

    payment = _create(StripeGateway(api_key="sk_test_123"), buyer_email="")

    assert "receipt_email" not in captured
    assert payment.status == Payment.PENDING


def test_card_errors_become_rejections(monkeypatch):
    def fake_create(**kwargs):
        raise stripe.CardError("Your card was declined.", None, "card_declined")

    monkeypatch.setattr(stripe.PaymentIntent, "create", staticmethod(fake_create))

    with pytest.raises(GatewayRejected) as excinfo:
        _create(StripeGateway(api_key="sk_test_123"))

    assert "declined" in excinfo.value.details[0]


def test_connection_errors_become_unavailable(monkeypatch):
    def fake_create(**kwargs):
        raise stripe.APIConnectionError("Network down")

    monkeypatch.setattr(stripe.PaymentIntent, "create", staticmethod(fake_create))

    with pytest.raises(GatewayUnavailable):
        _create(StripeGateway(api_key="sk_test_123"))


def test_stripe_gateway_requires_key():
    with pytest.raises(RuntimeError):
        StripeGateway(api_key="")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("COMPLETED", Payment.COMPLETED),
        ("succeeded", Payment.COMPLETED),
        ("APPROVED", Payment.PENDING),
        ("requires_action", Payment.PENDING),
        (None, Payment.PENDING),
        ("FAILED", Payment.FAILED),
        ("requires_payment_method", Payment.FAILED),
        ("canceled", Payment.CANCELED),
        ("weird", "WEIRD"),
    ],
)
def test_normalize_status(raw, expected):
    assert gateway.normalize_status(raw) == expected


def test_reused_idempotency_key_is_reported_as_conflict(monkeypatch):
    def fake_create(**kwargs):
        raise stripe.IdempotencyError("Keys for idempotent requests can only be used with the same parameters")

    monkeypatch.setattr(stripe.PaymentIntent, "create", staticmethod(fake_create))

    with pytest.raises(IdempotencyConflict):
        _create(StripeGateway(api_key="sk_test_123"))
