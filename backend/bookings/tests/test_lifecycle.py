from datetime import date
from decimal import Decimal

import pytest

from bookings.models import Booking, BookingStatus
from bookings.services import lifecycle
from bookings.services.notifications import NotificationKind
from catalog.models import Service
from core.exceptions import InvalidInput


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify(self, kind, payload):
        self.calls.append((kind, payload))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def booking(db):
    return Booking.objects.create(
        customer_name="Casey Customer",
        customer_email="casey@example.com",
        vehicle_type="suv",
        service=Service.objects.get(slug="interior"),
        booking_date=date(2026, 11, 2),
        booking_time="09:00",
        address="12 Elm St",
        total_amount=Decimal("180.00"),
        deposit_amount=Decimal("45.00"),
        deposit_percentage=Decimal("0.25"),
    )


@pytest.mark.django_db
def test_confirm_twice_transitions_and_notifies_once(booking, notifier):
    first = lifecycle.confirm(booking, notifier=notifier)
    state_after_first = Booking.objects.values().get(pk=booking.pk)
    second = lifecycle.confirm(Booking.objects.get(pk=booking.pk), notifier=notifier)

    assert first.changed is True
    assert second.changed is False
    assert Booking.objects.values().get(pk=booking.pk) == state_after_first
    assert second.booking.status == BookingStatus.CONFIRMED
    assert second.booking.deposit_paid is True
    assert len(notifier.calls) == 1
    kind, payload = notifier.calls[0]
    assert kind == NotificationKind.DEPOSIT_PAID
    assert payload["bookingId"] == booking.pk
    assert payload["status"] == BookingStatus.CONFIRMED


@pytest.mark.django_db
def test_confirm_from_stale_instance_is_noop(booking, notifier):
    stale = Booking.objects.get(pk=booking.pk)
    lifecycle.confirm(booking, notifier=notifier)

    # A second worker still holding the pending row must not re-apply it.
    result = lifecycle.confirm(stale, notifier=notifier)

    assert result.changed is False
    assert len(notifier.calls) == 1


@pytest.mark.django_db
def test_confirm_on_manually_advanced_booking_records_deposit_only(booking, notifier):
    Booking.objects.filter(pk=booking.pk).update(status=BookingStatus.IN_PROGRESS)

    result = lifecycle.confirm(booking, notifier=notifier)

    assert result.changed is False
    assert result.booking.status == BookingStatus.IN_PROGRESS
    assert result.booking.deposit_paid is True
    assert notifier.calls == []


@pytest.mark.django_db
def test_complete_requires_confirmed_booking(booking, notifier):
    result = lifecycle.complete(booking, notifier=notifier)

    assert result.changed is False
    assert result.booking.status == BookingStatus.PENDING
    assert notifier.calls == []


@pytest.mark.django_db
@pytest.mark.parametrize("start", [BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS])
def test_complete_is_idempotent(booking, notifier, start):
    Booking.objects.filter(pk=booking.pk).update(status=start, deposit_paid=True)

    first = lifecycle.complete(booking, notifier=notifier)
    second = lifecycle.complete(booking, notifier=notifier)

    assert first.changed is True
    assert second.changed is False
    assert second.booking.status == BookingStatus.COMPLETED
    assert [kind for kind, _ in notifier.calls] == [NotificationKind.PAYMENT_COMPLETED]


@pytest.mark.django_db
def test_cancelled_booking_is_not_reconfirmed(booking, notifier):
    lifecycle.set_status(booking, BookingStatus.CANCELLED)

    result = lifecycle.confirm(booking, notifier=notifier)

    assert result.booking.status == BookingStatus.CANCELLED
    assert result.changed is False
    assert notifier.calls == []


@pytest.mark.django_db
def test_set_status_overrides_any_state(booking):
    Booking.objects.filter(pk=booking.pk).update(status=BookingStatus.COMPLETED)

    result = lifecycle.set_status(booking, BookingStatus.PENDING)

    assert result.changed is True
    assert result.booking.status == BookingStatus.PENDING
    assert lifecycle.set_status(booking, BookingStatus.PENDING).changed is False


@pytest.mark.django_db
def test_set_status_rejects_unknown_status(booking):
    with pytest.raises(InvalidInput):
        lifecycle.set_status(booking, "archived")

    booking.refresh_from_db()
    assert booking.status == BookingStatus.PENDING


@pytest.mark.django_db
def test_failing_notifier_does_not_break_confirmation(booking, monkeypatch, settings):
    settings.NOTIFICATIONS_ENABLED = True

    def boom(*args, **kwargs):
        raise ConnectionError("smtp down")

    monkeypatch.setattr("bookings.services.notifications.send_mail", boom)

    result = lifecycle.confirm(booking)

    assert result.changed is True
    assert result.booking.status == BookingStatus.CONFIRMED
