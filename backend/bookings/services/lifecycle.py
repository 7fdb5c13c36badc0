"""
Booking state machine.

    pending -> confirmed -> in_progress -> completed
    (any non-terminal state) -> cancelled

Payment-driven transitions (``confirm``/``complete``) are single conditional
UPDATEs, so the synchronous payment path and a webhook delivery for the same
payment cannot both apply the change. Only the caller whose UPDATE matched
sends the notification.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from bookings.models import Booking, BookingStatus
from bookings.services.notifications import (
    NotificationKind,
    Notifier,
    booking_payload,
    get_notifier,
)
from core.exceptions import InvalidInput

logger = logging.getLogger(__name__)

CONFIRMABLE_FROM = (BookingStatus.PENDING,)
COMPLETABLE_FROM = (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS)


@dataclass(frozen=True)
class Transition:
    booking: Booking
    changed: bool


def _notify(notifier: Optional[Notifier], kind: NotificationKind, booking: Booking) -> None:
    notifier = notifier or get_notifier()
    notifier.notify(kind, booking_payload(booking))


def confirm(booking: Booking, *, notifier: Optional[Notifier] = None) -> Transition:
    """
    Record a verified deposit payment and confirm a pending booking.

    Confirming a booking that is already confirmed (or further along) changes
    nothing and sends nothing. If the status was moved past ``pending`` by
    hand before the deposit arrived, only ``deposit_paid`` is recorded.
    """
    now = timezone.now()
    changed = (
        Booking.objects.filter(pk=booking.pk, status__in=CONFIRMABLE_FROM).update(
            status=BookingStatus.CONFIRMED,
            deposit_paid=True,
            updated_at=now,
        )
        == 1
    )
    if not changed:
        Booking.objects.filter(pk=booking.pk, deposit_paid=False).update(deposit_paid=True, updated_at=now)

    booking.refresh_from_db()
    if changed:
        logger.info("Booking %s confirmed", booking.pk)
        _notify(notifier, NotificationKind.DEPOSIT_PAID, booking)
    else:
        logger.info("Booking %s already %s; confirm is a no-op", booking.pk, booking.status)
    return Transition(booking=booking, changed=changed)


def complete(booking: Booking, *, notifier: Optional[Notifier] = None) -> Transition:
    """Mark a confirmed booking completed once its final payment is verified."""
    changed = (
        Booking.objects.filter(
            pk=booking.pk,
            status__in=COMPLETABLE_FROM,
            deposit_paid=True,
        ).update(status=BookingStatus.COMPLETED, updated_at=timezone.now())
        == 1
    )

    booking.refresh_from_db()
    if changed:
        logger.info("Booking %s completed", booking.pk)
        _notify(notifier, NotificationKind.PAYMENT_COMPLETED, booking)
    else:
        logger.info("Booking %s is %s; complete is a no-op", booking.pk, booking.status)
    return Transition(booking=booking, changed=changed)


def set_status(booking: Booking, target_status: str) -> Transition:
    """
    Administrative override: set any known status regardless of the current one.

    This deliberately skips the payment checks ``confirm``/``complete`` apply
    and is meant for staff correcting a booking by hand. It does not notify
    the customer.
    """
    if target_status not in BookingStatus.values:
        raise InvalidInput("Invalid status")

    changed = (
        Booking.objects.filter(pk=booking.pk)
        .exclude(status=target_status)
        .update(status=target_status, updated_at=timezone.now())
        == 1
    )
    booking.refresh_from_db()
    if changed:
        logger.info("Booking %s status overridden to %s", booking.pk, target_status)
    return Transition(booking=booking, changed=changed)
