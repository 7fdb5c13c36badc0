from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from payments.models import PaymentType

_REFERENCE_RE = re.compile(r"BK(?P<booking_id>\d{10})-(?P<payment_type>deposit|final)")
# Payments created before references moved to metadata used "booking-<id>-<type>".
_LEGACY_REFERENCE_RE = re.compile(r"booking-(?P<booking_id>\d+)-(?P<payment_type>deposit|final)")


@dataclass(frozen=True)
class PaymentReference:
    """Links a gateway payment back to a booking and the kind of payment it is."""

    booking_id: int
    payment_type: str

    def __post_init__(self):
        if self.payment_type not in PaymentType.values:
            raise ValueError(f"Unknown payment type: {self.payment_type!r}")
        if not 0 < int(self.booking_id) < 10**10:
            raise ValueError(f"Booking id out of range: {self.booking_id!r}")

    def encode(self) -> str:
        return f"BK{int(self.booking_id):010d}-{self.payment_type}"

    def as_metadata(self) -> Dict[str, str]:
        return {
            "booking_id": str(self.booking_id),
            "payment_type": self.payment_type,
            "reference": self.encode(),
        }

    @classmethod
    def decode(cls, value: Any) -> Optional["PaymentReference"]:
        if not isinstance(value, str):
            return None
        match = _REFERENCE_RE.fullmatch(value) or _LEGACY_REFERENCE_RE.fullmatch(value)
        if match is None:
            return None
        try:
            return cls(int(match["booking_id"]), match["payment_type"])
        except ValueError:
            return None

    @classmethod
    def from_payment(cls, payment: Mapping[str, Any]) -> Optional["PaymentReference"]:
        """Read the reference from a gateway payment object (metadata first)."""
        metadata = payment.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            metadata = {}

        booking_id = metadata.get("booking_id")
        payment_type = metadata.get("payment_type")
        if booking_id is not None and payment_type is not None:
            try:
                return cls(int(str(booking_id)), str(payment_type))
            except ValueError:
                return None

        return cls.decode(payment.get("reference_id") or metadata.get("reference"))
