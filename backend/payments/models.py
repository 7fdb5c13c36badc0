from django.db import models


class PaymentType(models.TextChoices):
    DEPOSIT = "deposit", "Deposit"
    FINAL = "final", "Final payment"


class Payment(models.Model):
    """Ledger of payment requests sent to the gateway for a booking."""

    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"
    CANCELED = "CANCELED"

    booking = models.ForeignKey('bookings.Booking', on_delete=models.CASCADE, related_name='payments')
    payment_type = models.CharField(max_length=10, choices=PaymentType.choices)
    amount_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=10, default='usd')
    gateway_payment_id = models.CharField(max_length=255, unique=True)
    idempotency_key = models.CharField(max_length=64)
    status = models.CharField(max_length=30)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_payment_type_display()} {self.gateway_payment_id} ({self.status})"
