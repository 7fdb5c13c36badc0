from django.db import models
from django.db.models import Q


class VehicleType(models.TextChoices):
    SEDAN = "sedan", "Sedan / Coupe"
    SUV = "suv", "SUV / Truck"
    COMMERCIAL = "commercial", "Commercial"


class BookingStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    IN_PROGRESS = "in_progress", "In progress"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class Booking(models.Model):
    """A customer's detailing appointment and its payment state."""

    TERMINAL_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=30, blank=True)
    vehicle_type = models.CharField(max_length=20, choices=VehicleType.choices)
    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.PROTECT,
        related_name="bookings",
        null=True,
        blank=True,
    )
    package = models.ForeignKey(
        "catalog.Package",
        on_delete=models.PROTECT,
        related_name="bookings",
        null=True,
        blank=True,
    )
    addons = models.ManyToManyField("catalog.Addon", through="BookingAddon", related_name="bookings")
    booking_date = models.DateField()
    booking_time = models.CharField(max_length=20)
    address = models.CharField(max_length=255)
    notes = models.TextField(blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    deposit_amount = models.DecimalField(max_digits=10, decimal_places=2)
    deposit_percentage = models.DecimalField(max_digits=5, decimal_places=4)
    deposit_paid = models.BooleanField(default=False)
    deposit_payment_id = models.CharField(max_length=255, null=True, blank=True)
    final_payment_id = models.CharField(max_length=255, null=True, blank=True)
    deposit_attempts = models.PositiveIntegerField(default=0)
    final_attempts = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-booking_date", "-booking_time", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(service__isnull=False, package__isnull=True)
                    | Q(service__isnull=True, package__isnull=False)
                ),
                name="booking_service_xor_package",
            ),
        ]

    def __str__(self):
        return f"Booking #{self.pk} ({self.customer_name})"

    @property
    def remaining_amount(self):
        return self.total_amount - self.deposit_amount

    @property
    def selection_name(self) -> str:
        item = self.service or self.package
        return item.name if item else ""


class BookingAddon(models.Model):
    """Add-on selected for a booking with the price charged at booking time."""

    booking = models.ForeignKey("Booking", on_delete=models.CASCADE, related_name="booking_addons")
    addon = models.ForeignKey("catalog.Addon", on_delete=models.PROTECT, related_name="booking_addons")
    price_charged = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("booking", "addon")

    def __str__(self):
        return f"{self.addon} × {self.booking}"


class QuoteRequest(models.Model):
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=30, blank=True)
    vehicle_type = models.CharField(max_length=20, choices=VehicleType.choices)
    service_level = models.CharField(max_length=40, blank=True)
    estimated_price = models.DecimalField(max_digits=10, decimal_places=2)
    message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Quote for {self.customer_name} ({self.service_level or 'exterior'})"
