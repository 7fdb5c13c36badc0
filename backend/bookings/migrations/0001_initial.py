import django.db.models.deletion
from django.db import migrations, models


VEHICLE_CHOICES = [("sedan", "Sedan / Coupe"), ("suv", "SUV / Truck"), ("commercial", "Commercial")]
STATUS_CHOICES = [
    ("pending", "Pending"),
    ("confirmed", "Confirmed"),
    ("in_progress", "In progress"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_email", models.EmailField(max_length=254)),
                ("customer_phone", models.CharField(blank=True, max_length=30)),
                ("vehicle_type", models.CharField(choices=VEHICLE_CHOICES, max_length=20)),
                ("booking_date", models.DateField()),
                ("booking_time", models.CharField(max_length=20)),
                ("address", models.CharField(max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("deposit_amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("deposit_percentage", models.DecimalField(decimal_places=4, max_digits=5)),
                ("deposit_paid", models.BooleanField(default=False)),
                ("deposit_payment_id", models.CharField(blank=True, max_length=255, null=True)),
                ("final_payment_id", models.CharField(blank=True, max_length=255, null=True)),
                ("deposit_attempts", models.PositiveIntegerField(default=0)),
                ("final_attempts", models.PositiveIntegerField(default=0)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="pending", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("service", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="catalog.service")),
                ("package", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="bookings", to="catalog.package")),
            ],
            options={"ordering": ["-booking_date", "-booking_time", "-id"]},
        ),
        migrations.CreateModel(
            name="BookingAddon",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("price_charged", models.DecimalField(decimal_places=2, max_digits=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("addon", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="booking_addons", to="catalog.addon")),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="booking_addons", to="bookings.booking")),
            ],
            options={"unique_together": {("booking", "addon")}},
        ),
        migrations.AddField(
            model_name="booking",
            name="addons",
            field=models.ManyToManyField(related_name="bookings", through="bookings.BookingAddon", to="catalog.addon"),
        ),
        migrations.AddConstraint(
            model_name="booking",
            constraint=models.CheckConstraint(
                condition=(
                    models.Q(("package__isnull", True), ("service__isnull", False))
                    | models.Q(("package__isnull", False), ("service__isnull", True))
                ),
                name="booking_service_xor_package",
            ),
        ),
        migrations.CreateModel(
            name="QuoteRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_email", models.EmailField(max_length=254)),
                ("customer_phone", models.CharField(blank=True, max_length=30)),
                ("vehicle_type", models.CharField(choices=VEHICLE_CHOICES, max_length=20)),
                ("service_level", models.CharField(blank=True, max_length=40)),
                ("estimated_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("message", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["-created_at"]},
        ),
    ]
