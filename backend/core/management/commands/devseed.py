from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from bookings.pricing import Selection
from bookings.services.notifications import Notifier
from bookings.services.store import create_booking
from catalog.models import Addon, Package, Service, Setting


ADDONS = [
    # slug, name, category, sedan, suv, commercial
    ("pet-hair-removal", "Pet Hair Removal", "interior", "20", "20", "30"),
    ("headlight-restoration", "Headlight Restoration", "exterior", "40", "40", "50"),
    ("engine-bay", "Engine Bay Cleaning", "exterior", "35", "45", "60"),
    ("odor-elimination", "Odor Elimination", "interior", "50", "60", "75"),
]


class Command(BaseCommand):
    help = "Populate the local development database with sample catalog data and a booking."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating add-ons"))
            for index, (slug, name, category, sedan, suv, commercial) in enumerate(ADDONS):
                Addon.objects.update_or_create(
                    slug=slug,
                    defaults={
                        "name": name,
                        "category": category,
                        "sedan_price": Decimal(sedan),
                        "suv_price": Decimal(suv),
                        "commercial_price": Decimal(commercial),
                        "is_active": True,
                        "sort_order": index,
                    },
                )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating legacy package"))
            Package.objects.get_or_create(
                name="Full Detail (legacy)",
                defaults={
                    "base_price": Decimal("150"),
                    "vehicle_multipliers": {"sedan": 1.0, "suv": 1.25, "commercial": 1.5},
                },
            )

            Setting.objects.get_or_create(
                key=Setting.DEPOSIT_PERCENTAGE,
                defaults={"value": str(settings.DEFAULT_DEPOSIT_PERCENTAGE)},
            )

            if not Booking.objects.filter(customer_email="sam@example.test").exists():
                self.stdout.write(self.style.MIGRATE_HEADING("Creating sample booking"))
                service = Service.objects.get(slug="interior")
                addon = Addon.objects.get(slug="pet-hair-removal")
                booking, _ = create_booking(
                    customer_name="Sam Sample",
                    customer_email="sam@example.test",
                    customer_phone="555-0100",
                    vehicle_type="suv",
                    selection=Selection(service_id=service.id),
                    addon_ids=[addon.id],
                    booking_date=(timezone.now() + timedelta(days=3)).date(),
                    booking_time="10:00",
                    address="123 Main St",
                    notifier=Notifier(owner_email="", business_name=settings.BUSINESS_NAME, enabled=False),
                )
                self.stdout.write(
                    f"  Booking #{booking.id}: total ${booking.total_amount}, deposit ${booking.deposit_amount}"
                )

        self.stdout.write(self.style.SUCCESS("Development data ready."))
