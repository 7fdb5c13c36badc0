from rest_framework import serializers

from bookings.models import Booking


class BookingCreateSerializer(serializers.Serializer):
    customerName = serializers.CharField(source="customer_name", max_length=200)
    customerEmail = serializers.EmailField(source="customer_email")
    customerPhone = serializers.CharField(source="customer_phone", max_length=30, required=False, allow_blank=True)
    vehicleType = serializers.CharField(source="vehicle_type", max_length=20)
    serviceId = serializers.IntegerField(source="service_id", required=False, allow_null=True, min_value=1)
    packageId = serializers.IntegerField(source="package_id", required=False, allow_null=True, min_value=1)
    addonIds = serializers.ListField(
        source="addon_ids",
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )
    bookingDate = serializers.DateField(source="booking_date")
    bookingTime = serializers.CharField(source="booking_time", max_length=20)
    address = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingSerializer(serializers.ModelSerializer):
    service_name = serializers.CharField(source="service.name", read_only=True, default=None)
    package_name = serializers.CharField(source="package.name", read_only=True, default=None)
    remaining_amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    addons = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "customer_name",
            "customer_email",
            "customer_phone",
            "vehicle_type",
            "service_id",
            "service_name",
            "package_id",
            "package_name",
            "addons",
            "booking_date",
            "booking_time",
            "address",
            "notes",
            "total_amount",
            "deposit_amount",
            "remaining_amount",
            "deposit_paid",
            "deposit_payment_id",
            "final_payment_id",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_addons(self, obj: Booking):
        return [
            {
                "id": row.addon_id,
                "name": row.addon.name,
                "slug": row.addon.slug,
                "price_charged": row.price_charged,
            }
            for row in obj.booking_addons.all()
        ]


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.CharField()

    def validate_status(self, value):
        # Reported as a plain "Invalid status" by the lifecycle when unknown.
        return value.strip().lower()


class QuoteRequestSerializer(serializers.Serializer):
    customerName = serializers.CharField(source="customer_name", max_length=200)
    customerEmail = serializers.EmailField(source="customer_email")
    customerPhone = serializers.CharField(source="customer_phone", max_length=30, required=False, allow_blank=True)
    vehicleType = serializers.CharField(source="vehicle_type", max_length=20)
    serviceLevel = serializers.CharField(source="service_level", max_length=40, required=False, allow_blank=True)
    message = serializers.CharField(required=False, allow_blank=True, default="")
