from django.contrib import admin

from payments.models import Payment

from .models import Booking, BookingAddon, QuoteRequest


class BookingAddonInline(admin.TabularInline):
    model = BookingAddon
    extra = 0
    readonly_fields = ("addon", "price_charged", "created_at")


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = (
        "payment_type",
        "gateway_payment_id",
        "amount_cents",
        "currency",
        "status",
        "created_at",
    )
    exclude = ("idempotency_key",)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_name", "vehicle_type", "booking_date", "status", "total_amount", "deposit_paid")
    list_filter = ("status", "deposit_paid", "vehicle_type")
    search_fields = ("customer_name", "customer_email", "customer_phone")
    readonly_fields = (
        "total_amount",
        "deposit_amount",
        "deposit_percentage",
        "deposit_payment_id",
        "final_payment_id",
        "deposit_attempts",
        "final_attempts",
        "created_at",
        "updated_at",
    )
    inlines = [BookingAddonInline, PaymentInline]


@admin.register(QuoteRequest)
class QuoteRequestAdmin(admin.ModelAdmin):
    list_display = ("customer_name", "vehicle_type", "service_level", "estimated_price", "created_at")
    search_fields = ("customer_name", "customer_email")
