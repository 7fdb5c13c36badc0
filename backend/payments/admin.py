from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("gateway_payment_id", "booking", "payment_type", "amount_cents", "status", "created_at")
    list_filter = ("payment_type", "status")
    search_fields = ("gateway_payment_id", "booking__customer_email")
    readonly_fields = ("idempotency_key", "created_at", "updated_at")
