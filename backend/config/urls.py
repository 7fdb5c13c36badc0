from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from bookings.api import (
    BookingListCreateView,
    BookingDetailView,
    BookingStatusView,
    QuoteRequestView,
)
from catalog.api import AddonCalculateView
from payments.api import (
    CreateDepositPaymentView,
    CreateFinalPaymentView,
    PaymentWebhookView,
)

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/token/", TokenObtainPairView.as_view(), name="auth-token"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("api/bookings/", BookingListCreateView.as_view(), name="booking-list"),
    path("api/bookings/<int:pk>/", BookingDetailView.as_view(), name="booking-detail"),
    path(
        "api/bookings/<int:pk>/status/",
        BookingStatusView.as_view(),
        name="booking-status",
    ),
    path("api/quotes/", QuoteRequestView.as_view(), name="quote-request"),
    path(
        "api/addons/calculate/",
        AddonCalculateView.as_view(),
        name="addon-calculate",
    ),
    path(
        "api/payments/create-deposit-payment/",
        CreateDepositPaymentView.as_view(),
        name="payment-create-deposit",
    ),
    path(
        "api/payments/create-final-payment/",
        CreateFinalPaymentView.as_view(),
        name="payment-create-final",
    ),
    path("api/payments/webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
]
