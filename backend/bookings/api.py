from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings import pricing
from bookings.models import Booking, QuoteRequest
from bookings.serializers import (
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    QuoteRequestSerializer,
)
from bookings.services import lifecycle
from bookings.services.notifications import NotificationKind, get_notifier
from bookings.services.store import create_booking, get_booking


class BookingListCreateView(generics.ListCreateAPIView):
    """Public booking creation; listing is for staff only."""

    serializer_class = BookingSerializer

    def get_permissions(self):
        if self.request.method == "POST":
            return [permissions.AllowAny()]
        return [permissions.IsAdminUser()]

    def get_queryset(self):
        queryset = Booking.objects.select_related("service", "package").prefetch_related("booking_addons__addon")
        status_filter = self.request.query_params.get("status", "").strip()
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        booking, quote = create_booking(
            selection=pricing.Selection(
                service_id=data.pop("service_id", None),
                package_id=data.pop("package_id", None),
            ),
            notifier=get_notifier(),
            **data,
        )
        return Response(
            {
                "success": True,
                "booking": BookingSerializer(booking).data,
                "totalAmount": booking.total_amount,
                "depositAmount": booking.deposit_amount,
                "addons": [line.as_dict() for line in quote.addon_breakdown],
            },
            status=status.HTTP_201_CREATED,
        )


class BookingDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, pk):
        return Response(BookingSerializer(get_booking(pk)).data)


class BookingStatusView(APIView):
    """Staff override of a booking's status."""

    permission_classes = [permissions.IsAdminUser]

    def patch(self, request, pk):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = get_booking(pk)
        transition = lifecycle.set_status(booking, serializer.validated_data["status"])
        return Response(BookingSerializer(transition.booking).data)


class QuoteRequestView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = QuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        vehicle_type = pricing.normalize_vehicle_type(data["vehicle_type"])
        estimated_price = pricing.estimate_service_level(data.get("service_level"), vehicle_type)
        quote_request = QuoteRequest.objects.create(
            customer_name=data["customer_name"],
            customer_email=data["customer_email"],
            customer_phone=data.get("customer_phone", ""),
            vehicle_type=vehicle_type,
            service_level=data.get("service_level", ""),
            estimated_price=estimated_price,
            message=data.get("message", ""),
        )

        get_notifier().notify(
            NotificationKind.QUOTE_REQUEST,
            {
                "customerName": quote_request.customer_name,
                "customerEmail": quote_request.customer_email,
                "customerPhone": quote_request.customer_phone,
                "vehicleType": vehicle_type,
                "serviceLevel": quote_request.service_level,
                "estimatedPrice": estimated_price,
                "message": quote_request.message,
            },
        )
        return Response(
            {
                "success": True,
                "quote": {
                    "id": quote_request.id,
                    "vehicle_type": vehicle_type,
                    "service_level": quote_request.service_level,
                    "estimated_price": estimated_price,
                },
                "estimatedPrice": estimated_price,
            },
            status=status.HTTP_201_CREATED,
        )
