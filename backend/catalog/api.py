from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.pricing import calculate_addons
from catalog.serializers import AddonCalculateSerializer
from core.exceptions import InvalidInput


class AddonCalculateView(APIView):
    """Price a set of add-ons for a vehicle type (used by the quote calculator)."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = AddonCalculateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data["addon_ids"] and not data["vehicle_type"]:
            raise InvalidInput("Vehicle type required")
        return Response(calculate_addons(data["vehicle_type"], data["addon_ids"]))
