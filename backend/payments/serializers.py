from rest_framework import serializers


class CreatePaymentSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField(source="booking_id", min_value=1)
    sourceId = serializers.CharField(source="source_id", max_length=255)
