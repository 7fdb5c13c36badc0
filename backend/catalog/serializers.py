from rest_framework import serializers


class AddonCalculateSerializer(serializers.Serializer):
    addonIds = serializers.ListField(
        source="addon_ids",
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )
    vehicleType = serializers.CharField(source="vehicle_type", required=False, allow_blank=True, default="")
