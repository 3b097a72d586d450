from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from bookings.models import Booking
from properties.pricing import format_minor_units


class BookingSerializer(serializers.ModelSerializer):
    tenant = UserSummarySerializer(read_only=True)
    property_name = serializers.CharField(source="property.name", read_only=True)
    owner_id = serializers.IntegerField(source="property.owner_id", read_only=True)
    nights = serializers.IntegerField(read_only=True)
    nightly_rate = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "tenant",
            "property",
            "property_name",
            "owner_id",
            "check_in",
            "check_out",
            "nights",
            "nightly_rate",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_nightly_rate(self, obj):
        return format_minor_units(obj.property.nightly_rate_minor)


class BookingCreateSerializer(serializers.Serializer):
    property_id = serializers.IntegerField(min_value=1)
    check_in = serializers.DateField()
    check_out = serializers.DateField()

    def validate(self, attrs):
        if attrs["check_in"] >= attrs["check_out"]:
            raise serializers.ValidationError({"check_out": "Check-out date must be after check-in date."})
        return attrs


class BookingUpdateSerializer(serializers.Serializer):
    check_in = serializers.DateField(required=False)
    check_out = serializers.DateField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide check_in, check_out or both.")
        check_in = attrs.get("check_in")
        check_out = attrs.get("check_out")
        if check_in and check_out and check_in >= check_out:
            raise serializers.ValidationError({"check_out": "Check-out date must be after check-in date."})
        return attrs
