from rest_framework import serializers

from shops.serializers import ShopSummarySerializer
from users.serializers import UserSummarySerializer
from vehicles.serializers import VehicleSummarySerializer
from .models import Booking


class BookingSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    vehicle = VehicleSummarySerializer(read_only=True)
    shop = ShopSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'user', 'vehicle', 'shop', 'start_date', 'end_date', 'rental_type',
            'total_days', 'total_hours', 'total_amount', 'start_odo_km', 'end_odo_km',
            'distance_travelled_km', 'status', 'payment_status', 'customer_notes',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    vehicleId = serializers.IntegerField()
    startDate = serializers.DateTimeField()
    endDate = serializers.DateTimeField()
    rentalType = serializers.ChoiceField(choices=Booking.RENTAL_TYPE_CHOICES, default=Booking.DAILY)
    customerNotes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, data):
        if data['endDate'] <= data['startDate']:
            raise serializers.ValidationError("End date must be after start date.")
        return data


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES)


class OdometerSerializer(serializers.Serializer):
    startOdoKm = serializers.FloatField(required=False, min_value=0)
    endOdoKm = serializers.FloatField(required=False, min_value=0)

    def validate(self, data):
        if 'startOdoKm' not in data and 'endOdoKm' not in data:
            raise serializers.ValidationError("Provide startOdoKm and/or endOdoKm.")
        return data
