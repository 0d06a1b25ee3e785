from rest_framework import serializers

from shops.serializers import ShopSummarySerializer
from .models import Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    shop = ShopSummarySerializer(read_only=True)
    images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    features = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    class Meta:
        model = Vehicle
        fields = [
            'id', 'shop', 'name', 'brand', 'type', 'engine_capacity_cc', 'category',
            'transmission', 'fuel_type', 'daily_rent_inr', 'hourly_rent_inr', 'images',
            'seating_capacity', 'odo_reading_km', 'total_distance_traveled_km', 'available',
            'features', 'created_at', 'updated_at',
        ]
        read_only_fields = ['category', 'total_distance_traveled_km', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Please add a vehicle name")
        return value

    def validate_brand(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Please add a brand")
        return value

    def validate_seating_capacity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Seating capacity must be greater than 0.")
        return value

    def validate_odo_reading_km(self, value):
        if value < 0:
            raise serializers.ValidationError("Odometer reading cannot be negative.")
        if self.instance and value < self.instance.odo_reading_km:
            raise serializers.ValidationError("Odometer reading cannot decrease from the previous value.")
        return value

    def validate_features(self, value):
        return [feature.strip() for feature in value if feature and feature.strip()]


class VehicleSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Vehicle
        fields = ['id', 'name', 'brand', 'type', 'images', 'daily_rent_inr', 'hourly_rent_inr']


class AvailabilityQuerySerializer(serializers.Serializer):
    startDate = serializers.DateTimeField()
    endDate = serializers.DateTimeField()

    def validate(self, data):
        if data['endDate'] <= data['startDate']:
            raise serializers.ValidationError("End date must be after start date.")
        return data
