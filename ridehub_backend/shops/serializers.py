from rest_framework import serializers

from users.serializers import UserSummarySerializer
from .models import Shop


class ShopSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Shop
        fields = ['id', 'name', 'address', 'city', 'phone', 'location']


class ShopSerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer(read_only=True)
    location = serializers.JSONField(read_only=True)
    vehiclesCount = serializers.SerializerMethodField()

    class Meta:
        model = Shop
        fields = [
            'id', 'owner', 'name', 'address', 'city', 'pincode', 'phone',
            'longitude', 'latitude', 'location', 'is_active', 'vehiclesCount',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['owner', 'created_at', 'updated_at']

    def get_vehiclesCount(self, obj):
        return obj.vehicles.count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Please add a shop name")
        return value
