from rest_framework import serializers

from bookings.models import Booking
from users.serializers import UserSummarySerializer
from vehicles.serializers import VehicleSummarySerializer
from .models import Payment


class PaymentBookingSerializer(serializers.ModelSerializer):
    vehicle = VehicleSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = ['id', 'vehicle', 'start_date', 'end_date', 'total_amount', 'status', 'payment_status']


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'booking', 'user', 'amount', 'currency', 'method', 'gateway_order_id', 'transaction_id', 'status', 'created_at', 'updated_at']
        read_only_fields = fields


class PaymentDetailSerializer(PaymentSerializer):
    booking = PaymentBookingSerializer(read_only=True)
    user = UserSummarySerializer(read_only=True)


class PaymentCreateSerializer(serializers.Serializer):
    bookingId = serializers.IntegerField()


class PaymentVerifySerializer(serializers.Serializer):
    razorpay_order_id = serializers.CharField(required=False, allow_blank=True, default='')
    razorpay_payment_id = serializers.CharField(required=False, allow_blank=True, default='')
    razorpay_signature = serializers.CharField(required=False, allow_blank=True, default='')
    bookingId = serializers.IntegerField(required=False, allow_null=True, default=None)
