from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.serializers import BookingSerializer
from users.permissions import IsCustomer
from users.principal import Principal
from .serializers import PaymentCreateSerializer, PaymentDetailSerializer, PaymentSerializer, PaymentVerifySerializer
from .services.payment_service import PaymentService


class CreatePaymentView(APIView):
    permission_classes = [IsCustomer]

    def post(self, request):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = PaymentService.create_payment(serializer.validated_data['bookingId'], Principal.from_user(request.user))
        payment = PaymentSerializer(result.payment).data
        if result.order is not None:
            data = {'payment': payment, **result.order}
        else:
            data = payment
        return Response({'success': True, 'message': result.message, 'data': data})


class VerifyPaymentView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = PaymentVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        payment, booking = PaymentService.verify_payment(
            data['razorpay_order_id'],
            data['razorpay_payment_id'],
            data['razorpay_signature'],
            booking_id=data['bookingId'],
        )
        return Response({
            'success': True,
            'message': 'Payment verified successfully',
            'data': {
                'payment': PaymentSerializer(payment).data if payment is not None else None,
                'booking': BookingSerializer(booking).data,
            },
        })


class MyPaymentsView(APIView):
    permission_classes = [IsCustomer]

    def get(self, request):
        payments = PaymentService.get_user_payments(Principal.from_user(request.user))
        data = PaymentDetailSerializer(payments, many=True).data
        return Response({'success': True, 'count': len(data), 'data': data})


class PaymentDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        payment = PaymentService.get_payment(pk, Principal.from_user(request.user))
        return Response({'success': True, 'data': PaymentDetailSerializer(payment).data})


class BookingPaymentView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, booking_id):
        payment = PaymentService.get_booking_payment(booking_id, Principal.from_user(request.user))
        return Response({'success': True, 'data': PaymentDetailSerializer(payment).data})
