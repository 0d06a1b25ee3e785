from django.urls import path

from .views import BookingPaymentView, CreatePaymentView, MyPaymentsView, PaymentDetailView, VerifyPaymentView

urlpatterns = [
    path('create/', CreatePaymentView.as_view(), name='create-payment'),
    path('verify/', VerifyPaymentView.as_view(), name='verify-payment'),
    path('my/', MyPaymentsView.as_view(), name='my-payments'),
    path('booking/<int:booking_id>/', BookingPaymentView.as_view(), name='booking-payment'),
    path('<int:pk>/', PaymentDetailView.as_view(), name='payment-detail'),
]
