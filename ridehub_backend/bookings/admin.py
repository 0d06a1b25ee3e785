from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'vehicle', 'shop', 'start_date', 'end_date', 'rental_type', 'total_amount', 'status', 'payment_status']
    list_filter = ['status', 'payment_status', 'rental_type']
    search_fields = ['user__email', 'vehicle__name', 'shop__name']
    readonly_fields = ['total_days', 'total_hours', 'total_amount', 'distance_travelled_km', 'created_at', 'updated_at']
    ordering = ['-created_at']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('user', 'vehicle', 'shop')
