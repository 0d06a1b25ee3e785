from django.contrib import admin

from .models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['name', 'brand', 'type', 'category', 'shop', 'daily_rent_inr', 'hourly_rent_inr', 'available']
    list_filter = ['type', 'category', 'transmission', 'fuel_type', 'available']
    search_fields = ['name', 'brand', 'shop__name']
    readonly_fields = ['category', 'total_distance_traveled_km', 'created_at', 'updated_at']
    ordering = ['-created_at']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('shop')
