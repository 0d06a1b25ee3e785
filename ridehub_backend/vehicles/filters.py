import django_filters

from .models import Vehicle


class VehicleFilter(django_filters.FilterSet):
    type = django_filters.ChoiceFilter(choices=Vehicle.TYPE_CHOICES)
    category = django_filters.ChoiceFilter(choices=Vehicle.CATEGORY_CHOICES)
    transmission = django_filters.ChoiceFilter(choices=Vehicle.TRANSMISSION_CHOICES)
    fuelType = django_filters.ChoiceFilter(field_name='fuel_type', choices=Vehicle.FUEL_CHOICES)
    minPrice = django_filters.NumberFilter(field_name='daily_rent_inr', lookup_expr='gte')
    maxPrice = django_filters.NumberFilter(field_name='daily_rent_inr', lookup_expr='lte')
    available = django_filters.BooleanFilter(field_name='available')
    shopId = django_filters.NumberFilter(field_name='shop_id')
    city = django_filters.CharFilter(field_name='shop__city', lookup_expr='icontains')

    class Meta:
        model = Vehicle
        fields = ['type', 'category', 'transmission', 'fuelType', 'minPrice', 'maxPrice', 'available', 'shopId', 'city']
