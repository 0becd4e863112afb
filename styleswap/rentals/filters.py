import django_filters
from django.db.models import Q

from .models import Order, Issue


class OrderFilter(django_filters.FilterSet):
    """Filter for order listings"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.CharFilter(field_name='status', lookup_expr='exact')
    vendor = django_filters.NumberFilter(field_name='vendor_id', lookup_expr='exact')
    customer = django_filters.NumberFilter(field_name='customer_id', lookup_expr='exact')
    date_from = django_filters.DateFilter(field_name='order_date', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='order_date', lookup_expr='date__lte')

    class Meta:
        model = Order
        fields = ['search', 'status', 'vendor', 'customer', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        if not value or not value.strip():
            return queryset
        value = value.strip()
        return queryset.filter(
            Q(order_number__icontains=value) |
            Q(customer_name__icontains=value) |
            Q(shop_name__icontains=value) |
            Q(items__product_name__icontains=value)
        ).distinct()


class IssueFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name='status', lookup_expr='exact')
    type = django_filters.CharFilter(field_name='type', lookup_expr='exact')
    order = django_filters.NumberFilter(field_name='order_id', lookup_expr='exact')

    class Meta:
        model = Issue
        fields = ['status', 'type', 'order']
