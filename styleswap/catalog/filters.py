import django_filters
from django.db.models import Q

from .models import Product
from .utils import match_size


class ProductFilter(django_filters.FilterSet):
    """Filter for the public product listing"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    vendor = django_filters.NumberFilter(field_name='sub_admin_id', lookup_expr='exact')
    size = django_filters.CharFilter(method='filter_size', label='Size')
    min_price = django_filters.NumberFilter(field_name='price_per_day', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price_per_day', lookup_expr='lte')
    in_stock = django_filters.CharFilter(method='filter_in_stock', label='In Stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'vendor', 'size', 'min_price', 'max_price', 'in_stock']

    def filter_search(self, queryset, name, value):
        """Every word must appear in the name, category, description or shop name"""
        if not value or not value.strip():
            return queryset
        for word in value.split():
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(category__icontains=word) |
                Q(description__icontains=word) |
                Q(sub_admin__shop_name__icontains=word)
            )
        return queryset

    def filter_size(self, queryset, name, value):
        if not value:
            return queryset
        matching_ids = [
            product_id for product_id, sizes in queryset.values_list('id', 'sizes')
            if match_size(sizes, value) is not None
        ]
        return queryset.filter(id__in=matching_ids)

    def filter_in_stock(self, queryset, name, value):
        if value is None or value == '':
            return queryset
        if str(value).lower() in ('true', '1', 'yes'):
            return queryset.filter(available_quantity__gt=0)
        return queryset.filter(available_quantity=0)
