from decimal import Decimal

from django.db.models import Avg
from rest_framework import serializers

from styleswap.core.serializers import UserSummarySerializer
from .models import Product, ProductReview
from .validators import validate_string_list, validate_rating


class ProductSerializer(serializers.ModelSerializer):
    vendor = UserSummarySerializer(source='sub_admin', read_only=True)
    stock_status = serializers.CharField(read_only=True)
    average_rating = serializers.SerializerMethodField()
    review_count = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'vendor', 'name', 'category', 'description', 'price_per_day', 'retail_price',
                  'security_deposit', 'stock_quantity', 'available_quantity', 'stock_status', 'sizes',
                  'images', 'is_active', 'average_rating', 'review_count', 'created_at', 'updated_at']

    def get_average_rating(self, obj):
        # Annotated by list/detail queries; fall back to a query otherwise
        avg = getattr(obj, 'avg_rating', None)
        if avg is None and not hasattr(obj, 'avg_rating'):
            avg = obj.reviews.aggregate(avg=Avg('rating'))['avg']
        return round(float(avg), 1) if avg is not None else None

    def get_review_count(self, obj):
        count = getattr(obj, 'review_total', None)
        if count is None:
            count = obj.reviews.count()
        return count


class ProductWriteSerializer(serializers.ModelSerializer):
    """Create/update payload; ownership and availability rules live in the views"""
    price_per_day = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    security_deposit = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    retail_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, allow_null=True)
    stock_quantity = serializers.IntegerField(min_value=0)
    available_quantity = serializers.IntegerField(min_value=0, required=False)
    sizes = serializers.JSONField(required=False)
    images = serializers.JSONField(required=False)

    class Meta:
        model = Product
        fields = ['name', 'category', 'description', 'price_per_day', 'retail_price', 'security_deposit',
                  'stock_quantity', 'available_quantity', 'sizes', 'images', 'is_active']
        extra_kwargs = {
            'description': {'required': True, 'allow_blank': False},
        }

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_category(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Category is required')
        return value

    def validate_sizes(self, value):
        return validate_string_list(value, 'sizes')

    def validate_images(self, value):
        return validate_string_list(value, 'images')

    def validate(self, attrs):
        stock = attrs.get('stock_quantity', getattr(self.instance, 'stock_quantity', None))
        available = attrs.get('available_quantity')
        if available is not None and stock is not None and available > stock:
            raise serializers.ValidationError({'available_quantity': 'Available quantity cannot exceed stock quantity'})
        return attrs


class AvailabilitySerializer(serializers.Serializer):
    delta = serializers.IntegerField()


class ProductReviewSerializer(serializers.ModelSerializer):
    user = UserSummarySerializer(read_only=True)
    rating = serializers.IntegerField()

    class Meta:
        model = ProductReview
        fields = ['id', 'product', 'user', 'rating', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['product', 'created_at', 'updated_at']
        validators = []

    def validate_rating(self, value):
        return validate_rating(value)
