from rest_framework import serializers

from styleswap.catalog.validators import validate_string_list, validate_rating
from styleswap.core.serializers import UserSummarySerializer
from .models import Order, OrderItem, Issue, Feedback


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'size', 'image', 'quantity', 'price_per_day',
                  'security_deposit', 'rental_fee', 'deposit', 'subtotal']


class IssueSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Issue
        fields = ['id', 'issue_id', 'order', 'order_number', 'type', 'type_display', 'description',
                  'item_index', 'item_name', 'status', 'admin_response', 'raised_at', 'resolved_at']


class FeedbackSerializer(serializers.ModelSerializer):
    rating = serializers.IntegerField()
    tags = serializers.JSONField(required=False)

    class Meta:
        model = Feedback
        fields = ['id', 'rating', 'review', 'tags', 'item_index', 'item_name', 'submitted_at']
        read_only_fields = ['submitted_at']

    def validate_rating(self, value):
        return validate_rating(value)

    def validate_tags(self, value):
        return validate_string_list(value, 'tags')


class OrderSerializer(serializers.ModelSerializer):
    customer = UserSummarySerializer(read_only=True)
    vendor = UserSummarySerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    issues = IssueSerializer(many=True, read_only=True)
    feedback = serializers.SerializerMethodField()
    current_status = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'vendor', 'shop_name',
                  'rental_start_date', 'rental_end_date', 'rental_days', 'rental_fee_total',
                  'deposit_total', 'total_amount', 'commission_amount', 'payment_method', 'status',
                  'current_status', 'order_date', 'returned_at', 'updated_at', 'items', 'issues', 'feedback']

    def get_feedback(self, obj):
        try:
            return FeedbackSerializer(obj.feedback).data
        except Feedback.DoesNotExist:
            return None


class OrderItemInputSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)
    size = serializers.CharField(required=False, allow_blank=True, default='')


class OrderCreateSerializer(serializers.Serializer):
    vendor_id = serializers.IntegerField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    rental_start_date = serializers.DateField()
    rental_end_date = serializers.DateField()
    payment_method = serializers.CharField(required=False, allow_blank=True, default='Cash on Delivery')

    def validate(self, attrs):
        if attrs['rental_end_date'] < attrs['rental_start_date']:
            raise serializers.ValidationError({'rental_end_date': 'Rental end date must not be before the start date'})
        if not attrs.get('payment_method'):
            attrs['payment_method'] = 'Cash on Delivery'
        return attrs


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, error_messages={'invalid_choice': 'Invalid status'})


class IssueCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Issue
        fields = ['type', 'description', 'item_index', 'item_name']
        extra_kwargs = {
            'type': {'error_messages': {'invalid_choice': 'Invalid issue type'}},
        }

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Description is required')
        return value


class IssueUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Issue.STATUS_CHOICES, error_messages={'invalid_choice': 'Invalid status'})
    admin_response = serializers.CharField(required=False, allow_blank=True)
