from django.contrib import admin
from .models import Order, OrderItem, Issue, Feedback


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'product_name', 'size', 'quantity', 'price_per_day', 'security_deposit',
                       'rental_fee', 'deposit', 'subtotal']


class IssueInline(admin.TabularInline):
    model = Issue
    extra = 0
    fields = ['issue_id', 'type', 'status', 'description', 'admin_response', 'raised_at', 'resolved_at']
    readonly_fields = ['issue_id', 'raised_at', 'resolved_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_name', 'shop_name', 'status', 'rental_start_date', 'rental_end_date', 'total_amount', 'order_date']
    list_filter = ['status', 'payment_method', 'order_date']
    search_fields = ['order_number', 'customer_name', 'shop_name', 'customer__email', 'vendor__email']
    ordering = ['-order_date']
    readonly_fields = ['order_number', 'order_date', 'returned_at', 'updated_at']
    inlines = [OrderItemInline, IssueInline]


@admin.register(Issue)
class IssueAdmin(admin.ModelAdmin):
    list_display = ['issue_id', 'order', 'type', 'status', 'raised_at', 'resolved_at']
    list_filter = ['status', 'type', 'raised_at']
    search_fields = ['issue_id', 'order__order_number', 'description']
    ordering = ['-raised_at']


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ['order', 'rating', 'item_name', 'submitted_at']
    list_filter = ['rating', 'submitted_at']
    search_fields = ['order__order_number', 'review']
