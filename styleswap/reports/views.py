import logging
from datetime import date
from decimal import Decimal

from django.db.models import Sum, Count, Avg, Q, DecimalField
from django.db.models.functions import TruncMonth
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from styleswap.core.cache_utils import (
    get_cached_dashboard_kpis, cache_dashboard_kpis,
    get_cached_vendor_sales, cache_vendor_sales
)
from styleswap.core.models import User
from styleswap.core.permissions import IsAdminRole, IsVendor
from styleswap.rentals.models import Order, OrderItem

logger = logging.getLogger(__name__)

TREND_MONTHS = 6


def month_starts(today, count):
    """First day of the last ``count`` months, oldest first, ending with today's month"""
    starts = []
    year, month = today.year, today.month
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


def percent_change(current, previous):
    """Month over month change in percent, rounded to one decimal"""
    current = float(current or 0)
    previous = float(previous or 0)
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def _revenue(queryset):
    return queryset.aggregate(total=Sum('total_amount', output_field=DecimalField()))['total'] or Decimal('0.00')


def _monthly_revenue(orders, today):
    """Revenue per month for the trend window, zero filled"""
    starts = month_starts(today, TREND_MONTHS)
    rows = orders.filter(order_date__date__gte=starts[0]).annotate(
        month=TruncMonth('order_date')
    ).values('month').annotate(
        revenue=Sum('total_amount', output_field=DecimalField()),
        orders=Count('id')
    )
    by_month = {}
    for row in rows:
        month = row['month']
        key = month.date() if hasattr(month, 'date') else month
        by_month[key] = row
    result = []
    for start in starts:
        row = by_month.get(start, {})
        result.append({
            'month': start.strftime('%Y-%m'),
            'label': start.strftime('%b %Y'),
            'revenue': float(row.get('revenue') or 0),
            'orders': row.get('orders', 0),
        })
    return result


def _previous_month_start(month_start):
    if month_start.month == 1:
        return date(month_start.year - 1, 12, 1)
    return date(month_start.year, month_start.month - 1, 1)


def _status_breakdown(orders):
    counts = {value: 0 for value, _ in Order.STATUS_CHOICES}
    for row in orders.values('status').annotate(count=Count('id')):
        counts[row['status']] = row['count']
    return counts


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    """Platform wide KPIs for the admin dashboard"""
    today = timezone.localdate()
    cached_data, cache_key = get_cached_dashboard_kpis(today)
    if cached_data is not None:
        return Response(cached_data)

    month_start = today.replace(day=1)
    last_month_start = _previous_month_start(month_start)
    orders = Order.objects.all()

    # Users
    role_counts = {value: 0 for value, _ in User.ROLE_CHOICES}
    for row in User.objects.values('role').annotate(count=Count('id')):
        role_counts[row['role']] = row['count']
    users_this_month = User.objects.filter(created_at__date__gte=month_start).count()
    users_last_month = User.objects.filter(
        created_at__date__gte=last_month_start, created_at__date__lt=month_start
    ).count()

    # Revenue
    total_revenue = _revenue(orders)
    today_revenue = _revenue(orders.filter(order_date__date=today))
    month_revenue = _revenue(orders.filter(order_date__date__gte=month_start))
    last_month_revenue = _revenue(orders.filter(
        order_date__date__gte=last_month_start, order_date__date__lt=month_start
    ))
    commission_earned = orders.aggregate(
        total=Sum('commission_amount', output_field=DecimalField())
    )['total'] or Decimal('0.00')

    # Rentals by date-derived status
    open_orders = orders.exclude(status=Order.STATUS_RETURNED)
    overdue_rentals = open_orders.filter(Q(status=Order.STATUS_OVERDUE) | Q(rental_end_date__lt=today)).count()
    active_rentals = open_orders.count() - overdue_rentals

    # Vendors missing profile details
    incomplete_vendors = [
        {
            'id': vendor.id,
            'name': vendor.name,
            'email': vendor.email,
            'shop_name': vendor.shop_name,
            'missing_fields': [
                field for field in ('shop_address', 'shop_number', 'mobile_number', 'sales_handler_mobile')
                if not getattr(vendor, field)
            ],
        }
        for vendor in User.objects.filter(role=User.ROLE_VENDOR).order_by('name')
        if not vendor.has_complete_shop_profile
    ]

    recent_orders = [
        {
            'id': order.id,
            'order_number': order.order_number,
            'customer_name': order.customer_name,
            'shop_name': order.shop_name,
            'total_amount': float(order.total_amount),
            'status': order.status,
            'current_status': order.current_status,
            'order_date': order.order_date,
        }
        for order in orders.order_by('-order_date', '-id')[:5]
    ]

    # Aggregate on the order table alone so item rows never multiply totals
    vendor_rows = list(
        orders.exclude(vendor__isnull=True).values('vendor_id').annotate(
            revenue=Sum('total_amount', output_field=DecimalField()),
            order_count=Count('id')
        ).order_by('-revenue')[:5]
    )
    vendors = User.objects.in_bulk([row['vendor_id'] for row in vendor_rows])
    top_vendors = [
        {
            'id': row['vendor_id'],
            'name': vendors[row['vendor_id']].name if row['vendor_id'] in vendors else None,
            'shop_name': vendors[row['vendor_id']].shop_name if row['vendor_id'] in vendors else None,
            'revenue': float(row['revenue'] or 0),
            'orders': row['order_count'],
        }
        for row in vendor_rows
    ]

    top_shops = [
        {
            'shop_name': row['shop_name'],
            'revenue': float(row['revenue'] or 0),
            'orders': row['order_count'],
        }
        for row in orders.exclude(shop_name='').values('shop_name').annotate(
            revenue=Sum('total_amount', output_field=DecimalField()),
            order_count=Count('id')
        ).order_by('-revenue')[:5]
    ]

    data = {
        'users': {
            'total': sum(role_counts.values()),
            'by_role': role_counts,
            'customers': role_counts[User.ROLE_CUSTOMER],
            'vendors': role_counts[User.ROLE_VENDOR],
            'admins': role_counts[User.ROLE_ADMIN],
            'new_this_month': users_this_month,
            'trend': percent_change(users_this_month, users_last_month),
        },
        'rentals': {
            'total_orders': orders.count(),
            'active': active_rentals,
            'overdue': overdue_rentals,
            'status_breakdown': _status_breakdown(orders),
        },
        'revenue': {
            'total': float(total_revenue),
            'today': float(today_revenue),
            'this_month': float(month_revenue),
            'last_month': float(last_month_revenue),
            'trend': percent_change(month_revenue, last_month_revenue),
            'commission_earned': float(commission_earned),
        },
        'incomplete_vendors': incomplete_vendors,
        'recent_orders': recent_orders,
        'top_vendors': top_vendors,
        'top_shops': top_shops,
        'monthly_revenue': _monthly_revenue(orders, today),
    }
    cache_dashboard_kpis(cache_key, data)
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsVendor])
def vendor_sales(request):
    """Sales analytics for a vendor; Admins may pass ?vendor=<id>"""
    vendor = request.user
    vendor_param = request.query_params.get('vendor')
    if vendor_param:
        if not request.user.is_admin_role:
            return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)
        try:
            vendor = User.objects.get(pk=int(vendor_param))
        except (TypeError, ValueError, User.DoesNotExist):
            return Response({'error': 'Vendor not found'}, status=status.HTTP_404_NOT_FOUND)

    today = timezone.localdate()
    cached_data, cache_key = get_cached_vendor_sales(vendor.id, today)
    if cached_data is not None:
        return Response(cached_data)

    month_start = today.replace(day=1)
    orders = Order.objects.filter(vendor=vendor)

    totals = orders.aggregate(
        revenue=Sum('total_amount', output_field=DecimalField()),
        average=Avg('total_amount', output_field=DecimalField()),
        count=Count('id'),
    )

    top_products = [
        {
            'product_id': row['product_id'],
            'product_name': row['product_name'],
            'revenue': float(row['revenue'] or 0),
            'quantity': row['quantity'] or 0,
        }
        for row in OrderItem.objects.filter(order__vendor=vendor).values('product_id', 'product_name').annotate(
            revenue=Sum('rental_fee', output_field=DecimalField()),
            quantity=Sum('quantity')
        ).order_by('-revenue')[:5]
    ]

    data = {
        'vendor': {'id': vendor.id, 'name': vendor.name, 'shop_name': vendor.shop_name},
        'total_revenue': float(totals['revenue'] or 0),
        'this_month_revenue': float(_revenue(orders.filter(order_date__date__gte=month_start))),
        'average_order_value': round(float(totals['average'] or 0), 2),
        'total_orders': totals['count'],
        'status_breakdown': _status_breakdown(orders),
        'monthly_revenue': _monthly_revenue(orders, today),
        'top_products': top_products,
    }
    cache_vendor_sales(cache_key, data)
    return Response(data)
