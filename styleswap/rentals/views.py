import logging
from collections import Counter

from django.core.paginator import Paginator
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from styleswap.catalog.models import Product
from styleswap.catalog.utils import match_size
from styleswap.core.models import User
from styleswap.core.permissions import IsAdminRole, IsVendor
from styleswap.core.utils import create_audit_log, get_commission_rate
from .filters import OrderFilter, IssueFilter
from .models import Order, OrderItem, Issue, Feedback
from .serializers import (
    OrderSerializer, OrderCreateSerializer, OrderStatusSerializer,
    FeedbackSerializer, IssueSerializer, IssueCreateSerializer, IssueUpdateSerializer
)
from .utils import (
    calculate_rental_days, calculate_line_amounts, calculate_commission,
    generate_order_number, generate_issue_id
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def _order_queryset():
    return Order.objects.select_related('customer', 'vendor', 'feedback').prefetch_related('items', 'issues')


def _filtered_orders(request, queryset):
    filterset = OrderFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return None, filterset.errors
    return filterset.qs.order_by('-order_date', '-id'), None


def _can_view_order(user, order):
    return user.is_admin_role or order.customer_id == user.id or order.vendor_id == user.id


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List all orders (Admin) or place a new rental order"""
    if request.method == 'GET':
        if not request.user.is_admin_role:
            return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)

        queryset, errors = _filtered_orders(request, _order_queryset())
        if errors is not None:
            return Response({'error': 'Invalid filter', 'details': errors}, status=status.HTTP_400_BAD_REQUEST)

        try:
            page = max(int(request.query_params.get('page', 1)), 1)
            limit = max(int(request.query_params.get('limit', DEFAULT_PAGE_SIZE)), 1)
        except (TypeError, ValueError):
            return Response({'error': 'page and limit must be integers'}, status=status.HTTP_400_BAD_REQUEST)

        paginator = Paginator(queryset, limit)
        page_obj = paginator.get_page(page)
        serializer = OrderSerializer(page_obj, many=True)
        return Response({
            'results': serializer.data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        })

    serializer = OrderCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    vendor = User.objects.filter(
        pk=data['vendor_id'], role__in=[User.ROLE_VENDOR, User.ROLE_ADMIN]
    ).first()
    if vendor is None:
        return Response({'error': 'Vendor not found'}, status=status.HTTP_400_BAD_REQUEST)

    requested = Counter()
    for item in data['items']:
        requested[item['product_id']] += item['quantity']

    rental_days = calculate_rental_days(data['rental_start_date'], data['rental_end_date'])

    with transaction.atomic():
        # Lock the product rows so concurrent orders cannot both take the last unit
        products = {
            product.id: product
            for product in Product.objects.select_for_update().filter(id__in=list(requested.keys()))
        }

        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None or not product.is_active:
                return Response({'error': f'Product {product_id} not found'}, status=status.HTTP_400_BAD_REQUEST)
            if product.sub_admin_id != vendor.id:
                return Response({'error': f'{product.name} is not sold by this vendor'}, status=status.HTTP_400_BAD_REQUEST)
            if product.available_quantity < quantity:
                return Response(
                    {'error': f'Insufficient availability for {product.name}: requested {quantity}, available {product.available_quantity}'},
                    status=status.HTTP_409_CONFLICT
                )

        sizes = []
        for item in data['items']:
            product = products[item['product_id']]
            size = (item.get('size') or '').strip()
            if size and product.sizes:
                offered = match_size(product.sizes, size)
                if offered is None:
                    return Response({'error': f'Size {size} is not offered for {product.name}'}, status=status.HTTP_400_BAD_REQUEST)
                size = offered
            sizes.append(size)

        order = Order.objects.create(
            order_number=generate_order_number(),
            customer=request.user,
            customer_name=request.user.name,
            vendor=vendor,
            shop_name=vendor.shop_name or vendor.name,
            rental_start_date=data['rental_start_date'],
            rental_end_date=data['rental_end_date'],
            rental_days=rental_days,
            payment_method=data['payment_method'],
            status=Order.STATUS_ACTIVE,
        )

        rental_fee_total = 0
        deposit_total = 0
        for item, size in zip(data['items'], sizes):
            product = products[item['product_id']]
            rental_fee, deposit, subtotal = calculate_line_amounts(
                product.price_per_day, product.security_deposit, item['quantity'], rental_days
            )
            OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                size=size,
                image=product.images[0] if product.images else '',
                quantity=item['quantity'],
                price_per_day=product.price_per_day,
                security_deposit=product.security_deposit,
                rental_fee=rental_fee,
                deposit=deposit,
                subtotal=subtotal,
            )
            rental_fee_total += rental_fee
            deposit_total += deposit

        for product_id, quantity in requested.items():
            product = products[product_id]
            product.available_quantity -= quantity
            product.save(update_fields=['available_quantity', 'updated_at'])

        order.rental_fee_total = rental_fee_total
        order.deposit_total = deposit_total
        order.total_amount = rental_fee_total + deposit_total
        order.commission_amount = calculate_commission(rental_fee_total, get_commission_rate())
        order.save(update_fields=['rental_fee_total', 'deposit_total', 'total_amount', 'commission_amount', 'updated_at'])

    logger.info(f"Order {order.order_number} placed by {request.user.email} with vendor {vendor.email}")
    create_audit_log(
        request=request,
        action='order_place',
        model_name='Order',
        object_id=str(order.id),
        object_name=order.order_number,
        object_reference=order.order_number,
        changes={'total_amount': float(order.total_amount), 'items': len(data['items'])}
    )
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_mine(request):
    """Orders placed by the caller"""
    queryset, errors = _filtered_orders(request, _order_queryset().filter(customer=request.user))
    if errors is not None:
        return Response({'error': 'Invalid filter', 'details': errors}, status=status.HTTP_400_BAD_REQUEST)
    return Response(OrderSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsVendor])
def order_vendor(request):
    """Orders fulfilled by the calling vendor"""
    queryset, errors = _filtered_orders(request, _order_queryset().filter(vendor=request.user))
    if errors is not None:
        return Response({'error': 'Invalid filter', 'details': errors}, status=status.HTTP_400_BAD_REQUEST)
    return Response(OrderSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    if not _can_view_order(request.user, order):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    return Response(OrderSerializer(order).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def order_status(request, pk):
    """Move an order through its lifecycle; returning it releases the reserved units"""
    serializer = OrderStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    new_status = serializer.validated_data['status']

    with transaction.atomic():
        order = get_object_or_404(Order.objects.select_for_update(), pk=pk)
        if not _can_view_order(request.user, order):
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

        old_status = order.status
        if old_status == Order.STATUS_RETURNED and new_status != Order.STATUS_RETURNED:
            return Response({'error': 'A returned order cannot be reopened'}, status=status.HTTP_400_BAD_REQUEST)

        if new_status == Order.STATUS_RETURNED and old_status != Order.STATUS_RETURNED:
            quantities = Counter()
            for item in order.items.exclude(product__isnull=True):
                quantities[item.product_id] += item.quantity
            for product in Product.objects.select_for_update().filter(id__in=list(quantities.keys())):
                product.available_quantity = min(product.stock_quantity, product.available_quantity + quantities[product.id])
                product.save(update_fields=['available_quantity', 'updated_at'])
            order.returned_at = timezone.now()

        order.status = new_status
        order.save(update_fields=['status', 'returned_at', 'updated_at'])

    if old_status != new_status:
        logger.info(f"Order {order.order_number} moved from {old_status} to {new_status} by {request.user.email}")
        create_audit_log(
            request=request,
            action='order_status',
            model_name='Order',
            object_id=str(order.id),
            object_name=order.order_number,
            object_reference=order.order_number,
            changes={'old': old_status, 'new': new_status}
        )
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def order_feedback(request, pk):
    """Create or replace the feedback of an order"""
    order = get_object_or_404(Order, pk=pk)
    if order.customer_id != request.user.id:
        return Response({'error': 'Only the customer can leave feedback'}, status=status.HTTP_403_FORBIDDEN)

    serializer = FeedbackSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    feedback, created = Feedback.objects.update_or_create(
        order=order,
        defaults={
            'rating': data['rating'],
            'review': data.get('review', ''),
            'tags': data.get('tags', []),
            'item_index': data.get('item_index'),
            'item_name': data.get('item_name', ''),
        }
    )
    create_audit_log(
        request=request,
        action='feedback_submit',
        model_name='Feedback',
        object_id=str(feedback.id),
        object_name=order.order_number,
        object_reference=order.order_number,
        changes={'rating': feedback.rating, 'created': created}
    )
    return Response(FeedbackSerializer(feedback).data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_issue_create(request, pk):
    """Raise an issue against an order"""
    order = get_object_or_404(Order, pk=pk)
    if order.customer_id != request.user.id:
        return Response({'error': 'Only the customer can raise an issue'}, status=status.HTTP_403_FORBIDDEN)

    serializer = IssueCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    issue = serializer.save(order=order, issue_id=generate_issue_id(), status=Issue.STATUS_OPEN)

    logger.info(f"Issue {issue.issue_id} raised on order {order.order_number}")
    create_audit_log(
        request=request,
        action='issue_raise',
        model_name='Issue',
        object_id=str(issue.id),
        object_name=order.order_number,
        object_reference=issue.issue_id,
        changes={'type': issue.type}
    )
    return Response(IssueSerializer(issue).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsAdminRole])
def order_issue_update(request, pk, issue_id):
    """Admin response to an issue"""
    issue = get_object_or_404(Issue.objects.select_related('order'), order_id=pk, issue_id=issue_id)

    serializer = IssueUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    old_status = issue.status
    issue.status = data['status']
    if 'admin_response' in data:
        issue.admin_response = data['admin_response']
    if issue.status in Issue.FINAL_STATUSES:
        if old_status not in Issue.FINAL_STATUSES or issue.resolved_at is None:
            issue.resolved_at = timezone.now()
    else:
        issue.resolved_at = None
    issue.save()

    create_audit_log(
        request=request,
        action='issue_update',
        model_name='Issue',
        object_id=str(issue.id),
        object_name=issue.order.order_number,
        object_reference=issue.issue_id,
        changes={'old': old_status, 'new': issue.status}
    )
    return Response(IssueSerializer(issue).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def issue_list(request):
    """Issues across all orders"""
    queryset = Issue.objects.select_related('order').all()
    filterset = IssueFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response({'error': 'Invalid filter', 'details': filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
    queryset = filterset.qs.order_by('-raised_at', '-id')
    return Response(IssueSerializer(queryset, many=True).data)
