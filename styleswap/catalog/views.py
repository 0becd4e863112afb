import logging

from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Avg, Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from styleswap.core.cache_utils import get_cached_products_list, cache_products_list
from styleswap.core.permissions import IsVendor, IsVendorOrReadOnly, can_manage_product
from styleswap.core.utils import create_audit_log
from .filters import ProductFilter
from .models import Product, ProductReview
from .serializers import (
    ProductSerializer, ProductWriteSerializer, AvailabilitySerializer, ProductReviewSerializer
)
from .utils import clamp_availability, shift_availability_for_stock_change

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def _product_queryset():
    return Product.objects.select_related('sub_admin').annotate(
        avg_rating=Avg('reviews__rating'),
        review_total=Count('reviews', distinct=True),
    )


def _parse_positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@api_view(['GET', 'POST'])
@permission_classes([IsVendorOrReadOnly])
def product_list_create(request):
    """List active products or create a new product"""
    if request.method == 'GET':
        page = _parse_positive_int(request.query_params.get('page'), 1)
        limit = _parse_positive_int(request.query_params.get('limit'), DEFAULT_PAGE_SIZE)

        filters_dict = {key: request.query_params.get(key) for key in sorted(request.query_params.keys())}
        filters_dict.update({'page': page, 'limit': limit})
        cached_data, cache_key = get_cached_products_list(filters_dict)
        if cached_data is not None:
            return Response(cached_data)

        queryset = _product_queryset().filter(is_active=True)
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response({'error': 'Invalid filter', 'details': filterset.errors}, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-created_at', '-id')

        paginator = Paginator(queryset, limit)
        page_obj = paginator.get_page(page)

        serializer = ProductSerializer(page_obj, many=True)
        data = {
            'results': serializer.data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        }
        cache_products_list(cache_key, data)
        return Response(data)

    serializer = ProductWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data
    # New listings start fully available unless told otherwise
    validated.setdefault('available_quantity', validated['stock_quantity'])
    product = serializer.save(sub_admin=request.user)

    logger.info(f"Product {product.id} created by {request.user.email}")
    create_audit_log(
        request=request,
        action='create',
        model_name='Product',
        object_id=str(product.id),
        object_name=product.name,
        changes={'stock_quantity': product.stock_quantity, 'price_per_day': float(product.price_per_day)}
    )
    return Response(ProductSerializer(_product_queryset().get(pk=product.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def product_categories(request):
    """Distinct categories of active products with their counts"""
    rows = (
        Product.objects.filter(is_active=True)
        .values('category')
        .annotate(count=Count('id'))
        .order_by('category')
    )
    return Response([{'name': row['category'], 'count': row['count']} for row in rows])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsVendor])
def product_mine(request):
    """Products owned by the calling vendor"""
    queryset = _product_queryset().filter(sub_admin=request.user).order_by('-created_at')
    serializer = ProductSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsVendorOrReadOnly])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(_product_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    if not can_manage_product(request.user, product):
        return Response({'error': 'You can only manage your own products'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        product_id, product_name = product.id, product.name
        product.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='Product',
            object_id=str(product_id),
            object_name=product_name
        )
        return Response({'message': 'Product deleted'}, status=status.HTTP_200_OK)

    # PUT and PATCH are both partial
    with transaction.atomic():
        product = get_object_or_404(Product.objects.select_for_update(), pk=pk)
        serializer = ProductWriteSerializer(product, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        validated = serializer.validated_data

        new_stock = validated.get('stock_quantity')
        if new_stock is not None and 'available_quantity' not in validated:
            validated['available_quantity'] = shift_availability_for_stock_change(product, new_stock)

        before = {field: getattr(product, field) for field in validated.keys()}
        for field, value in validated.items():
            setattr(product, field, value)
        # Write only the submitted columns
        product.save(update_fields=list(validated.keys()) + ['updated_at'])

    changes = {
        field: {'old': str(before[field]), 'new': str(getattr(product, field))}
        for field in validated.keys() if before[field] != getattr(product, field)
    }
    create_audit_log(
        request=request,
        action='update',
        model_name='Product',
        object_id=str(product.id),
        object_name=product.name,
        changes=changes
    )
    return Response(ProductSerializer(_product_queryset().get(pk=product.pk)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsVendor])
def product_availability(request, pk):
    """Shift the available count by ``delta``, clamped to [0, stock_quantity]"""
    serializer = AvailabilitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    delta = serializer.validated_data['delta']

    with transaction.atomic():
        product = get_object_or_404(Product.objects.select_for_update(), pk=pk)
        if not can_manage_product(request.user, product):
            return Response({'error': 'You can only manage your own products'}, status=status.HTTP_403_FORBIDDEN)
        old_available = product.available_quantity
        product.available_quantity = clamp_availability(old_available, delta, product.stock_quantity)
        product.save(update_fields=['available_quantity', 'updated_at'])

    create_audit_log(
        request=request,
        action='availability_adjust',
        model_name='Product',
        object_id=str(product.id),
        object_name=product.name,
        changes={'delta': delta, 'old': old_available, 'new': product.available_quantity}
    )
    return Response(ProductSerializer(_product_queryset().get(pk=product.pk)).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticatedOrReadOnly])
def product_reviews(request, pk):
    """List a product's reviews or upsert the caller's review"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        reviews = product.reviews.select_related('user').order_by('-created_at')
        return Response(ProductReviewSerializer(reviews, many=True).data)

    serializer = ProductReviewSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    review, created = ProductReview.objects.update_or_create(
        product=product,
        user=request.user,
        defaults={
            'rating': serializer.validated_data['rating'],
            'comment': serializer.validated_data.get('comment', ''),
        }
    )
    return Response(
        ProductReviewSerializer(review).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )
