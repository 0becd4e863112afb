"""
Test suite for Catalog module
Tests: product listing and filters, vendor product management, availability, reviews
"""
from decimal import Decimal

from django.core.cache import cache
from django.db import connection
from django.db.models.signals import pre_save
from django.test import TestCase
from django.test.utils import CaptureQueriesContext
from rest_framework import status

from styleswap.catalog.models import Product, ProductReview
from styleswap.catalog.utils import get_stock_status, clamp_availability
from styleswap.core.models import AuditLog
from styleswap.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class StockStatusTests(TestCase):
    """Test stock helpers"""

    def test_stock_status_labels(self):
        self.assertEqual(get_stock_status(0), 'Out of Stock')
        self.assertEqual(get_stock_status(1), 'Low Stock')
        self.assertEqual(get_stock_status(2), 'Low Stock')
        self.assertEqual(get_stock_status(3), 'In Stock')

    def test_clamp_availability(self):
        self.assertEqual(clamp_availability(2, 5, 4), 4)
        self.assertEqual(clamp_availability(2, -5, 4), 0)
        self.assertEqual(clamp_availability(2, 1, 4), 3)


class ProductListTests(TestCase):
    """Test public product listing"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.vendor = TestDataFactory.create_vendor(shop_name='Royal Threads')
        self.lehenga = TestDataFactory.create_product(
            vendor=self.vendor, name='Sabyasachi Lehenga', category='Wedding Attire',
            price_per_day=Decimal('4500.00'), stock_quantity=2, sizes=['S', 'M']
        )
        self.sari = TestDataFactory.create_product(
            vendor=self.vendor, name='Manish Malhotra Sari', category='Sarees',
            price_per_day=Decimal('3500.00'), stock_quantity=3, available_quantity=0, sizes=['One Size']
        )
        self.hidden = TestDataFactory.create_product(vendor=self.vendor, name='Archived Gown', is_active=False)

    def tearDown(self):
        cache.clear()

    def test_list_is_public_and_excludes_inactive(self):
        response = self.client.get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [p['name'] for p in response.data['results']]
        self.assertEqual(response.data['count'], 2)
        self.assertIn('Sabyasachi Lehenga', names)
        self.assertNotIn('Archived Gown', names)

    def test_list_payload(self):
        TestDataFactory.create_review(self.lehenga, TestDataFactory.create_user(), rating=4)
        TestDataFactory.create_review(self.lehenga, TestDataFactory.create_user(), rating=5)
        response = self.client.get('/api/products/', {'search': 'lehenga'})
        product = response.data['results'][0]
        self.assertEqual(product['vendor']['shop_name'], 'Royal Threads')
        self.assertEqual(product['stock_status'], 'Low Stock')
        self.assertEqual(product['average_rating'], 4.5)
        self.assertEqual(product['review_count'], 2)

    def test_filters(self):
        response = self.client.get('/api/products/', {'category': 'sarees'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Manish Malhotra Sari'])

        response = self.client.get('/api/products/', {'min_price': 4000})
        self.assertEqual([p['name'] for p in response.data['results']], ['Sabyasachi Lehenga'])

        response = self.client.get('/api/products/', {'size': 'one size'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Manish Malhotra Sari'])

        response = self.client.get('/api/products/', {'in_stock': 'true'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Sabyasachi Lehenga'])

    def test_search_by_shop_name(self):
        other = TestDataFactory.create_vendor(shop_name='Other Boutique')
        TestDataFactory.create_product(vendor=other, name='Velvet Sherwani')
        response = self.client.get('/api/products/', {'search': 'royal'})
        self.assertEqual(response.data['count'], 2)

    def test_pagination(self):
        response = self.client.get('/api/products/', {'limit': 1})
        self.assertEqual(len(response.data['results']), 1)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)

    def test_list_cache_refreshes_after_product_change(self):
        self.assertEqual(self.client.get('/api/products/').data['count'], 2)

        # queryset.update() sends no signals, so the cached page is still served
        Product.objects.filter(pk=self.hidden.pk).update(is_active=True)
        self.assertEqual(self.client.get('/api/products/').data['count'], 2)

        self.client.authenticate_user(self.vendor)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.patch(f'/api/products/{self.lehenga.id}/', {'name': 'Bridal Lehenga'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/products/')
        self.assertEqual(response.data['count'], 3)
        self.assertIn('Bridal Lehenga', [p['name'] for p in response.data['results']])

    def test_list_cache_refreshes_after_review(self):
        response = self.client.get('/api/products/', {'search': 'lehenga'})
        self.assertIsNone(response.data['results'][0]['average_rating'])

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_review(self.lehenga, TestDataFactory.create_user(), rating=4)

        response = self.client.get('/api/products/', {'search': 'lehenga'})
        self.assertEqual(response.data['results'][0]['average_rating'], 4.0)

    def test_categories(self):
        response = self.client.get('/api/products/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [
            {'name': 'Sarees', 'count': 1},
            {'name': 'Wedding Attire', 'count': 1},
        ])

    def test_detail(self):
        response = self.client.get(f'/api/products/{self.lehenga.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Sabyasachi Lehenga')
        self.assertIsNone(response.data['average_rating'])

    def test_detail_not_found(self):
        response = self.client.get('/api/products/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)


class ProductManagementTests(TestCase):
    """Test vendor product create, update, delete and availability"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.vendor = TestDataFactory.create_vendor()
        self.other_vendor = TestDataFactory.create_vendor()
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(vendor=self.vendor, stock_quantity=5, available_quantity=3)

    def tearDown(self):
        cache.clear()

    def _payload(self, **overrides):
        payload = {
            'name': 'Anarkali Suit',
            'category': 'Festive',
            'description': 'Hand embroidered anarkali',
            'price_per_day': '1200.00',
            'security_deposit': '8000.00',
            'stock_quantity': 4,
            'sizes': ['M', 'L'],
            'images': ['https://example.com/a.jpg'],
        }
        payload.update(overrides)
        return payload

    def test_vendor_creates_product(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.post('/api/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['available_quantity'], 4)
        self.assertEqual(response.data['vendor']['id'], self.vendor.id)
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_customer_cannot_create_product(self):
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_create_product(self):
        response = self.client.post('/api/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_validation(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.post('/api/products/', self._payload(price_per_day='0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price_per_day', response.data['details'])

        response = self.client.post('/api/products/', self._payload(stock_quantity=-1), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        payload = self._payload()
        del payload['category']
        response = self.client.post('/api/products/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.data['details'])

    def test_mine_lists_own_products(self):
        TestDataFactory.create_product(vendor=self.other_vendor)
        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/products/mine/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data], [self.product.id])

    def test_stock_change_shifts_availability(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/', {'stock_quantity': 7}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 7)
        self.assertEqual(self.product.available_quantity, 5)

    def test_stock_decrease_clamps_availability(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.put(f'/api/products/{self.product.id}/', {'stock_quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.available_quantity, 0)

    def test_update_keeps_reservation_made_during_edit(self):
        def reserve_unit(sender, instance, **kwargs):
            Product.objects.filter(pk=instance.pk).update(available_quantity=2)

        pre_save.connect(reserve_unit, sender=Product)
        self.addCleanup(pre_save.disconnect, reserve_unit, sender=Product)

        self.client.authenticate_user(self.vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.name, 'Renamed')
        self.assertEqual(self.product.available_quantity, 2)

    def test_update_writes_only_submitted_fields(self):
        self.client.authenticate_user(self.vendor)
        with CaptureQueriesContext(connection) as queries:
            self.client.patch(f'/api/products/{self.product.id}/', {'name': 'Renamed'}, format='json')
        updates = [q['sql'] for q in queries.captured_queries if q['sql'].startswith('UPDATE "products"')]
        self.assertEqual(len(updates), 1)
        self.assertNotIn('available_quantity', updates[0])

    def test_explicit_availability_above_stock_rejected(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/', {'available_quantity': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Available quantity cannot exceed stock quantity')

    def test_other_vendor_cannot_update(self):
        self.client.authenticate_user(self.other_vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/', {'name': 'Mine now'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_update(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/products/{self.product.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Renamed')

    def test_owner_deletes_product(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.delete(f'/api/products/{self.product.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=self.product.id).exists())

    def test_availability_delta_is_clamped(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/availability/', {'delta': 10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['available_quantity'], 5)

        response = self.client.patch(f'/api/products/{self.product.id}/availability/', {'delta': -20}, format='json')
        self.assertEqual(response.data['available_quantity'], 0)
        self.assertEqual(response.data['stock_status'], 'Out of Stock')
        self.assertEqual(AuditLog.objects.filter(action='availability_adjust').count(), 2)

    def test_availability_requires_owner(self):
        self.client.authenticate_user(self.other_vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/availability/', {'delta': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.product.refresh_from_db()
        self.assertEqual(self.product.available_quantity, 3)

    def test_availability_requires_delta(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.patch(f'/api/products/{self.product.id}/availability/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProductReviewTests(TestCase):
    """Test product reviews"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product()

    def test_review_upsert(self):
        self.client.authenticate_user(self.customer)
        url = f'/api/products/{self.product.id}/reviews/'
        response = self.client.post(url, {'rating': 4, 'comment': 'Good'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, {'rating': 2, 'comment': 'Changed my mind'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(ProductReview.objects.filter(product=self.product).count(), 1)
        self.assertEqual(ProductReview.objects.get(product=self.product).rating, 2)

    def test_review_rating_range(self):
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/products/{self.product.id}/reviews/', {'rating': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Rating must be between 1 and 5')

    def test_reviews_are_public_but_posting_requires_login(self):
        TestDataFactory.create_review(self.product, self.customer)
        response = self.client.get(f'/api/products/{self.product.id}/reviews/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.post(f'/api/products/{self.product.id}/reviews/', {'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
