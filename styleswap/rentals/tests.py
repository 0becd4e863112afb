"""
Test suite for Rentals module
Tests: order placement and pricing, availability reservation, status lifecycle,
feedback, issues and the rental status command
"""
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from styleswap.core.cache_utils import get_cached_dashboard_kpis, cache_dashboard_kpis
from styleswap.core.models import AuditLog, Setting
from styleswap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from styleswap.rentals.models import Order, Issue, Feedback
from styleswap.rentals.utils import (
    calculate_rental_days, calculate_line_amounts, calculate_commission, get_rental_status
)


class RentalUtilsTests(TestCase):
    """Test pricing and status helpers"""

    def test_rental_days_minimum_one(self):
        self.assertEqual(calculate_rental_days(date(2024, 5, 1), date(2024, 5, 4)), 3)
        self.assertEqual(calculate_rental_days(date(2024, 5, 1), date(2024, 5, 1)), 1)

    def test_line_amounts(self):
        fee, deposit, subtotal = calculate_line_amounts(Decimal('4500'), Decimal('50000'), 2, 3)
        self.assertEqual(fee, Decimal('27000.00'))
        self.assertEqual(deposit, Decimal('100000.00'))
        self.assertEqual(subtotal, Decimal('127000.00'))

    def test_commission(self):
        self.assertEqual(calculate_commission(Decimal('27000'), 15), Decimal('4050.00'))

    def test_rental_status_by_date(self):
        today = date(2024, 5, 10)
        self.assertEqual(get_rental_status(Order.STATUS_ACTIVE, date(2024, 5, 9), today), Order.STATUS_OVERDUE)
        self.assertEqual(get_rental_status(Order.STATUS_ACTIVE, date(2024, 5, 10), today), Order.STATUS_PENDING_RETURN)
        self.assertEqual(get_rental_status(Order.STATUS_ACTIVE, date(2024, 5, 11), today), Order.STATUS_PENDING_RETURN)
        self.assertEqual(get_rental_status(Order.STATUS_OVERDUE, date(2024, 5, 20), today), Order.STATUS_ACTIVE)
        self.assertEqual(get_rental_status(Order.STATUS_RETURNED, date(2024, 5, 1), today), Order.STATUS_RETURNED)


class OrderPlacementTests(TestCase):
    """Test placing rental orders"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.vendor = TestDataFactory.create_vendor(shop_name='Royal Threads')
        self.customer = TestDataFactory.create_user(name='Asha')
        self.product = TestDataFactory.create_product(
            vendor=self.vendor, name='Sabyasachi Lehenga', price_per_day=Decimal('4500.00'),
            security_deposit=Decimal('50000.00'), stock_quantity=2, sizes=['S', 'M']
        )
        self.start = timezone.localdate() + timedelta(days=1)
        self.end = self.start + timedelta(days=3)
        self.client.authenticate_user(self.customer)

    def tearDown(self):
        cache.clear()

    def _payload(self, quantity=1, **overrides):
        payload = {
            'vendor_id': self.vendor.id,
            'items': [{'product_id': self.product.id, 'quantity': quantity, 'size': 'M'}],
            'rental_start_date': self.start.isoformat(),
            'rental_end_date': self.end.isoformat(),
        }
        payload.update(overrides)
        return payload

    def test_place_order_prices_from_product(self):
        response = self.client.post('/api/orders/', self._payload(quantity=2), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data
        self.assertEqual(data['rental_days'], 3)
        self.assertEqual(Decimal(str(data['rental_fee_total'])), Decimal('27000.00'))
        self.assertEqual(Decimal(str(data['deposit_total'])), Decimal('100000.00'))
        self.assertEqual(Decimal(str(data['total_amount'])), Decimal('127000.00'))
        self.assertEqual(Decimal(str(data['commission_amount'])), Decimal('4050.00'))
        self.assertEqual(data['status'], Order.STATUS_ACTIVE)
        self.assertEqual(data['payment_method'], 'Cash on Delivery')
        self.assertEqual(data['customer_name'], 'Asha')
        self.assertEqual(data['shop_name'], 'Royal Threads')
        self.assertEqual(data['items'][0]['product_name'], 'Sabyasachi Lehenga')
        self.assertTrue(data['order_number'].startswith('ORD-'))

        self.product.refresh_from_db()
        self.assertEqual(self.product.available_quantity, 0)
        self.assertTrue(AuditLog.objects.filter(action='order_place').exists())

    def test_commission_uses_platform_setting(self):
        Setting.objects.create(key='commission_rate', value='10')
        response = self.client.post('/api/orders/', self._payload(), format='json')
        self.assertEqual(Decimal(str(response.data['commission_amount'])), Decimal('1350.00'))

    def test_same_day_rental_counts_one_day(self):
        response = self.client.post('/api/orders/', self._payload(rental_end_date=self.start.isoformat()), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['rental_days'], 1)

    def test_insufficient_availability(self):
        response = self.client.post('/api/orders/', self._payload(quantity=3), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('Insufficient availability', response.data['error'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.available_quantity, 2)
        self.assertEqual(Order.objects.count(), 0)

    def test_second_order_for_last_unit_conflicts(self):
        self.client.post('/api/orders/', self._payload(quantity=2), format='json')
        response = self.client.post('/api/orders/', self._payload(quantity=1), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_end_before_start_rejected(self):
        response = self.client.post('/api/orders/', self._payload(
            rental_end_date=(self.start - timedelta(days=1)).isoformat()
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_items_rejected(self):
        response = self.client.post('/api/orders/', self._payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_from_other_vendor_rejected(self):
        other = TestDataFactory.create_vendor()
        response = self.client.post('/api/orders/', self._payload(vendor_id=other.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_vendor_rejected(self):
        response = self.client.post('/api/orders/', self._payload(vendor_id=self.customer.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Vendor not found')

    def test_unknown_size_rejected(self):
        payload = self._payload()
        payload['items'][0]['size'] = 'XXL'
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_size_matches_regardless_of_case(self):
        response = self.client.get('/api/products/', {'size': 'm'})
        self.assertEqual([p['id'] for p in response.data['results']], [self.product.id])

        payload = self._payload()
        payload['items'][0]['size'] = 'm'
        response = self.client.post('/api/orders/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['size'], 'M')

    def test_anonymous_cannot_order(self):
        self.client.logout()
        response = self.client.post('/api/orders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class OrderAccessTests(TestCase):
    """Test order listings and visibility"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.customer = TestDataFactory.create_user()
        self.stranger = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(vendor=self.vendor)
        self.order = TestDataFactory.create_order(self.customer, self.product)

    def test_admin_lists_orders(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertIn('current_status', response.data['results'][0])

    def test_admin_filters_orders(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/orders/', {'status': Order.STATUS_RETURNED})
        self.assertEqual(response.data['count'], 0)
        response = self.client.get('/api/orders/', {'search': self.order.order_number})
        self.assertEqual(response.data['count'], 1)

    def test_customer_cannot_list_all_orders(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/orders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_mine_and_vendor_lists(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/orders/mine/')
        self.assertEqual([o['id'] for o in response.data], [self.order.id])

        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/orders/vendor/')
        self.assertEqual([o['id'] for o in response.data], [self.order.id])

    def test_customer_cannot_use_vendor_list(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/orders/vendor/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_visibility(self):
        for user in (self.customer, self.vendor, self.admin):
            self.client.authenticate_user(user)
            response = self.client.get(f'/api/orders/{self.order.id}/')
            self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.authenticate_user(self.stranger)
        response = self.client.get(f'/api/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class OrderStatusTests(TestCase):
    """Test the order status lifecycle"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.vendor = TestDataFactory.create_vendor()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(vendor=self.vendor, stock_quantity=3)
        self.order = TestDataFactory.create_order(self.customer, self.product, quantity=2)
        self.product.refresh_from_db()

    def test_return_releases_availability(self):
        self.assertEqual(self.product.available_quantity, 1)
        self.client.authenticate_user(self.vendor)
        response = self.client.put(f'/api/orders/{self.order.id}/status/', {'status': Order.STATUS_RETURNED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], Order.STATUS_RETURNED)
        self.assertIsNotNone(response.data['returned_at'])
        self.product.refresh_from_db()
        self.assertEqual(self.product.available_quantity, 3)
        self.assertTrue(AuditLog.objects.filter(action='order_status', object_reference=self.order.order_number).exists())

    def test_returning_twice_does_not_double_release(self):
        self.client.authenticate_user(self.vendor)
        url = f'/api/orders/{self.order.id}/status/'
        self.client.put(url, {'status': Order.STATUS_RETURNED}, format='json')
        self.client.put(url, {'status': Order.STATUS_RETURNED}, format='json')
        self.product.refresh_from_db()
        self.assertEqual(self.product.available_quantity, 3)

    def test_returned_order_cannot_reopen(self):
        self.client.authenticate_user(self.vendor)
        url = f'/api/orders/{self.order.id}/status/'
        self.client.put(url, {'status': Order.STATUS_RETURNED}, format='json')
        response = self.client.put(url, {'status': Order.STATUS_ACTIVE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A returned order cannot be reopened')

    def test_invalid_status(self):
        self.client.authenticate_user(self.customer)
        response = self.client.put(f'/api/orders/{self.order.id}/status/', {'status': 'Lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid status')

    def test_stranger_cannot_change_status(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.put(f'/api/orders/{self.order.id}/status/', {'status': Order.STATUS_OVERDUE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_order(self):
        self.client.authenticate_user(self.customer)
        response = self.client.put('/api/orders/99999/status/', {'status': Order.STATUS_OVERDUE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class FeedbackAndIssueTests(TestCase):
    """Test feedback and issue workflows"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(vendor=self.vendor)
        self.order = TestDataFactory.create_order(self.customer, self.product)

    def test_feedback_upsert(self):
        self.client.authenticate_user(self.customer)
        url = f'/api/orders/{self.order.id}/feedback/'
        response = self.client.put(url, {'rating': 5, 'review': 'Stunning', 'tags': ['Fit', 'Quality']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['tags'], ['Fit', 'Quality'])

        response = self.client.put(url, {'rating': 3, 'review': 'Okay'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Feedback.objects.filter(order=self.order).count(), 1)
        self.assertEqual(Feedback.objects.get(order=self.order).rating, 3)

        order = self.client.get(f'/api/orders/{self.order.id}/')
        self.assertEqual(order.data['feedback']['rating'], 3)

    def test_feedback_requires_valid_rating(self):
        self.client.authenticate_user(self.customer)
        response = self.client.put(f'/api/orders/{self.order.id}/feedback/', {'review': 'No rating'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.put(f'/api/orders/{self.order.id}/feedback/', {'rating': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_customer_leaves_feedback(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.put(f'/api/orders/{self.order.id}/feedback/', {'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_raise_issue(self):
        self.client.authenticate_user(self.customer)
        response = self.client.post(f'/api/orders/{self.order.id}/issues/', {
            'type': 'damaged', 'description': 'Stain on dupatta', 'item_index': 0, 'item_name': self.product.name,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], Issue.STATUS_OPEN)
        self.assertTrue(response.data['issue_id'].startswith('ISS-'))

    def test_raise_issue_validation(self):
        self.client.authenticate_user(self.customer)
        url = f'/api/orders/{self.order.id}/issues/'
        response = self.client.post(url, {'type': 'lost', 'description': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid issue type')
        response = self.client.post(url, {'type': 'damaged'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_resolves_issue(self):
        issue = TestDataFactory.create_issue(self.order)
        self.client.authenticate_user(self.admin)
        url = f'/api/orders/{self.order.id}/issues/{issue.issue_id}/'
        response = self.client.put(url, {'status': Issue.STATUS_IN_PROGRESS}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['resolved_at'])

        response = self.client.put(url, {'status': Issue.STATUS_RESOLVED, 'admin_response': 'Refund issued'}, format='json')
        self.assertEqual(response.data['status'], Issue.STATUS_RESOLVED)
        self.assertEqual(response.data['admin_response'], 'Refund issued')
        self.assertIsNotNone(response.data['resolved_at'])

    def test_issue_update_requires_admin(self):
        issue = TestDataFactory.create_issue(self.order)
        self.client.authenticate_user(self.customer)
        response = self.client.put(f'/api/orders/{self.order.id}/issues/{issue.issue_id}/', {'status': Issue.STATUS_CLOSED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_issue_update_unknown_issue(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/orders/{self.order.id}/issues/ISS-NOPE/', {'status': Issue.STATUS_CLOSED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_issue_list(self):
        TestDataFactory.create_issue(self.order)
        TestDataFactory.create_issue(self.order, status=Issue.STATUS_CLOSED)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/orders/issues/')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/orders/issues/', {'status': Issue.STATUS_OPEN})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['order_number'], self.order.order_number)


class RefreshRentalStatusesCommandTests(TestCase):
    """Test the refresh_rental_statuses management command"""

    def setUp(self):
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(stock_quantity=5)
        today = timezone.localdate()
        self.overdue = TestDataFactory.create_order(
            self.customer, self.product, start_date=today - timedelta(days=5), end_date=today - timedelta(days=1)
        )
        self.due = TestDataFactory.create_order(
            self.customer, self.product, start_date=today - timedelta(days=2), end_date=today + timedelta(days=1)
        )
        self.active = TestDataFactory.create_order(
            self.customer, self.product, start_date=today, end_date=today + timedelta(days=7)
        )
        self.returned = TestDataFactory.create_order(
            self.customer, self.product, start_date=today - timedelta(days=9), end_date=today - timedelta(days=4),
            status=Order.STATUS_RETURNED
        )

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command('refresh_rental_statuses', '--dry-run', stdout=out)
        self.assertIn('would change', out.getvalue())
        self.overdue.refresh_from_db()
        self.assertEqual(self.overdue.status, Order.STATUS_ACTIVE)

    def test_persists_date_derived_status(self):
        call_command('refresh_rental_statuses', stdout=StringIO())
        for order in (self.overdue, self.due, self.active, self.returned):
            order.refresh_from_db()
        self.assertEqual(self.overdue.status, Order.STATUS_OVERDUE)
        self.assertEqual(self.due.status, Order.STATUS_PENDING_RETURN)
        self.assertEqual(self.active.status, Order.STATUS_ACTIVE)
        self.assertEqual(self.returned.status, Order.STATUS_RETURNED)

    def test_reports_cache_invalidated_once(self):
        cache.clear()
        self.addCleanup(cache.clear)
        _, cache_key = get_cached_dashboard_kpis(timezone.localdate())
        cache_dashboard_kpis(cache_key, {'stale': True})

        with self.captureOnCommitCallbacks() as callbacks:
            call_command('refresh_rental_statuses', stdout=StringIO())
        self.assertEqual(callbacks, [])
        self.assertIsNone(cache.get(cache_key))

    def test_dry_run_keeps_reports_cache(self):
        cache.clear()
        self.addCleanup(cache.clear)
        _, cache_key = get_cached_dashboard_kpis(timezone.localdate())
        cache_dashboard_kpis(cache_key, {'stale': True})

        call_command('refresh_rental_statuses', '--dry-run', stdout=StringIO())
        self.assertEqual(cache.get(cache_key), {'stale': True})
