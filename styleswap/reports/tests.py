"""
Test suite for Reports module
Tests: admin dashboard KPIs, vendor sales analytics, report helpers
"""
from datetime import date, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from styleswap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from styleswap.rentals.models import Order
from styleswap.reports.views import month_starts, percent_change


class ReportHelperTests(TestCase):

    def test_month_starts_crosses_year(self):
        self.assertEqual(month_starts(date(2024, 2, 15), 3), [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)])

    def test_percent_change(self):
        self.assertEqual(percent_change(150, 100), 50.0)
        self.assertEqual(percent_change(50, 0), 100.0)
        self.assertEqual(percent_change(0, 0), 0.0)
        self.assertEqual(percent_change(1, 3), -66.7)


class AdminDashboardTests(TestCase):
    """Test admin dashboard endpoint"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor(shop_name='Royal Threads')
        self.incomplete_vendor = TestDataFactory.create_vendor(shop_name='Half Done', complete_profile=False)
        self.customer = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(
            vendor=self.vendor, price_per_day=Decimal('1000.00'), security_deposit=Decimal('0.00'), stock_quantity=5
        )
        today = timezone.localdate()
        self.order = TestDataFactory.create_order(self.customer, self.product, start_date=today, end_date=today + timedelta(days=3))
        self.overdue = TestDataFactory.create_order(
            self.customer, self.product, start_date=today - timedelta(days=5), end_date=today - timedelta(days=2)
        )
        TestDataFactory.create_order(
            self.customer, self.product, start_date=today - timedelta(days=5), end_date=today - timedelta(days=2),
            status=Order.STATUS_RETURNED
        )

    def tearDown(self):
        cache.clear()

    def test_requires_admin(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/reports/admin-dashboard/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_dashboard_payload(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/reports/admin-dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data

        self.assertEqual(data['users']['total'], 4)
        self.assertEqual(data['users']['vendors'], 2)
        self.assertEqual(data['users']['customers'], 1)
        self.assertEqual(data['users']['admins'], 1)

        self.assertEqual(data['rentals']['total_orders'], 3)
        self.assertEqual(data['rentals']['overdue'], 1)
        self.assertEqual(data['rentals']['active'], 1)
        self.assertEqual(data['rentals']['status_breakdown'][Order.STATUS_RETURNED], 1)

        # three orders of three days at 1000 per day
        self.assertEqual(data['revenue']['total'], 9000.0)
        self.assertEqual(data['revenue']['today'], 9000.0)
        self.assertEqual(data['revenue']['this_month'], 9000.0)

        self.assertEqual([v['shop_name'] for v in data['incomplete_vendors']], ['Half Done'])
        self.assertIn('shop_address', data['incomplete_vendors'][0]['missing_fields'])
        self.assertEqual(len(data['recent_orders']), 3)
        self.assertEqual(data['top_vendors'][0]['id'], self.vendor.id)
        self.assertEqual(data['top_vendors'][0]['orders'], 3)
        self.assertEqual(data['top_shops'][0]['shop_name'], 'Royal Threads')
        self.assertEqual(len(data['monthly_revenue']), 6)
        self.assertEqual(data['monthly_revenue'][-1]['revenue'], 9000.0)

    def test_dashboard_cache_refreshes_after_order_and_user_changes(self):
        self.client.authenticate_user(self.admin)
        self.assertEqual(self.client.get('/api/reports/admin-dashboard/').data['rentals']['total_orders'], 3)

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_order(self.customer, self.product)
        data = self.client.get('/api/reports/admin-dashboard/').data
        self.assertEqual(data['rentals']['total_orders'], 4)
        self.assertEqual(data['revenue']['total'], 12000.0)

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_user()
        data = self.client.get('/api/reports/admin-dashboard/').data
        self.assertEqual(data['users']['customers'], 2)

    def test_dashboard_is_served_from_cache_until_invalidated(self):
        self.client.authenticate_user(self.admin)
        self.client.get('/api/reports/admin-dashboard/')
        Order.objects.filter(pk=self.order.pk).update(total_amount=Decimal('0.00'))
        data = self.client.get('/api/reports/admin-dashboard/').data
        self.assertEqual(data['revenue']['total'], 9000.0)


class VendorSalesTests(TestCase):
    """Test vendor sales analytics endpoint"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_vendor()
        self.customer = TestDataFactory.create_user()
        self.gown = TestDataFactory.create_product(
            vendor=self.vendor, name='Gown', price_per_day=Decimal('2000.00'), security_deposit=Decimal('1000.00')
        )
        self.sari = TestDataFactory.create_product(
            vendor=self.vendor, name='Sari', price_per_day=Decimal('500.00'), security_deposit=Decimal('0.00')
        )
        today = timezone.localdate()
        end = today + timedelta(days=2)
        TestDataFactory.create_order(self.customer, self.gown, start_date=today, end_date=end)
        TestDataFactory.create_order(self.customer, self.sari, start_date=today, end_date=end)

    def tearDown(self):
        cache.clear()

    def test_vendor_sales(self):
        self.client.authenticate_user(self.vendor)
        response = self.client.get('/api/reports/vendor-sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        # gown: 2 days * 2000 + 1000 deposit; sari: 2 days * 500
        self.assertEqual(data['total_revenue'], 6000.0)
        self.assertEqual(data['this_month_revenue'], 6000.0)
        self.assertEqual(data['average_order_value'], 3000.0)
        self.assertEqual(data['total_orders'], 2)
        self.assertEqual(data['top_products'][0]['product_name'], 'Gown')
        self.assertEqual(data['top_products'][0]['revenue'], 4000.0)
        self.assertEqual(len(data['monthly_revenue']), 6)

    def test_vendor_sales_cache_refreshes_after_order_change(self):
        self.client.authenticate_user(self.vendor)
        self.assertEqual(self.client.get('/api/reports/vendor-sales/').data['total_orders'], 2)

        order = Order.objects.filter(vendor=self.vendor).first()
        with self.captureOnCommitCallbacks(execute=True):
            order.status = Order.STATUS_RETURNED
            order.save()
            TestDataFactory.create_order(self.customer, self.sari)
        data = self.client.get('/api/reports/vendor-sales/').data
        self.assertEqual(data['total_orders'], 3)
        self.assertEqual(data['status_breakdown'][Order.STATUS_RETURNED], 1)

    def test_customer_forbidden(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/reports/vendor-sales/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_views_vendor(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/reports/vendor-sales/', {'vendor': self.vendor.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vendor']['id'], self.vendor.id)
        self.assertEqual(response.data['total_orders'], 2)

    def test_vendor_cannot_view_other_vendor(self):
        other = TestDataFactory.create_vendor()
        self.client.authenticate_user(other)
        response = self.client.get('/api/reports/vendor-sales/', {'vendor': self.vendor.id})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_unknown_vendor(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/reports/vendor-sales/', {'vendor': 99999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
