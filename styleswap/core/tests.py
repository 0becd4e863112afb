"""
Test suite for Core module
Tests: registration, login, user management, platform settings, audit logs, error envelope
"""
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status

from styleswap.core.models import User, AuditLog, Setting
from styleswap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from styleswap.core.utils import get_platform_settings, get_commission_rate, create_audit_log


class AuthTests(TestCase):
    """Test registration and login endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_customer(self):
        """Registration returns the user and a token pair"""
        response = self.client.post('/api/auth/register/', {
            'name': 'Asha',
            'email': 'Asha@Example.com',
            'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'asha@example.com')
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)
        self.assertTrue(AuditLog.objects.filter(action='register', object_reference='asha@example.com').exists())

    def test_register_vendor_requires_shop_name(self):
        response = self.client.post('/api/auth/register/', {
            'name': 'Vendor', 'email': 'vendor@example.com', 'password': 'secret123', 'role': User.ROLE_VENDOR,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertIn('shop_name', response.data['details'])

    def test_register_vendor(self):
        response = self.client.post('/api/auth/register/', {
            'name': 'Vendor', 'email': 'vendor@example.com', 'password': 'secret123',
            'role': User.ROLE_VENDOR, 'shop_name': 'Royal Threads',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], User.ROLE_VENDOR)
        self.assertEqual(response.data['user']['shop_name'], 'Royal Threads')

    def test_register_cannot_choose_admin_role(self):
        response = self.client.post('/api/auth/register/', {
            'name': 'Sneaky', 'email': 'sneaky@example.com', 'password': 'secret123', 'role': User.ROLE_ADMIN,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='sneaky@example.com').exists())

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.post('/api/auth/register/', {
            'name': 'Again', 'email': 'TAKEN@example.com', 'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {'error': 'User already exists'})

    def test_register_short_password(self):
        response = self.client.post('/api/auth/register/', {
            'name': 'Short', 'email': 'short@example.com', 'password': '123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['details'])

    def test_register_missing_fields(self):
        response = self.client.post('/api/auth/register/', {'email': 'x@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data['details'])
        self.assertIn('password', response.data['details'])

    def test_login(self):
        """Login is case-insensitive on email and returns the user"""
        TestDataFactory.create_user(email='login@example.com', password='secret123')
        response = self.client.post('/api/auth/login/', {
            'email': 'LOGIN@example.com', 'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['email'], 'login@example.com')

    def test_login_wrong_password(self):
        TestDataFactory.create_user(email='login@example.com', password='secret123')
        response = self.client.post('/api/auth/login/', {
            'email': 'login@example.com', 'password': 'wrong-password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_login_suspended_account(self):
        TestDataFactory.create_user(email='gone@example.com', password='secret123', status=User.STATUS_SUSPENDED)
        response = self.client.post('/api/auth/login/', {
            'email': 'gone@example.com', 'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Account is suspended')

    def test_refresh_token(self):
        TestDataFactory.create_user(email='refresh@example.com', password='secret123')
        login = self.client.post('/api/auth/login/', {
            'email': 'refresh@example.com', 'password': 'secret123',
        }, format='json')
        response = self.client.post('/api/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_invalid_token(self):
        response = self.client.post('/api/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        user = TestDataFactory.create_user(name='Meera')
        self.client.authenticate_user(user)
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Meera')
        self.assertNotIn('password', response.data)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)


class UserManagementTests(TestCase):
    """Test user list, update and delete endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.customer = TestDataFactory.create_user(email='customer@example.com', name='Customer')
        self.vendor = TestDataFactory.create_vendor(email='vendor@example.com')
        self.client = AuthenticatedAPIClient()

    def test_admin_lists_users(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)

    def test_user_list_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/users/', {'role': User.ROLE_VENDOR})
        self.assertEqual([u['email'] for u in response.data], ['vendor@example.com'])
        response = self.client.get('/api/users/', {'search': 'customer@'})
        self.assertEqual([u['email'] for u in response.data], ['customer@example.com'])

    def test_customer_cannot_list_users(self):
        self.client.authenticate_user(self.customer)
        response = self.client.get('/api/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data, {'error': 'Admin access required'})

    def test_user_updates_own_profile(self):
        self.client.authenticate_user(self.customer)
        response = self.client.patch(f'/api/users/{self.customer.id}/', {
            'name': 'Renamed', 'role': User.ROLE_ADMIN, 'status': User.STATUS_SUSPENDED,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.name, 'Renamed')
        # role and status are admin only
        self.assertEqual(self.customer.role, User.ROLE_CUSTOMER)
        self.assertEqual(self.customer.status, User.STATUS_ACTIVE)

    def test_password_change_is_hashed(self):
        self.client.authenticate_user(self.customer)
        response = self.client.put(f'/api/users/{self.customer.id}/', {'password': 'brandnew1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertTrue(self.customer.check_password('brandnew1'))

    def test_blank_password_keeps_existing(self):
        self.client.authenticate_user(self.customer)
        self.client.put(f'/api/users/{self.customer.id}/', {'password': '', 'name': 'Same'}, format='json')
        self.customer.refresh_from_db()
        self.assertTrue(self.customer.check_password('testpass123'))

    def test_cannot_update_other_user(self):
        self.client.authenticate_user(self.customer)
        response = self.client.patch(f'/api/users/{self.vendor.id}/', {'name': 'Hacked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_duplicate_email_on_update(self):
        self.client.authenticate_user(self.customer)
        response = self.client.patch(f'/api/users/{self.customer.id}/', {'email': 'vendor@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email is already in use')

    def test_admin_suspends_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/users/{self.customer.id}/', {'status': User.STATUS_SUSPENDED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.status, User.STATUS_SUSPENDED)
        self.assertFalse(self.customer.is_active)
        self.assertTrue(AuditLog.objects.filter(action='user_update', object_id=str(self.customer.id)).exists())

    def test_update_unknown_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch('/api/users/99999/', {'name': 'Nobody'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)

    def test_admin_deletes_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/users/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.filter(pk=self.customer.id).exists())

    def test_admin_cannot_delete_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.id).exists())

    def test_customer_cannot_delete(self):
        self.client.authenticate_user(self.customer)
        response = self.client.delete(f'/api/users/{self.vendor.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PlatformSettingsTests(TestCase):
    """Test platform settings endpoint and helpers"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_defaults_are_public(self):
        response = self.client.get('/api/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'maintenance_mode': False, 'commission_rate': 15})

    def test_admin_merges_settings(self):
        self.client.authenticate_user(self.admin)
        response = self.client.put('/api/settings/', {'commission_rate': 20}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['commission_rate'], 20)
        self.assertFalse(response.data['maintenance_mode'])
        self.assertEqual(get_commission_rate(), 20)
        self.assertTrue(AuditLog.objects.filter(action='settings_update').exists())

    def test_non_admin_cannot_update(self):
        customer = TestDataFactory.create_user()
        self.client.authenticate_user(customer)
        response = self.client.put('/api/settings/', {'maintenance_mode': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(get_platform_settings()['maintenance_mode'])

    def test_anonymous_cannot_update(self):
        response = self.client.put('/api/settings/', {'maintenance_mode': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_commission_rate_falls_back(self):
        Setting.objects.create(key='commission_rate', value='"abc"')
        self.assertEqual(get_commission_rate(), 15)


class AuditLogTests(TestCase):
    """Test audit log helper and endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Product'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_admin_lists_and_filters_logs(self):
        create_audit_log(user=self.admin, action='create', model_name='Product', object_id='1')
        create_audit_log(user=self.admin, action='delete', model_name='Product', object_id='1')
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/audit-logs/', {'action': 'delete'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['user']['email'], self.admin.email)

        detail = self.client.get(f"/api/audit-logs/{response.data[0]['id']}/")
        self.assertEqual(detail.status_code, status.HTTP_200_OK)

    def test_customer_cannot_read_logs(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class HealthTests(TestCase):

    def test_health(self):
        response = AuthenticatedAPIClient().get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')
        self.assertIn('timestamp', response.data)


class SeedDemoCommandTests(TestCase):

    def test_seed_creates_accounts_and_products(self):
        call_command('seed_demo', stdout=StringIO())
        vendor = User.objects.get(email='vendor@styleswap.com')
        self.assertEqual(vendor.role, User.ROLE_VENDOR)
        self.assertTrue(vendor.has_complete_shop_profile)
        self.assertTrue(vendor.check_password('password123'))
        lehenga = vendor.products.get(name='Sabyasachi Bridal Lehenga')
        self.assertEqual(lehenga.available_quantity, lehenga.stock_quantity)

    def test_seed_is_idempotent(self):
        call_command('seed_demo', stdout=StringIO())
        product_count = self._product_count()
        call_command('seed_demo', stdout=StringIO())
        self.assertEqual(User.objects.filter(email__endswith='@styleswap.com').count(), 3)
        self.assertEqual(self._product_count(), product_count)

    def _product_count(self):
        return User.objects.get(email='vendor@styleswap.com').products.count()

    def test_seed_admin_can_use_django_admin(self):
        call_command('seed_demo', stdout=StringIO())
        admin = User.objects.get(email='admin@styleswap.com')
        self.assertTrue(admin.is_admin_role)
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)

        self.assertTrue(self.client.login(email='admin@styleswap.com', password='password123'))
        response = self.client.get('/admin/')
        self.assertEqual(response.status_code, 200)

    def test_seed_invalidates_caches_once(self):
        with self.captureOnCommitCallbacks() as callbacks:
            call_command('seed_demo', stdout=StringIO())
        self.assertEqual(len(callbacks), 2)
