"""
Test suite for Marketing module
Tests: newsletter subscription, subscriber management, newsletter sending
"""
from django.core import mail
from django.test import TestCase, override_settings
from rest_framework import status

from styleswap.core.models import AuditLog
from styleswap.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from styleswap.marketing.models import Subscriber


class SubscribeTests(TestCase):
    """Test public subscription endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_subscribe(self):
        response = self.client.post('/api/marketing/subscribe/', {'email': 'Fan@Example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Subscriber.objects.filter(email='fan@example.com').exists())

    def test_duplicate_subscription(self):
        Subscriber.objects.create(email='fan@example.com')
        response = self.client.post('/api/marketing/subscribe/', {'email': 'fan@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Email is already subscribed'})

    def test_email_required(self):
        response = self.client.post('/api/marketing/subscribe/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Email is required')

    def test_invalid_email(self):
        response = self.client.post('/api/marketing/subscribe/', {'email': 'not-an-email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Enter a valid email address')


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class SubscriberAdminTests(TestCase):
    """Test admin subscriber management and newsletters"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.admin = TestDataFactory.create_admin()
        Subscriber.objects.create(email='one@example.com')
        Subscriber.objects.create(email='two@example.com')
        Subscriber.objects.create(email='inactive@example.com', is_active=False)

    def test_admin_lists_subscribers(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/marketing/subscribers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)
        self.assertEqual(response.data[0]['email'], 'inactive@example.com')

    def test_customer_cannot_list_subscribers(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/marketing/subscribers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_removes_subscriber(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete('/api/marketing/subscribers/one@example.com/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Subscriber.objects.filter(email='one@example.com').exists())
        self.assertTrue(AuditLog.objects.filter(action='unsubscribe').exists())

    def test_remove_unknown_subscriber(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete('/api/marketing/subscribers/nobody@example.com/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_send_newsletter_to_active_subscribers(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/marketing/send-newsletter/', {
            'subject': 'Festive drop', 'message': 'New lehengas are live',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sent'], 2)
        self.assertEqual(len(mail.outbox), 2)
        self.assertEqual(sorted(m.to[0] for m in mail.outbox), ['one@example.com', 'two@example.com'])
        self.assertEqual(mail.outbox[0].subject, 'Festive drop')

    def test_send_newsletter_requires_subject(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/marketing/send-newsletter/', {'message': 'Hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('subject', response.data['details'])
