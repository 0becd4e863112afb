"""
Test utilities and factories for creating test data
"""
from datetime import timedelta
from decimal import Decimal
import random
import string

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from styleswap.catalog.models import Product, ProductReview
from styleswap.rentals.models import Order, OrderItem, Issue
from styleswap.rentals.utils import (
    calculate_rental_days, calculate_line_amounts, generate_order_number, generate_issue_id
)

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', name=None, role=User.ROLE_CUSTOMER, **extra):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        if not name:
            name = f'User {TestDataFactory.random_string(4)}'
        return User.objects.create_user(email=email, password=password, name=name, role=role, **extra)

    @staticmethod
    def create_admin(email=None, password='testpass123'):
        """Create a user with the Admin role"""
        return TestDataFactory.create_user(email=email, password=password, name='Admin', role=User.ROLE_ADMIN)

    @staticmethod
    def create_vendor(email=None, password='testpass123', shop_name=None, complete_profile=True):
        """Create a vendor (Sub-Admin) with an optional complete shop profile"""
        extra = {'shop_name': shop_name or f'Shop {TestDataFactory.random_string(4)}'}
        if complete_profile:
            extra.update({
                'shop_address': '12 Fashion Street, Mumbai',
                'shop_number': 'A-12',
                'mobile_number': '9876543210',
                'sales_handler_mobile': '9876500000',
            })
        return TestDataFactory.create_user(
            email=email, password=password, name='Vendor', role=User.ROLE_VENDOR, **extra
        )

    @staticmethod
    def create_product(vendor=None, name=None, category='Wedding Attire', price_per_day=None,
                       security_deposit=None, stock_quantity=3, available_quantity=None,
                       sizes=None, is_active=True):
        """Create a test product"""
        if not vendor:
            vendor = TestDataFactory.create_vendor()
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        return Product.objects.create(
            sub_admin=vendor,
            name=name,
            category=category,
            description=f'Test product {name}',
            price_per_day=price_per_day if price_per_day is not None else Decimal('1000.00'),
            security_deposit=security_deposit if security_deposit is not None else Decimal('5000.00'),
            stock_quantity=stock_quantity,
            available_quantity=stock_quantity if available_quantity is None else available_quantity,
            sizes=sizes if sizes is not None else ['S', 'M'],
            images=['https://example.com/image.jpg'],
            is_active=is_active,
        )

    @staticmethod
    def create_review(product, user, rating=5, comment='Lovely'):
        return ProductReview.objects.create(product=product, user=user, rating=rating, comment=comment)

    @staticmethod
    def create_order(customer, product, quantity=1, start_date=None, end_date=None, status=Order.STATUS_ACTIVE,
                     reserve=True):
        """
        Create an order for one product directly through the ORM.

        With ``reserve`` the product's available count is reduced the same way
        order placement does.
        """
        if not start_date:
            start_date = timezone.localdate()
        if not end_date:
            end_date = start_date + timedelta(days=3)
        rental_days = calculate_rental_days(start_date, end_date)
        rental_fee, deposit, subtotal = calculate_line_amounts(
            product.price_per_day, product.security_deposit, quantity, rental_days
        )
        vendor = product.sub_admin
        order = Order.objects.create(
            order_number=generate_order_number(),
            customer=customer,
            customer_name=customer.name,
            vendor=vendor,
            shop_name=vendor.shop_name or vendor.name,
            rental_start_date=start_date,
            rental_end_date=end_date,
            rental_days=rental_days,
            rental_fee_total=rental_fee,
            deposit_total=deposit,
            total_amount=subtotal,
            status=status,
        )
        OrderItem.objects.create(
            order=order,
            product=product,
            product_name=product.name,
            size=(product.sizes or [''])[0],
            quantity=quantity,
            price_per_day=product.price_per_day,
            security_deposit=product.security_deposit,
            rental_fee=rental_fee,
            deposit=deposit,
            subtotal=subtotal,
        )
        if reserve:
            product.available_quantity = max(0, product.available_quantity - quantity)
            product.save(update_fields=['available_quantity', 'updated_at'])
        return order

    @staticmethod
    def create_issue(order, issue_type='damaged', description='Torn hem', status=Issue.STATUS_OPEN):
        return Issue.objects.create(
            order=order,
            issue_id=generate_issue_id(),
            type=issue_type,
            description=description,
            status=status,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
