"""
Management command to create demo accounts and rental products
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from styleswap.catalog.models import Product
from styleswap.core.cache_signals import suspend_cache_signals
from styleswap.core.cache_utils import invalidate_products_cache, invalidate_reports_cache
from styleswap.core.models import User

DEMO_PASSWORD = 'password123'

USERS = [
    {
        'email': 'admin@styleswap.com',
        'name': 'Alex Morgan',
        'role': User.ROLE_ADMIN,
        'is_staff': True,
        'is_superuser': True,
    },
    {
        'email': 'vendor@styleswap.com',
        'name': 'Sophia Elegance',
        'role': User.ROLE_VENDOR,
        'shop_name': 'Elegance Rentals',
        'shop_address': '12 Fashion Lane, Bandra West, Mumbai, Maharashtra 400050',
        'shop_number': 'SHOP/MH/001',
        'mobile_number': '+91 98765 43210',
        'sales_handler_mobile': '+91 91234 56789',
        'gst_number': '27AABCE1234F1Z5',
    },
    {
        'email': 'user@styleswap.com',
        'name': 'James Wilson',
        'role': User.ROLE_CUSTOMER,
    },
]

PRODUCTS = [
    {
        'name': 'Sabyasachi Bridal Lehenga',
        'category': 'Wedding Attire',
        'description': 'Hand-embroidered red bridal lehenga with zardozi work and a matching dupatta.',
        'price_per_day': '4500',
        'retail_price': '250000',
        'security_deposit': '50000',
        'stock_quantity': 2,
        'sizes': ['S', 'M'],
    },
    {
        'name': 'Manish Malhotra Sequin Sari',
        'category': 'Wedding Attire',
        'description': 'Champagne georgette sari with sequin border, pre-draped for receptions.',
        'price_per_day': '3500',
        'retail_price': '180000',
        'security_deposit': '30000',
        'stock_quantity': 3,
        'sizes': ['One Size'],
    },
    {
        'name': 'Midnight Blue Tuxedo',
        'category': 'Wedding Attire',
        'description': 'Slim-fit velvet tuxedo with satin lapels.',
        'price_per_day': '2200',
        'retail_price': '85000',
        'security_deposit': '15000',
        'stock_quantity': 5,
        'sizes': ['S', 'M', 'L', 'XL', 'XXL'],
    },
    {
        'name': 'Charcoal Power Blazer',
        'category': 'Blazers',
        'description': 'Single-breasted wool blend blazer for boardroom days.',
        'price_per_day': '900',
        'retail_price': '24000',
        'security_deposit': '4000',
        'stock_quantity': 10,
        'sizes': ['S', 'M', 'L', 'XL', 'XXL'],
    },
    {
        'name': 'Strappy Gold Heels',
        'category': 'Shoes',
        'description': 'Metallic block heels with ankle strap.',
        'price_per_day': '600',
        'retail_price': '12000',
        'security_deposit': '2000',
        'stock_quantity': 8,
        'sizes': ['5', '6', '7', '8', '9'],
    },
    {
        'name': 'Kundan Choker Set',
        'category': 'Accessories',
        'description': 'Gold-plated kundan choker with matching earrings.',
        'price_per_day': '1200',
        'retail_price': '65000',
        'security_deposit': '20000',
        'stock_quantity': 2,
        'sizes': ['One Size'],
    },
]


class Command(BaseCommand):
    help = "Creates demo Admin, vendor and customer accounts plus sample rental products"

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset-passwords',
            action='store_true',
            help=f'Reset existing demo accounts to the password "{DEMO_PASSWORD}"',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        with suspend_cache_signals():
            created_products = self._seed(options['reset_passwords'])
        transaction.on_commit(invalidate_products_cache)
        transaction.on_commit(invalidate_reports_cache)

        self.stdout.write(self.style.SUCCESS(
            f"\nDone: {created_products} new products. Demo password: {DEMO_PASSWORD}"
        ))

    def _seed(self, reset_passwords):
        self.stdout.write(self.style.SUCCESS("=" * 60))
        self.stdout.write(self.style.SUCCESS("SEEDING DEMO DATA"))
        self.stdout.write(self.style.SUCCESS("=" * 60))

        users = {}
        for data in USERS:
            data = dict(data)
            email = data.pop('email')
            user, created = User.objects.get_or_create(email=email, defaults=data)
            if created or reset_passwords:
                user.set_password(DEMO_PASSWORD)
                if user.is_vendor_role and not user.onboarded_at:
                    user.onboarded_at = timezone.now()
                user.save()
            users[user.role] = user
            label = 'Created' if created else 'Exists '
            self.stdout.write(f"  {label} {user.role:<10} {email}")

        vendor = users[User.ROLE_VENDOR]
        created_products = 0
        for data in PRODUCTS:
            data = dict(data)
            name = data.pop('name')
            for field in ('price_per_day', 'retail_price', 'security_deposit'):
                data[field] = Decimal(data[field])
            data['available_quantity'] = data['stock_quantity']
            _, created = Product.objects.get_or_create(sub_admin=vendor, name=name, defaults=data)
            if created:
                created_products += 1
                self.stdout.write(f"  Created product {name}")

        return created_products
