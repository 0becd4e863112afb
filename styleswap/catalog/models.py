from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Product(models.Model):
    """Rentable item listed by a vendor"""
    sub_admin = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='products')
    name = models.CharField(max_length=200, db_index=True)
    category = models.CharField(max_length=100, db_index=True)
    description = models.TextField(blank=True)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2)
    retail_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    security_deposit = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    stock_quantity = models.PositiveIntegerField(default=1)
    available_quantity = models.PositiveIntegerField(default=1)
    sizes = models.JSONField(default=list, blank=True)  # e.g. ["S", "M"]
    images = models.JSONField(default=list, blank=True)  # image URLs
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def stock_status(self):
        from .utils import get_stock_status
        return get_stock_status(self.available_quantity)

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(available_quantity__lte=models.F('stock_quantity')),
                name='product_available_lte_stock',
            ),
        ]


class ProductReview(models.Model):
    """Customer rating of a product; one per author"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='product_reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.rating}/5"

    class Meta:
        db_table = 'product_reviews'
        ordering = ['-created_at']
        unique_together = [['product', 'user']]
