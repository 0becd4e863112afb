from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Order(models.Model):
    """Rental order placed by a customer with a single vendor"""
    STATUS_ACTIVE = 'Active'
    STATUS_PENDING_RETURN = 'Pending Return'
    STATUS_OVERDUE = 'Overdue'
    STATUS_RETURNED = 'Returned'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_PENDING_RETURN, 'Pending Return'),
        (STATUS_OVERDUE, 'Overdue'),
        (STATUS_RETURNED, 'Returned'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='customer_orders')
    customer_name = models.CharField(max_length=200)
    vendor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='vendor_orders')
    shop_name = models.CharField(max_length=200, blank=True)
    rental_start_date = models.DateField()
    rental_end_date = models.DateField()
    rental_days = models.PositiveIntegerField(default=1)
    rental_fee_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    deposit_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    payment_method = models.CharField(max_length=50, default='Cash on Delivery')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    order_date = models.DateTimeField(auto_now_add=True, db_index=True)
    returned_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order_number} - {self.customer_name}"

    @property
    def current_status(self):
        from .utils import get_rental_status
        return get_rental_status(self.status, self.rental_end_date)

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date']


class OrderItem(models.Model):
    """Line of an order; product details are copied at order time"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('catalog.Product', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    product_name = models.CharField(max_length=200)
    size = models.CharField(max_length=50, blank=True)
    image = models.TextField(blank=True)
    quantity = models.PositiveIntegerField(default=1)
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2)
    security_deposit = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    rental_fee = models.DecimalField(max_digits=12, decimal_places=2)
    deposit = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    class Meta:
        db_table = 'order_items'


class Issue(models.Model):
    """Customer complaint raised against an order"""
    TYPE_CHOICES = [
        ('damaged', 'Damaged Item'),
        ('wrong_item', 'Wrong Item'),
        ('late_delivery', 'Late Delivery'),
        ('size_issue', 'Size Issue'),
        ('quality', 'Quality Issue'),
        ('other', 'Other'),
    ]

    STATUS_OPEN = 'Open'
    STATUS_IN_PROGRESS = 'In Progress'
    STATUS_RESOLVED = 'Resolved'
    STATUS_CLOSED = 'Closed'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_RESOLVED, 'Resolved'),
        (STATUS_CLOSED, 'Closed'),
    ]
    FINAL_STATUSES = (STATUS_RESOLVED, STATUS_CLOSED)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='issues')
    issue_id = models.CharField(max_length=50, unique=True)
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)
    description = models.TextField()
    item_index = models.IntegerField(null=True, blank=True)
    item_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    admin_response = models.TextField(blank=True)
    raised_at = models.DateTimeField(auto_now_add=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.issue_id} ({self.status})"

    class Meta:
        db_table = 'order_issues'
        ordering = ['-raised_at']


class Feedback(models.Model):
    """Post-rental rating; at most one per order"""
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='feedback')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    review = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    item_index = models.IntegerField(null=True, blank=True)
    item_name = models.CharField(max_length=200, blank=True)
    submitted_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order.order_number} - {self.rating}/5"

    class Meta:
        db_table = 'order_feedback'
