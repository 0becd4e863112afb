from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    """Manager for the email-based user model"""
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The email address must be set')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Marketplace account: customer, vendor (Sub-Admin) or Admin"""
    ROLE_ADMIN = 'Admin'
    ROLE_VENDOR = 'Sub-Admin'
    ROLE_CUSTOMER = 'User'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_VENDOR, 'Vendor (Sub-Admin)'),
        (ROLE_CUSTOMER, 'Customer'),
    ]

    STATUS_ACTIVE = 'active'
    STATUS_SUSPENDED = 'suspended'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    username = None
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=200)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Vendor profile
    shop_name = models.CharField(max_length=200, blank=True, null=True)
    shop_address = models.TextField(blank=True, null=True)
    shop_number = models.CharField(max_length=20, blank=True, null=True)
    mobile_number = models.CharField(max_length=20, blank=True, null=True)
    sales_handler_mobile = models.CharField(max_length=20, blank=True, null=True)
    gst_number = models.CharField(max_length=20, blank=True, null=True)
    shop_description = models.TextField(blank=True, null=True)

    avatar = models.TextField(blank=True, null=True)  # URL or data URI
    onboarded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @property
    def is_admin_role(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_vendor_role(self):
        return self.role == self.ROLE_VENDOR

    @property
    def has_complete_shop_profile(self):
        """Vendors need address, shop number and both contact numbers"""
        return all([self.shop_address, self.shop_number, self.mobile_number, self.sales_handler_mobile])

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower()
        # Suspension is enforced through Django's is_active flag
        self.is_active = self.status != self.STATUS_SUSPENDED
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'users'
        ordering = ['-created_at']


class Setting(models.Model):
    """Platform settings stored as JSON-encoded values"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('register', 'Register'),
        ('user_update', 'User Updated'),
        ('user_delete', 'User Deleted'),
        ('settings_update', 'Settings Updated'),
        ('availability_adjust', 'Availability Adjusted'),
        ('order_place', 'Order Placed'),
        ('order_status', 'Order Status Changed'),
        ('feedback_submit', 'Feedback Submitted'),
        ('issue_raise', 'Issue Raised'),
        ('issue_update', 'Issue Updated'),
        ('subscribe', 'Newsletter Subscription'),
        ('unsubscribe', 'Subscriber Removed'),
        ('newsletter_send', 'Newsletter Sent'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, order number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, issue id)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_audit_created'),
            models.Index(fields=['action'], name='idx_audit_action'),
            models.Index(fields=['model_name'], name='idx_audit_model'),
            models.Index(fields=['object_reference'], name='idx_audit_reference'),
        ]
