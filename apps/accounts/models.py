from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
import uuid


class UserRole(models.TextChoices):
    CUSTOMER = 'customer', 'Customer'
    SALES_REP = 'sales_rep', 'Sales Rep'
    VENDOR = 'vendor', 'Vendor'
    PHARMACY = 'pharmacy', 'Pharmacy'
    ADMIN = 'admin', 'Admin'


class SubscriptionStatus(models.TextChoices):
    INACTIVE = 'inactive', 'Inactive'
    PENDING_VERIFICATION = 'pending_verification', 'Pending Payment Verification'
    ACTIVE = 'active', 'Active'
    PAYMENT_REJECTED = 'payment_rejected', 'Payment Rejected'


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Platform user: customers, sales reps, vendors/pharmacies and admins.

    Vendors publish where they accept money in ``payment_config``::

        {"MPESA": {"enabled": true, "number": "0754000111"},
         "BANK_TRANSFER": {"enabled": true, "number": "0150-223344"}}
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    display_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER
    )

    # Sales reps earn a percentage of the orders they place
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('100.00'))]
    )

    # Vendor-published merchant numbers/accounts per provider
    payment_config = models.JSONField(default=dict, blank=True)

    # Subscription (vendors and pharmacies pay for a plan)
    subscription_status = models.CharField(
        max_length=30,
        choices=SubscriptionStatus.choices,
        default=SubscriptionStatus.INACTIVE
    )
    subscription_package = models.ForeignKey(
        'payments.SubscriptionPackage',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subscribers'
    )
    activation_date = models.DateTimeField(null=True, blank=True)
    subscription_expiry = models.DateTimeField(null=True, blank=True)

    # Permissions
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_idx'),
            models.Index(fields=['role'], name='users_role_idx'),
            models.Index(fields=['subscription_status'], name='users_subscription_idx'),
        ]

    def __str__(self):
        return self.email

    def get_display_name(self):
        """Return display name or email prefix."""
        return self.display_name or self.email.split('@')[0]

    @property
    def is_platform_admin(self):
        return self.role == UserRole.ADMIN or self.is_superuser

    @property
    def is_seller(self):
        """Vendors and pharmacies both own products and settle vendor orders."""
        return self.role in (UserRole.VENDOR, UserRole.PHARMACY)
