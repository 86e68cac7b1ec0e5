from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class Product(models.Model):
    """A vendor's sellable item. Prices here are live; orders keep snapshots."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    vendor = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='products'
    )

    name = models.CharField(max_length=200)
    category = models.CharField(max_length=100, blank=True)
    sku = models.CharField(max_length=64, blank=True)

    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    # Promotional price, only honoured when 0 < discount_price < price
    discount_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    # Cost to the vendor, used for COGS in sales reports
    buying_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    stock = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        indexes = [
            models.Index(fields=['vendor', 'is_active'], name='products_vendor_active_idx'),
            models.Index(fields=['name'], name='products_name_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.effective_price})"

    @property
    def effective_price(self) -> Decimal:
        """Discount price when it is a real discount, else the list price."""
        if self.discount_price is not None and Decimal('0') < self.discount_price < self.price:
            return self.discount_price
        return self.price
