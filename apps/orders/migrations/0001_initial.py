# Generated manually for orders app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


def money():
    return models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, validators=[MinValueValidator(Decimal('0.00'))])


PROVIDERS = [
    ('MPESA', 'M-Pesa'),
    ('TIGO_PESA', 'Tigo Pesa'),
    ('AIRTEL_MONEY', 'Airtel Money'),
    ('HALO_PESA', 'Halo Pesa'),
    ('BANK_TRANSFER', 'Bank Transfer'),
    ('ESCROW_WALLET', 'Escrow Wallet'),
    ('CREDIT_CARD', 'Credit Card'),
    ('CASH', 'Cash'),
]
METHOD_TYPES = [('PUSH', 'Push Prompt'), ('MANUAL_MOBILE', 'Manual Mobile Money'), ('MANUAL_BANK', 'Manual Bank Transfer')]
ORDER_STATUSES = [('pending', 'Pending'), ('processing', 'Processing'), ('delivered', 'Delivered'), ('cancelled', 'Cancelled')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('client_reference', models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ('customer_name', models.CharField(max_length=150)),
                ('customer_phone', models.CharField(max_length=20)),
                ('status', models.CharField(choices=ORDER_STATUSES, default='pending', max_length=20)),
                ('voided', models.BooleanField(default=False)),
                ('voided_at', models.DateTimeField(blank=True, null=True)),
                ('channel', models.CharField(choices=[('pos', 'POS'), ('online', 'Online'), ('field', 'Field Sales')], default='online', max_length=20)),
                ('branch_id', models.CharField(blank=True, max_length=64)),
                ('subtotal', money()),
                ('tax', money()),
                ('discount', money()),
                ('refund', money()),
                ('commission', money()),
                ('delivery_fee', money()),
                ('total', money()),
                ('delivery_type', models.CharField(choices=[('self_pickup', 'Self Pickup'), ('home_delivery', 'Home Delivery')], default='self_pickup', max_length=20)),
                ('delivery_address', models.CharField(blank=True, max_length=255)),
                ('delivery_otp', models.CharField(max_length=4)),
                ('escrow_released_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to=settings.AUTH_USER_MODEL)),
                ('placed_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders_placed', to=settings.AUTH_USER_MODEL)),
                ('sales_rep', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders_sold', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['customer', 'created_at'], name='orders_customer_created_idx'),
                    models.Index(fields=['status', 'voided'], name='orders_status_voided_idx'),
                    models.Index(fields=['created_at'], name='orders_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VendorOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=ORDER_STATUSES, default='pending', max_length=20)),
                ('payment_status', models.CharField(choices=[('PENDING_VERIFICATION', 'Pending Verification'), ('PAID', 'Paid'), ('FAILED', 'Failed')], default='PENDING_VERIFICATION', max_length=30)),
                ('payment_provider', models.CharField(choices=PROVIDERS, max_length=30)),
                ('payment_method_type', models.CharField(choices=METHOD_TYPES, max_length=20)),
                ('transaction_reference', models.CharField(max_length=64)),
                ('rejection_reason', models.TextField(blank=True)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('subtotal', money()),
                ('tax', money()),
                ('discount', money()),
                ('refund', money()),
                ('total', money()),
                ('commission', money()),
                ('vendor_payout', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('platform_commission', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='vendor_orders', to='orders.order')),
                ('vendor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vendor_orders', to=settings.AUTH_USER_MODEL)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='vendor_orders_as_customer', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'vendor_orders',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['vendor', 'status'], name='vorders_vendor_status_idx'),
                    models.Index(fields=['vendor', 'payment_status'], name='vorders_vendor_payment_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('order', 'vendor'), name='unique_vendor_per_order'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VendorOrderItem',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_name', models.CharField(max_length=200)),
                ('unit_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('quantity', models.PositiveIntegerField()),
                ('line_total', models.DecimalField(decimal_places=2, max_digits=14)),
                ('position', models.PositiveIntegerField(default=0)),
                ('vendor_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='orders.vendororder')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='catalog.product')),
            ],
            options={
                'db_table': 'vendor_order_items',
                'ordering': ['position'],
            },
        ),
        migrations.CreateModel(
            name='QueuedOrder',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('temp_id', models.CharField(max_length=64, unique=True)),
                ('payload', models.JSONField()),
                ('status', models.CharField(choices=[('queued', 'Queued'), ('synced', 'Synced'), ('failed', 'Failed')], default='queued', max_length=20)),
                ('attempts', models.PositiveIntegerField(default=0)),
                ('last_error', models.TextField(blank=True)),
                ('queued_at', models.DateTimeField(auto_now_add=True)),
                ('synced_at', models.DateTimeField(blank=True, null=True)),
                ('queued_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='queued_orders', to=settings.AUTH_USER_MODEL)),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='queue_entries', to='orders.order')),
            ],
            options={
                'db_table': 'queued_orders',
                'ordering': ['queued_at'],
                'indexes': [
                    models.Index(fields=['status', 'queued_at'], name='queued_status_idx'),
                ],
            },
        ),
    ]
