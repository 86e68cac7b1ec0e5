"""
Management command to create sample data for trying out the API.

Usage:
    python manage.py create_sample_data

This creates:
- 5 users (admin, pharmacy, wholesaler, customer, sales rep)
- Products for both sellers
- Subscription packages
- A two-vendor order with one payment verified
- A field order placed by the sales rep
- A driver and a draft invoice
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import User, UserRole
from apps.catalog.models import Product
from apps.delivery.models import Driver
from apps.delivery.services import register_driver
from apps.invoices.models import Invoice
from apps.invoices.services import create_invoice
from apps.orders.models import Order, QueuedOrder, SalesChannel, VendorPaymentStatus
from apps.orders.services import place_order, verify_vendor_payment
from apps.payments.models import BillingPeriod, PaymentConfirmation, SubscriptionPackage, Transaction
from apps.payments.services import VendorPayment


class Command(BaseCommand):
    help = 'Create sample data for trying out the API'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before creating new sample data',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            self.clear_data()

        self.stdout.write('Creating sample data...')

        users = self.create_users()
        products = self.create_products(users)
        self.create_packages()
        self.create_orders(users, products)
        self.create_driver_and_invoice(users)

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('')
        self.stdout.write('Test accounts:')
        self.stdout.write('  admin@example.com / admin123 (superuser)')
        self.stdout.write('  famasi@example.com / password123 (pharmacy)')
        self.stdout.write('  jumla@example.com / password123 (vendor)')
        self.stdout.write('  amina@example.com / password123 (customer)')
        self.stdout.write('  baraka@example.com / password123 (sales rep)')

    def clear_data(self):
        """Clear all data from the database."""
        # Transactions protect orders, users and confirmations
        Transaction.objects.all().delete()
        PaymentConfirmation.objects.all().delete()
        Invoice.objects.all().delete()
        QueuedOrder.objects.all().delete()
        Order.objects.all().delete()
        Driver.objects.all().delete()
        Product.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='admin@example.com').delete()
        SubscriptionPackage.objects.all().delete()

    def _user(self, email, password, **defaults):
        user, _ = User.objects.get_or_create(email=email, defaults=defaults)
        user.set_password(password)
        user.save()
        return user

    def create_users(self):
        """Create test users."""
        self.stdout.write('  Creating users...')

        admin = self._user(
            'admin@example.com', 'admin123',
            display_name='Admin User',
            role=UserRole.ADMIN,
            is_staff=True,
            is_superuser=True,
        )
        pharmacy = self._user(
            'famasi@example.com', 'password123',
            display_name='Famasi Bora',
            role=UserRole.PHARMACY,
            phone='0754000111',
            payment_config={'MPESA': {'enabled': True, 'number': '0754000111'}},
        )
        wholesaler = self._user(
            'jumla@example.com', 'password123',
            display_name='Jumla Medical Supplies',
            role=UserRole.VENDOR,
            phone='0765000222',
            payment_config={
                'MPESA': {'enabled': True, 'number': '0765000222'},
                'BANK_TRANSFER': {'enabled': True, 'number': 'CRDB 0150000333'},
            },
        )
        customer = self._user(
            'amina@example.com', 'password123',
            display_name='Amina Juma',
            phone='0712000111',
        )
        sales_rep = self._user(
            'baraka@example.com', 'password123',
            display_name='Baraka Mushi',
            role=UserRole.SALES_REP,
            phone='0713000444',
            commission_rate=Decimal('5.00'),
        )

        return {
            'admin': admin,
            'pharmacy': pharmacy,
            'wholesaler': wholesaler,
            'customer': customer,
            'sales_rep': sales_rep,
        }

    def create_products(self, users):
        """Create products for both sellers."""
        self.stdout.write('  Creating products...')

        products_data = [
            ('pharmacy', 'Panadol 500mg (strip)', 'Pain relief', '2000', None, '1200', 200),
            ('pharmacy', 'Amoxil 250mg (bottle)', 'Antibiotics', '6500', '6000', '4100', 60),
            ('pharmacy', 'ORS sachet', 'Rehydration', '500', None, '250', 500),
            ('wholesaler', 'Nitrile gloves (box)', 'Consumables', '1000', None, '600', 1000),
            ('wholesaler', 'Syringe 5ml (100 pack)', 'Consumables', '15000', '13500', '9000', 80),
            ('wholesaler', 'Digital thermometer', 'Devices', '12000', None, None, 40),
        ]

        products = {}
        for owner, name, category, price, discount, cost, stock in products_data:
            product, _ = Product.objects.get_or_create(
                vendor=users[owner],
                name=name,
                defaults={
                    'category': category,
                    'price': Decimal(price),
                    'discount_price': Decimal(discount) if discount else None,
                    'buying_price': Decimal(cost) if cost else None,
                    'stock': stock,
                }
            )
            products[name] = product

        return products

    def create_packages(self):
        """Create subscription packages."""
        self.stdout.write('  Creating subscription packages...')

        for name, price, period in [
            ('Pharmacy Basic', '25000', BillingPeriod.MONTHLY),
            ('Pharmacy Pro', '250000', BillingPeriod.YEARLY),
        ]:
            SubscriptionPackage.objects.get_or_create(
                name=name,
                defaults={'price': Decimal(price), 'period': period}
            )

    def create_orders(self, users, products):
        """Place orders through checkout so totals and transactions are real."""
        self.stdout.write('  Creating orders...')

        pharmacy, wholesaler = users['pharmacy'], users['wholesaler']

        order = place_order(
            actor=users['customer'],
            cart=[
                {'product_id': str(products['Panadol 500mg (strip)'].id), 'quantity': 1},
                {'product_id': str(products['Nitrile gloves (box)'].id), 'quantity': 5},
            ],
            payments=[
                VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_MOBILE', 'SMP10001'),
                VendorPayment(str(wholesaler.id), 'BANK_TRANSFER', 'MANUAL_BANK', 'SMP10002'),
            ],
            client_reference='sample-online-1',
        )
        pharmacy_share = order.vendor_orders.get(vendor=pharmacy)
        if pharmacy_share.payment_status == VendorPaymentStatus.PENDING_VERIFICATION:
            verify_vendor_payment(actor=pharmacy, vendor_order_id=pharmacy_share.id)

        place_order(
            actor=users['sales_rep'],
            cart=[{'product_id': str(products['ORS sachet'].id), 'quantity': 40}],
            payments=[VendorPayment(str(pharmacy.id), 'MPESA', 'MANUAL_MOBILE', 'SMP10003')],
            customer_name='Duka la Mama Neema',
            customer_phone='0715000555',
            channel=SalesChannel.FIELD,
            client_reference='sample-field-1',
        )

    def create_driver_and_invoice(self, users):
        """Create a driver for the pharmacy and a draft invoice."""
        self.stdout.write('  Creating driver and invoice...')

        pharmacy = users['pharmacy']
        if not Driver.objects.filter(owner=pharmacy).exists():
            register_driver(actor=pharmacy, name='Hamisi Bakari', phone='0716000777', plate_number='mc 123 abc')

        if not Invoice.objects.filter(owner=pharmacy).exists():
            create_invoice(
                owner=pharmacy,
                customer_name='Kliniki ya Upendo',
                customer_email='upendo@example.com',
                items=[
                    {'name': 'Panadol 500mg (strip)', 'quantity': 50, 'price': Decimal('1800')},
                    {'name': 'ORS sachet', 'quantity': 100, 'price': Decimal('450')},
                ],
                tax_rate=Decimal('18'),
            )
