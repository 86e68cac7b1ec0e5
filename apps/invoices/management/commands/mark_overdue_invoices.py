"""
Management command to move past-due invoices to overdue.

Invoices are also refreshed whenever they're listed, so this only matters
for reports and admin screens that read the table directly.

Usage:
    python manage.py mark_overdue_invoices
    python manage.py mark_overdue_invoices --dry-run
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.invoices.models import Invoice
from apps.invoices.services import OVERDUE_SOURCE_STATUSES, refresh_overdue_invoices


class Command(BaseCommand):
    help = 'Mark draft and sent invoices past their due date as overdue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would change without updating anything',
        )

    def handle(self, *args, **options):
        past_due = Invoice.objects.filter(
            status__in=OVERDUE_SOURCE_STATUSES,
            due_date__lt=timezone.localdate(),
        ).select_related('owner')

        if not past_due.exists():
            self.stdout.write(self.style.SUCCESS('No past-due invoices. All good!'))
            return

        self.stdout.write(f'\nFound {past_due.count()} past-due invoice(s):\n')
        for invoice in past_due:
            self.stdout.write(
                f'  - {invoice.number} | {invoice.owner.email} | {invoice.customer_name} | '
                f'{invoice.total} | due {invoice.due_date}'
            )

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        updated = refresh_overdue_invoices()
        self.stdout.write(self.style.SUCCESS(f'\nMarked {updated} invoice(s) overdue.'))
