"""
Management command to replay orders captured while clients were offline.

Safe to run repeatedly: an entry that already produced an order is never
placed twice.

Usage:
    python manage.py sync_offline_orders
    python manage.py sync_offline_orders --dry-run
    python manage.py sync_offline_orders --clear
"""

from django.core.management.base import BaseCommand

from apps.orders.services import pending_orders, sync_pending_orders, clear_synced


class Command(BaseCommand):
    help = 'Replay queued offline orders through checkout'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List pending entries without replaying them',
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete synced entries afterwards',
        )

    def handle(self, *args, **options):
        pending = list(pending_orders())

        if not pending:
            self.stdout.write(self.style.SUCCESS('No offline orders waiting. All good!'))
        else:
            self.stdout.write(f'\nFound {len(pending)} offline order(s) to sync:\n')
            for queued in pending:
                last_error = f' | last error: {queued.last_error}' if queued.last_error else ''
                self.stdout.write(
                    f'  - {queued.temp_id} | {queued.queued_by.email} | '
                    f'attempts: {queued.attempts}{last_error}'
                )

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        if pending:
            result = sync_pending_orders()
            self.stdout.write(
                self.style.SUCCESS(f'\nSynced {result.success} order(s).')
            )
            for error in result.errors:
                self.stdout.write(self.style.ERROR(f'  ! {error}'))

        if options['clear']:
            removed = clear_synced()
            self.stdout.write(f'Cleared {removed} synced entr{"y" if removed == 1 else "ies"}.')
