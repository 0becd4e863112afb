from django.core.management.base import BaseCommand
from django.utils import timezone

from styleswap.core.cache_signals import suspend_cache_signals
from styleswap.core.cache_utils import invalidate_reports_cache
from ...models import Order
from ...utils import get_rental_status


class Command(BaseCommand):
    help = 'Persist the date-derived status (Active / Pending Return / Overdue) of open rental orders'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would change without saving',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        today = timezone.localdate()

        orders = Order.objects.exclude(status=Order.STATUS_RETURNED).only('id', 'order_number', 'status', 'rental_end_date')
        changed_count = 0
        counts = {}

        self.stdout.write(f'Checking {orders.count()} open orders against {today}')

        with suspend_cache_signals():
            for order in orders.iterator():
                new_status = get_rental_status(order.status, order.rental_end_date, today=today)
                counts[new_status] = counts.get(new_status, 0) + 1
                if new_status == order.status:
                    continue
                changed_count += 1
                self.stdout.write(f'  {order.order_number}: {order.status} -> {new_status}')
                if not dry_run:
                    order.status = new_status
                    order.save(update_fields=['status', 'updated_at'])

        if changed_count and not dry_run:
            invalidate_reports_cache()

        summary = ', '.join(f'{status}: {count}' for status, count in sorted(counts.items())) or 'none'
        if dry_run:
            self.stdout.write(self.style.WARNING(f'\nDry run: {changed_count} orders would change ({summary})'))
        else:
            self.stdout.write(self.style.SUCCESS(f'\nCompleted: {changed_count} orders updated ({summary})'))
