"""
Management command to check the edition ledger against written orders.
"""
from django.core.management.base import BaseCommand, CommandError

from shop.infra.repositories import EditionRepository, OrderRepository


class Command(BaseCommand):
    help = 'Compare editions_sold with the edition numbers assigned on orders'

    def add_arguments(self, parser):
        parser.add_argument(
            '--verbose-ok',
            action='store_true',
            help='Also list editions that reconcile',
        )

    def handle(self, *args, **options):
        fulfilled = OrderRepository().fulfilled_quantities()
        mismatches = []
        checked = 0

        for edition in EditionRepository().list_all():
            checked += 1
            assigned = fulfilled.pop(edition.key, 0)
            if assigned != edition.editions_sold:
                mismatches.append(
                    f'{edition.title or edition.artwork_id} / {edition.size}: '
                    f'ledger={edition.editions_sold} orders={assigned}'
                )
            elif options['verbose_ok']:
                self.stdout.write(
                    f'{edition.title or edition.artwork_id} / {edition.size}: '
                    f'{edition.editions_sold}/{edition.edition_limit} ok'
                )

        # order lines whose edition is gone or unpublished
        for (artwork_id, size), assigned in sorted(fulfilled.items()):
            mismatches.append(f'{artwork_id} / {size}: ledger=missing orders={assigned}')

        for line in mismatches:
            self.stdout.write(self.style.ERROR(line))

        if mismatches:
            raise CommandError(f'{len(mismatches)} edition(s) out of balance')

        self.stdout.write(self.style.SUCCESS(f'Checked {checked} editions, all balanced'))
