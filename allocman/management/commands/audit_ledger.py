"""
Management command to audit reserved quantities against allocation rows.

Usage:
    python manage.py audit_ledger
    python manage.py audit_ledger --fix
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import OuterRef, Subquery, Sum
from django.db.models.functions import Coalesce

from allocman.models import Allocation, AllocationStatus, InventoryRecord


class Command(BaseCommand):
    """Audit ledger command."""

    help = 'Compara quantidades reservadas com as alocações ativas'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Corrige as divergências recalculando a partir das alocações'
        )

    def handle(self, *args, **options):
        active = Allocation.objects.filter(
            batch_id=OuterRef('batch_id'),
            scope_id=OuterRef('scope_id'),
            status=AllocationStatus.ALLOCATED,
        ).order_by().values('batch_id', 'scope_id').annotate(t=Sum('quantity')).values('t')

        records = InventoryRecord.objects.annotate(
            _allocated=Coalesce(Subquery(active), Decimal('0'))
        ).select_related('batch', 'scope')

        drifted = [r for r in records if r._allocated != r.reserved_quantity]

        for record in drifted:
            self.stdout.write(
                f'{record.batch.code} @ {record.scope.code}: '
                f'reservado {record.reserved_quantity}, alocado {record._allocated}'
            )

        if options['fix'] and drifted:
            with transaction.atomic():
                for record in drifted:
                    InventoryRecord.objects.select_for_update().get(pk=record.pk).recalculate_reserved()
            self.stdout.write(self.style.SUCCESS(f'{len(drifted)} registro(s) corrigido(s)'))
        else:
            self.stdout.write(f'{len(drifted)} divergência(s) encontrada(s)')
