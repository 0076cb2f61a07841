"""
Management command to allocate an order.

Usage:
    python manage.py allocate_order PED-0001
    python manage.py allocate_order PED-0001 --strategy fifo --warehouse wh-sp
    python manage.py allocate_order PED-0001 --dry-run
    python manage.py allocate_order PED-0001 --date 2026-03-01
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from allocman import allocation
from allocman.adapters import get_status_resolver
from allocman.models import Order, Scope, Strategy


class Command(BaseCommand):
    """Allocate order command."""

    help = 'Aloca estoque para os itens de um pedido'

    def add_arguments(self, parser):
        parser.add_argument('order', help='Número do pedido')
        parser.add_argument(
            '--strategy',
            choices=Strategy.values,
            default=None,
            help='Estratégia de seleção de lotes (padrão: ALLOCMAN DEFAULT_STRATEGY)'
        )
        parser.add_argument(
            '--warehouse',
            default=None,
            help='Código do armazém (inclui suas localizações)'
        )
        parser.add_argument(
            '--date',
            type=date.fromisoformat,
            default=None,
            help='Data de referência para validade, AAAA-MM-DD (padrão: hoje)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Mostra o que seria alocado sem reservar'
        )

    def handle(self, *args, **options):
        try:
            order = Order.objects.get(code=options['order'])
        except Order.DoesNotExist:
            raise CommandError(f"Pedido {options['order']} não encontrado") from None

        scopes = None
        if options['warehouse']:
            try:
                scopes = Scope.objects.get(code=options['warehouse'])
            except Scope.DoesNotExist:
                raise CommandError(f"Armazém {options['warehouse']} não encontrado") from None

        if options['dry_run']:
            plan = allocation.plan_order(
                order, scopes=scopes, strategy=options['strategy'], on_date=options['date']
            )
            for item_id, result in plan.items():
                self.stdout.write(
                    f'item {item_id}: {result.allocated} de {result.requested} '
                    f'(faltam {result.shortfall})'
                )
            self.stdout.write(f'{len(plan)} item(ns) seria(m) alocado(s)')
            return

        result = allocation.allocate_order(
            order, scopes=scopes, strategy=options['strategy'], on_date=options['date']
        )
        resolver = get_status_resolver()

        for item in result.items:
            self.stdout.write(
                f'item {item.order_item_id}: {item.allocated} de {item.requested} '
                f'- {resolver.label(item.item_status)}'
            )
        self.stdout.write(
            self.style.SUCCESS(f'Pedido {order.code}: {resolver.label(result.status)}')
        )
