"""
InventoryRecord model: Ledger entry per (batch, scope).
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from allocman.models.enums import AllocationStatus


class InventoryRecordQuerySet(models.QuerySet):
    """QuerySet with helper methods for ledger queries."""

    def for_item(self, kind, item_code):
        """Ledger rows of one SKU or packaging material."""
        return self.filter(batch__kind=kind, batch__item_code=item_code)

    def in_scopes(self, scopes):
        return self.filter(scope__in=scopes)

    def with_available(self):
        """Only rows with something left to reserve."""
        return self.filter(total_quantity__gt=F('reserved_quantity'))


class InventoryRecord(models.Model):
    """
    Total and reserved quantity of one batch in one scope.

    This row is the single source of truth for available quantity.
    Invariant (enforced by the database too): 0 <= reserved <= total.

    Changes:
    - total_quantity only through Movement (receive, adjust)
    - reserved_quantity only through the ledger service (reserve, release),
      each change explained by an Allocation row
    """

    batch = models.ForeignKey(
        'allocman.Batch',
        on_delete=models.PROTECT,
        related_name='records',
        verbose_name=_('Lote'),
    )
    scope = models.ForeignKey(
        'allocman.Scope',
        on_delete=models.PROTECT,
        related_name='records',
        verbose_name=_('Escopo'),
    )
    total_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantidade Total'),
    )
    reserved_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantidade Reservada'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InventoryRecordQuerySet.as_manager()

    class Meta:
        verbose_name = _('Registro de Estoque')
        verbose_name_plural = _('Registros de Estoque')
        constraints = [
            models.UniqueConstraint(
                fields=['batch', 'scope'],
                name='unique_inventory_record_batch_scope',
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__gte=0),
                name='inventory_record_reserved_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__lte=F('total_quantity')),
                name='inventory_record_reserved_within_total',
            ),
        ]
        indexes = [
            models.Index(fields=['scope', 'batch'], name='inventory_scope_batch_idx'),
        ]

    @property
    def available(self) -> Decimal:
        """Available for new reservations. Never negative."""
        return max(self.total_quantity - self.reserved_quantity, Decimal('0'))

    def recalculate_reserved(self) -> Decimal:
        """
        Recalculate reserved quantity from active allocation rows.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated reserved quantity
        """
        from allocman.models.allocation import Allocation

        total = Allocation.objects.filter(
            batch_id=self.batch_id,
            scope_id=self.scope_id,
            status=AllocationStatus.ALLOCATED,
        ).aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

        if total != self.reserved_quantity:
            old = self.reserved_quantity
            self.reserved_quantity = total
            self.save(update_fields=['reserved_quantity', 'updated_at'])

            logger = logging.getLogger('allocman')
            logger.warning(
                "ledger.recalculated",
                extra={
                    "record_id": self.pk,
                    "from": str(old),
                    "to": str(total),
                    "diff": str(total - old),
                },
            )

        return total

    def __str__(self) -> str:
        return f"{self.batch.code} [{self.scope.code}]: {self.reserved_quantity}/{self.total_quantity}"
