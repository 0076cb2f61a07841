"""
Allocation model: Quantity of a batch committed to an order item.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from allocman.models.enums import AllocationStatus, Strategy


IMMUTABLE_FIELDS = ('order_item_id', 'batch_id', 'scope_id', 'quantity')


class AllocationQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=AllocationStatus.ALLOCATED)

    def for_order(self, order):
        return self.filter(order_item__order=order)


class Allocation(models.Model):
    """
    Links one order item to one batch in one scope.

    LIFECYCLE:

        ┌───────────┐    release()    ┌──────────┐
        │ ALLOCATED │ ──────────────► │ RELEASED │
        └───────────┘                 └──────────┘

    Rules:
    - quantity is never changed after insert
    - release() goes through the ledger, which gives the quantity back
    - never delete(); released rows stay as history

    An item may have many allocations (split across batches and scopes).
    """

    order_item = models.ForeignKey(
        'allocman.OrderItem',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('Item do Pedido'),
    )
    batch = models.ForeignKey(
        'allocman.Batch',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('Lote'),
    )
    scope = models.ForeignKey(
        'allocman.Scope',
        on_delete=models.PROTECT,
        related_name='allocations',
        verbose_name=_('Escopo'),
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantidade Alocada'),
    )
    status = models.CharField(
        max_length=20,
        choices=AllocationStatus.choices,
        default=AllocationStatus.ALLOCATED,
        db_index=True,
        verbose_name=_('Status'),
    )
    strategy = models.CharField(
        max_length=10,
        choices=Strategy.choices,
        default=Strategy.FEFO,
        verbose_name=_('Estratégia'),
    )
    attempt = models.PositiveSmallIntegerField(
        default=1,
        verbose_name=_('Tentativa'),
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Usuário'),
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    released_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Liberado em'),
    )
    metadata = models.JSONField(default=dict, blank=True)

    objects = AllocationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Alocação')
        verbose_name_plural = _('Alocações')
        ordering = ['created_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name='allocation_quantity_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['batch', 'scope', 'status'], name='allocation_batch_scope_idx'),
            models.Index(fields=['order_item', 'status'], name='allocation_item_status_idx'),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == AllocationStatus.ALLOCATED

    def save(self, *args, **kwargs):
        """Save allocation. Only the release fields may change after insert."""
        if not self._state.adding and self.pk:
            stored = type(self).objects.filter(pk=self.pk).values(*IMMUTABLE_FIELDS).first()
            if stored is not None:
                changed = [f for f in IMMUTABLE_FIELDS if stored[f] != getattr(self, f)]
                if changed:
                    raise ValueError(
                        "Alocações são imutáveis (exceto liberação). "
                        f"Campos alterados: {', '.join(changed)}"
                    )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion. Release instead."""
        raise ValueError(
            "Alocações não podem ser excluídas. "
            "Use allocation.release_allocation() para devolver ao estoque."
        )

    def __str__(self) -> str:
        mark = '🔒' if self.is_active else '↩'
        return f"{mark} {self.quantity}x {self.batch.code} @ {self.scope.code}"
