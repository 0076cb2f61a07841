"""
Order and OrderItem models: demand side of allocation.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from allocman.models.enums import (
    AllocationStatus,
    BatchKind,
    ItemStatus,
    OrderAllocationStatus,
)


class Order(models.Model):
    """
    Aggregates order items.

    allocation_status is derived from the items by the status aggregator
    (allocman.services.status). Never assign it directly.
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Número do Pedido'),
    )
    allocation_status = models.CharField(
        max_length=30,
        choices=OrderAllocationStatus.choices,
        default=OrderAllocationStatus.PENDING_ALLOCATION,
        db_index=True,
        verbose_name=_('Status de Alocação'),
    )
    status_changed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Status alterado em'),
    )
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Pedido')
        verbose_name_plural = _('Pedidos')
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.code


class OrderItem(models.Model):
    """
    Demand for a quantity of a SKU or packaging material.

    Status lifecycle (written by the recorder only):

        PENDING ──allocate──► PARTIALLY_ALLOCATED | FULLY_ALLOCATED | BACKORDERED
           │                          │
           └── retries exhausted ──► ALLOCATION_FAILED

    Releasing allocations moves the item back down the same ladder.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('Pedido'),
    )
    kind = models.CharField(
        max_length=20,
        choices=BatchKind.choices,
        default=BatchKind.PRODUCT,
        verbose_name=_('Tipo'),
    )
    item_code = models.CharField(
        max_length=64,
        verbose_name=_('Código do Item'),
    )
    quantity_ordered = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantidade Pedida'),
    )
    status = models.CharField(
        max_length=30,
        choices=ItemStatus.choices,
        default=ItemStatus.PENDING,
        db_index=True,
        verbose_name=_('Status'),
    )
    status_changed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_('Status alterado em'),
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = _('Item do Pedido')
        verbose_name_plural = _('Itens do Pedido')
        ordering = ['order', 'pk']
        indexes = [
            models.Index(fields=['kind', 'item_code'], name='order_item_kind_code_idx'),
        ]

    @property
    def allocated_quantity(self) -> Decimal:
        """Sum of active allocations."""
        return self.allocations.filter(
            status=AllocationStatus.ALLOCATED
        ).aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

    @property
    def outstanding_quantity(self) -> Decimal:
        """Ordered minus allocated, never negative."""
        return max(self.quantity_ordered - self.allocated_quantity, Decimal('0'))

    def __str__(self) -> str:
        return f"{self.quantity_ordered}x {self.item_code} ({self.order.code})"
