"""
Enums for Allocman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ScopeKind(models.TextChoices):
    """
    Where a ledger entry lives.

    WAREHOUSE: The whole building, stock not yet put away to a slot.
    LOCATION:  A slot inside a warehouse (aisle, rack, bin).
    """
    WAREHOUSE = 'warehouse', _('Armazém')
    LOCATION = 'location', _('Localização')


class BatchKind(models.TextChoices):
    """
    What a batch holds. Both kinds share one table.

    PRODUCT:            item_code is a SKU code
    PACKAGING_MATERIAL: item_code is a packaging material code
    """
    PRODUCT = 'product', _('Produto')
    PACKAGING_MATERIAL = 'packaging_material', _('Material de Embalagem')


class BatchStatus(models.TextChoices):
    """Batch status. Only ACTIVE batches can be allocated."""
    ACTIVE = 'active', _('Ativo')
    QUARANTINE = 'quarantine', _('Quarentena')
    SUSPENDED = 'suspended', _('Suspenso')
    RECALLED = 'recalled', _('Recolhido')
    DEPLETED = 'depleted', _('Esgotado')


class ItemStatus(models.TextChoices):
    """Order item allocation status (derived from allocation rows)."""
    PENDING = 'pending', _('Pendente')
    PARTIALLY_ALLOCATED = 'partially_allocated', _('Parcialmente Alocado')
    FULLY_ALLOCATED = 'fully_allocated', _('Totalmente Alocado')
    BACKORDERED = 'backordered', _('Sem Estoque')
    ALLOCATION_FAILED = 'allocation_failed', _('Falha na Alocação')


class AllocationStatus(models.TextChoices):
    """Allocation row lifecycle: ALLOCATED -> RELEASED."""
    ALLOCATED = 'allocated', _('Alocado')
    RELEASED = 'released', _('Liberado')


class OrderAllocationStatus(models.TextChoices):
    """Order summary, computed by the status aggregator only."""
    PENDING_ALLOCATION = 'pending_allocation', _('Aguardando Alocação')
    PARTIALLY_ALLOCATED = 'partially_allocated', _('Parcialmente Alocado')
    FULLY_ALLOCATED = 'fully_allocated', _('Totalmente Alocado')
    FAILED = 'failed', _('Falhou')
    UNKNOWN = 'unknown', _('Desconhecido')


class Strategy(models.TextChoices):
    """Batch selection policy."""
    FEFO = 'fefo', _('Primeiro a vencer, primeiro a sair')
    FIFO = 'fifo', _('Primeiro a entrar, primeiro a sair')
