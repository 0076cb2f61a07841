"""
Django Allocman: Inventory allocation and quantity reservation.

Matches order items against batches (first-expire-first-out), reserves
the quantity on a locked per-batch/per-scope ledger and keeps order
status in step with the allocation rows.

Uso:
    from allocman import allocation, AllocationError

    allocation.receive(batch_a, warehouse, 10)
    result = allocation.allocate_item(order_item)
    result.lines       # what was reserved, batch by batch
    result.shortfall   # what is backordered
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'allocation':
        from allocman.service import Allocator
        return Allocator
    elif name == 'AllocationError':
        from allocman.exceptions import AllocationError
        return AllocationError
    elif name in (
        'Scope', 'Batch', 'InventoryRecord', 'Movement', 'Order', 'OrderItem',
        'Allocation', 'ScopeKind', 'BatchKind', 'BatchStatus', 'ItemStatus',
        'AllocationStatus', 'OrderAllocationStatus', 'Strategy',
    ):
        from allocman import models
        return getattr(models, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'allocation',
    'AllocationError',
    'Scope',
    'Batch',
    'InventoryRecord',
    'Movement',
    'Order',
    'OrderItem',
    'Allocation',
    'ScopeKind',
    'BatchKind',
    'BatchStatus',
    'ItemStatus',
    'AllocationStatus',
    'OrderAllocationStatus',
    'Strategy',
]

__version__ = '0.1.0'
