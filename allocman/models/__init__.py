"""
Allocman Models.

Core models for allocation:
- Scope: Warehouse or location where stock is tracked
- Batch: Lot of a product or packaging material
- InventoryRecord: Ledger of total vs reserved quantity per (batch, scope)
- Movement: Immutable journal of total quantity changes
- Order / OrderItem: Demand
- Allocation: Quantity of a batch committed to an order item
"""

from allocman.models.allocation import Allocation
from allocman.models.batch import Batch
from allocman.models.enums import (
    AllocationStatus,
    BatchKind,
    BatchStatus,
    ItemStatus,
    OrderAllocationStatus,
    ScopeKind,
    Strategy,
)
from allocman.models.inventory import InventoryRecord
from allocman.models.movement import Movement
from allocman.models.order import Order, OrderItem
from allocman.models.scope import Scope

__all__ = [
    'ScopeKind',
    'BatchKind',
    'BatchStatus',
    'ItemStatus',
    'AllocationStatus',
    'OrderAllocationStatus',
    'Strategy',
    'Scope',
    'Batch',
    'InventoryRecord',
    'Movement',
    'Order',
    'OrderItem',
    'Allocation',
]
