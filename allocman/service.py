"""
Allocation Service: The single public interface for allocation operations.

Usage:
    from allocman import allocation, AllocationError

    allocation.receive(batch, warehouse, Decimal('100'))
    result = allocation.allocate_item(order_item)
    result.shortfall    # Decimal('0')
    allocation.release_allocation(row, reason='Pedido cancelado')

IMPORTANT: All state-changing methods use atomic transactions with
row locking on the ledger. See each method's docstring.
"""

from allocman.services.ledger import QuantityLedger
from allocman.services.queries import AllocationQueries
from allocman.services.recorder import AllocationRecorder
from allocman.services.status import summarize


class Allocator(AllocationQueries, QuantityLedger, AllocationRecorder):
    """
    Single interface for all allocation operations.

    Queries:      eligible_records, candidates_for, available_for_item,
                  allocations_for, order_summary
    Ledger:       get_record, available, reserve, release, receive, adjust
    Allocation:   allocate_item, allocate_order, plan_order,
                  release_allocation, release_item
    """

    summarize = staticmethod(summarize)
