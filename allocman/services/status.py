"""
Status aggregator: derives item and order allocation status.

The pure functions (item_status_for, progress_of, summarize) hold the rules;
refresh_item_status / refresh_order_status persist what they return and
are the only writers of OrderItem.status and Order.allocation_status.

Order summary rules, first match wins:

    no items                                  → UNKNOWN
    every item full                           → FULLY_ALLOCATED
    some item failed, none partial or full    → FAILED
    some item partial or full                 → PARTIALLY_ALLOCATED
    otherwise (nothing attempted)             → PENDING_ALLOCATION
"""

import enum
import logging
from decimal import Decimal
from typing import Iterable

from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from allocman.models.enums import AllocationStatus, ItemStatus, OrderAllocationStatus

logger = logging.getLogger('allocman')


class Progress(enum.Enum):
    NONE = 'none'
    PARTIAL = 'partial'
    FULL = 'full'
    FAILED = 'failed'


ITEM_PROGRESS = {
    ItemStatus.PENDING: Progress.NONE,
    ItemStatus.PARTIALLY_ALLOCATED: Progress.PARTIAL,
    ItemStatus.FULLY_ALLOCATED: Progress.FULL,
    ItemStatus.BACKORDERED: Progress.FAILED,
    ItemStatus.ALLOCATION_FAILED: Progress.FAILED,
}

# Statuses that mean "tried and got nothing"; kept while nothing is allocated
UNFILLED_AFTER_ATTEMPT = (ItemStatus.BACKORDERED, ItemStatus.ALLOCATION_FAILED)


def item_status_for(ordered: Decimal, allocated: Decimal, attempted: bool = True) -> str:
    """
    Item status from quantities.

    Args:
        ordered: Quantity ordered
        allocated: Quantity currently allocated
        attempted: Whether an allocation attempt just ran (nothing
            allocated then means BACKORDERED instead of PENDING)
    """
    if allocated <= 0:
        return ItemStatus.BACKORDERED if attempted else ItemStatus.PENDING
    if allocated < ordered:
        return ItemStatus.PARTIALLY_ALLOCATED
    return ItemStatus.FULLY_ALLOCATED


def progress_of(item_status) -> Progress:
    """Map an ItemStatus (or Progress) to Progress."""
    if isinstance(item_status, Progress):
        return item_status
    return ITEM_PROGRESS[ItemStatus(item_status)]


def summarize(item_statuses: Iterable) -> str:
    """
    Order summary from item statuses (ItemStatus values or Progress).

    Total: every combination maps to exactly one OrderAllocationStatus.
    """
    progress = {progress_of(s) for s in item_statuses}

    if not progress:
        return OrderAllocationStatus.UNKNOWN
    if progress == {Progress.FULL}:
        return OrderAllocationStatus.FULLY_ALLOCATED
    if Progress.PARTIAL in progress or Progress.FULL in progress:
        return OrderAllocationStatus.PARTIALLY_ALLOCATED
    if Progress.FAILED in progress:
        return OrderAllocationStatus.FAILED
    return OrderAllocationStatus.PENDING_ALLOCATION


def _allocated_by_item(order) -> dict[int, Decimal]:
    from allocman.models.allocation import Allocation

    rows = (
        Allocation.objects.for_order(order)
        .filter(status=AllocationStatus.ALLOCATED)
        .values('order_item_id')
        .annotate(t=Coalesce(Sum('quantity'), Decimal('0')))
    )
    return {row['order_item_id']: row['t'] for row in rows}


def derived_item_status(item, allocated: Decimal) -> str:
    """Item status from its allocation rows, keeping a previous failed/backordered mark."""
    if allocated <= 0:
        if item.status in UNFILLED_AFTER_ATTEMPT:
            return item.status
        return ItemStatus.PENDING
    return item_status_for(item.quantity_ordered, allocated)


def summarize_order(order) -> str:
    """Order summary computed from allocation rows (read-only)."""
    allocated = _allocated_by_item(order)
    return summarize(
        derived_item_status(item, allocated.get(item.pk, Decimal('0')))
        for item in order.items.all()
    )


def refresh_item_status(order_item, attempted: bool = False, status: str | None = None) -> str:
    """
    Persist the item status derived from its allocations.

    Args:
        order_item: OrderItem
        attempted: An allocation attempt just ran
        status: Force a status (used for ALLOCATION_FAILED)
    """
    if status is None:
        allocated = order_item.allocated_quantity
        if attempted:
            status = item_status_for(order_item.quantity_ordered, allocated)
        else:
            status = derived_item_status(order_item, allocated)

    if status != order_item.status:
        old = order_item.status
        order_item.status = status
        order_item.status_changed_at = timezone.now()
        order_item.save(update_fields=['status', 'status_changed_at'])
        logger.info(
            "allocation.item.status",
            extra={"order_item_id": order_item.pk, "from": old, "to": status},
        )
    return status


def refresh_order_status(order) -> str:
    """Persist the order summary derived from its allocation rows."""
    status = summarize_order(order)

    if status != order.allocation_status:
        old = order.allocation_status
        order.allocation_status = status
        order.status_changed_at = timezone.now()
        order.save(update_fields=['allocation_status', 'status_changed_at'])
        logger.info(
            "allocation.order.status",
            extra={"order_id": order.pk, "from": old, "to": status},
        )
    return status
