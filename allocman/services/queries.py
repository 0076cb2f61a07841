"""
Allocation queries: read-only operations.

All methods are classmethods mixed into the Allocator facade and use no locking.
"""

from datetime import date
from decimal import Decimal

from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from allocman.conf import allocman_settings
from allocman.expiry import filter_eligible_records
from allocman.models.allocation import Allocation
from allocman.models.inventory import InventoryRecord
from allocman.services.matcher import Candidate
from allocman.services.status import summarize_order


class AllocationQueries:
    """Read-only allocation query methods."""

    @classmethod
    def eligible_records(cls, kind, item_code, scopes=None, on_date: date | None = None,
                         exclude_expired: bool | None = None):
        """
        Ledger rows that may be allocated for an item.

        Args:
            kind: BatchKind
            item_code: SKU or packaging material code
            scopes: Restrict to these scopes (None = all active scopes)
            on_date: Reference date for expiry (None = today)
            exclude_expired: None = ALLOCMAN['EXCLUDE_EXPIRED']
        """
        if exclude_expired is None:
            exclude_expired = allocman_settings.EXCLUDE_EXPIRED

        records = InventoryRecord.objects.for_item(kind, item_code).filter(
            scope__is_active=True,
        ).with_available()

        if scopes is not None:
            records = records.in_scopes(scopes)

        records = filter_eligible_records(records, on_date or date.today(), exclude_expired)
        return records.select_related('batch', 'scope')

    @classmethod
    def candidates_for(cls, order_item, scopes=None, on_date: date | None = None,
                       exclude_expired: bool | None = None) -> list[Candidate]:
        """Matcher candidates for an order item, read from the ledger."""
        records = cls.eligible_records(
            order_item.kind, order_item.item_code, scopes, on_date, exclude_expired
        )
        return [Candidate.from_record(record) for record in records]

    @classmethod
    def available_for_item(cls, kind, item_code, scopes=None,
                           on_date: date | None = None) -> Decimal:
        """Total allocatable quantity of an item across eligible ledger rows."""
        return cls.eligible_records(kind, item_code, scopes, on_date).aggregate(
            t=Coalesce(Sum(F('total_quantity') - F('reserved_quantity')), Decimal('0'))
        )['t']

    @classmethod
    def allocations_for(cls, order, include_released: bool = False):
        """Allocation rows of an order."""
        qs = Allocation.objects.for_order(order).select_related('batch', 'scope', 'order_item')
        if not include_released:
            qs = qs.active()
        return qs

    @classmethod
    def order_summary(cls, order) -> str:
        """Order allocation status computed from the allocation rows."""
        return summarize_order(order)
