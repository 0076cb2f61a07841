"""
Batch eligibility by expiry date and status.

Determines whether stock of a batch may be allocated on a given date,
based on the batch's expiry date and status.

Examples:
    - Yogurt lot expiring 2026-03-01: eligible up to and including 2026-03-01
    - Cardboard box lot (expiry_date=None): never expires
    - Recalled lot: never eligible, whatever its expiry
"""

from datetime import date

from django.db.models import Q

from allocman.models.enums import BatchStatus


def is_expired(expiry_date: date | None, on_date: date) -> bool:
    """Expired means strictly past the expiry date."""
    if expiry_date is None:
        return False
    return expiry_date < on_date


def is_eligible(batch, on_date: date, exclude_expired: bool = True) -> bool:
    """
    Check if a batch (or anything with .status and .expiry_date) can be allocated.

    Args:
        batch: Batch instance or matcher Candidate
        on_date: The date the stock would be allocated
        exclude_expired: Whether expired batches are refused

    Returns:
        True if the batch may be allocated on the date
    """
    if batch.status != BatchStatus.ACTIVE:
        return False
    if exclude_expired and is_expired(batch.expiry_date, on_date):
        return False
    return True


def filter_eligible_records(records, on_date: date, exclude_expired: bool = True):
    """
    Filter an InventoryRecord queryset to rows whose batch may be allocated.

    This is the queryset-level version of is_eligible.

    Args:
        records: InventoryRecord QuerySet
        on_date: The date the stock would be allocated
        exclude_expired: Whether expired batches are refused

    Returns:
        Filtered QuerySet
    """
    records = records.filter(batch__status=BatchStatus.ACTIVE)
    if exclude_expired:
        records = records.filter(
            Q(batch__expiry_date__isnull=True) | Q(batch__expiry_date__gte=on_date)
        )
    return records
