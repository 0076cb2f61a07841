"""
Allocation recorder: turns matcher output into reservations and rows.

The unit of atomicity is one order item: every attempt runs in its own
transaction.atomic(), reserving each matched line on the ledger and
inserting one Allocation row per line. If any reserve fails, the whole
attempt rolls back, so no reservation of that item survives.

Retry is an explicit bounded loop over typed attempt outcomes:

    SUCCESS   result recorded, return it
    CONFLICT  lock conflict or stale availability, back off and retry
    FATAL     data-integrity error, re-raise at once

After MAX_ATTEMPTS conflicts the attempt's work is rolled back and the
failure is returned to the caller. The item is marked ALLOCATION_FAILED
unless earlier calls left allocations on it.

Lock order is always order item, then allocation, then ledger row.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from django.db import OperationalError, transaction
from django.utils import timezone

from allocman.conf import allocman_settings
from allocman.exceptions import (
    AllocationError,
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidQuantityError,
)
from allocman.models.allocation import Allocation
from allocman.models.batch import Batch
from allocman.models.enums import AllocationStatus, ItemStatus
from allocman.models.order import Order, OrderItem
from allocman.models.scope import Scope
from allocman.services.ledger import QuantityLedger
from allocman.services.matcher import (
    Candidate,
    Demand,
    MatchLine,
    MatchResult,
    match,
    match_items,
)
from allocman.services.queries import AllocationQueries
from allocman.services.status import refresh_item_status, refresh_order_status

logger = logging.getLogger('allocman')

ZERO = Decimal('0')


class Outcome(enum.Enum):
    SUCCESS = 'success'
    CONFLICT = 'conflict'
    FATAL = 'fatal'


@dataclass(frozen=True)
class AllocationResult:
    """What one allocate_item() call did."""

    order_item_id: int
    requested: Decimal
    lines: tuple[MatchLine, ...]
    item_status: str
    attempts: int = 1
    failed: bool = False
    error_code: str | None = None

    @property
    def allocated(self) -> Decimal:
        return sum((line.quantity for line in self.lines), ZERO)

    @property
    def shortfall(self) -> Decimal:
        return max(self.requested - self.allocated, ZERO)

    def as_dict(self, resolver=None) -> dict[str, Any]:
        """Serialize to dict; with a StatusResolver, adds the status label."""
        data = {
            'order_item_id': self.order_item_id,
            'requested': str(self.requested),
            'allocated': str(self.allocated),
            'shortfall': str(self.shortfall),
            'item_status': str(self.item_status),
            'attempts': self.attempts,
            'failed': self.failed,
            'lines': [
                {
                    'batch_id': line.batch_id,
                    'scope_id': line.scope_id,
                    'quantity': str(line.quantity),
                }
                for line in self.lines
            ],
        }
        if self.error_code:
            data['error_code'] = self.error_code
        if resolver is not None:
            data['item_status_label'] = resolver.label(self.item_status)
        return data


@dataclass(frozen=True)
class OrderAllocationResult:
    order_id: int
    items: tuple[AllocationResult, ...]
    status: str

    @property
    def shortfall(self) -> Decimal:
        return sum((item.shortfall for item in self.items), ZERO)

    def as_dict(self, resolver=None) -> dict[str, Any]:
        data = {
            'order_id': self.order_id,
            'status': str(self.status),
            'shortfall': str(self.shortfall),
            'items': [item.as_dict(resolver) for item in self.items],
        }
        if resolver is not None:
            data['status_label'] = resolver.label(self.status)
        return data


@dataclass(frozen=True)
class Attempt:
    """Typed outcome of one transactional try."""

    outcome: Outcome
    requested: Decimal = ZERO
    result: AllocationResult | None = None
    error: AllocationError | None = field(default=None, compare=False)


def _resolve_scopes(scopes):
    """A single warehouse Scope expands to itself plus its locations."""
    if isinstance(scopes, Scope):
        return Scope.objects.within(scopes)
    return scopes


def _refreshed(candidates):
    """
    Rebuild candidates from their current ledger rows.

    A candidate without a ledger row is kept as given; reserving it
    raises RECORD_NOT_FOUND.
    """
    fresh = []
    for candidate in candidates:
        record = QuantityLedger.get_record(candidate.batch_id, candidate.scope_id)
        fresh.append(Candidate.from_record(record) if record else candidate)
    return fresh


def _candidate_provider(candidates, order_item, scopes, on_date):
    """Zero-arg callable returning fresh candidates for every attempt."""
    if candidates is None:
        return lambda: AllocationQueries.candidates_for(order_item, scopes, on_date)
    if callable(candidates):
        return candidates
    fixed = list(candidates)
    return lambda: _refreshed(fixed)


def _lock_item(pk) -> OrderItem:
    """
    Lock and return an order item. Must run inside transaction.atomic().

    The item is always locked before any ledger row.

    Raises:
        ConcurrentModificationError: If the lock could not be taken
    """
    try:
        return OrderItem.objects.select_for_update(
            nowait=allocman_settings.LOCK_NOWAIT
        ).get(pk=pk)
    except OperationalError as e:
        logger.warning(
            "allocation.item.lock_conflict",
            extra={"order_item_id": pk, "error": str(e)},
        )
        raise ConcurrentModificationError(order_item_id=pk) from e


def _check_lines(item, lines):
    """
    Every matched batch must be of the item's kind and code.

    Raises:
        AllocationError('ITEM_MISMATCH'): Fatal, never retried
    """
    batches = Batch.objects.in_bulk({line.batch_id for line in lines})
    for line in lines:
        batch = batches.get(line.batch_id)
        if batch is None:
            continue
        if batch.kind != item.kind or batch.item_code != item.item_code:
            raise AllocationError(
                'ITEM_MISMATCH',
                order_item_id=item.pk,
                batch_id=batch.pk,
                expected=f"{item.kind}:{item.item_code}",
                found=f"{batch.kind}:{batch.item_code}",
            )


def _backoff(attempt: int) -> float:
    return allocman_settings.RETRY_BACKOFF_SECONDS * (
        allocman_settings.RETRY_BACKOFF_FACTOR ** (attempt - 1)
    )


class AllocationRecorder:
    """Allocation and release of order items."""

    @classmethod
    def allocate_item(cls, order_item, quantity=None, candidates=None, scopes=None,
                      strategy: str | None = None, on_date: date | None = None,
                      user=None) -> AllocationResult:
        """
        Allocate stock to an order item.

        Args:
            order_item: OrderItem
            quantity: Cap for this call (None = everything outstanding)
            candidates: None (read from the ledger), a list of Candidate,
                or a zero-arg callable returning one (called every attempt)
            scopes: Scope (warehouse + its locations) or iterable of scopes
            strategy: 'fefo' or 'fifo' (None = ALLOCMAN['DEFAULT_STRATEGY'])
            on_date: Reference date for expiry (None = today)
            user: Recorded on the allocation rows

        Returns:
            AllocationResult (lines, shortfall, item_status, attempts, failed)

        Raises:
            InvalidQuantityError: quantity or quantity_ordered <= 0,
                before touching the database
            AllocationError: Fatal data errors (never retried)
        """
        if quantity is not None and quantity <= 0:
            raise InvalidQuantityError(requested=quantity)
        if order_item.quantity_ordered <= 0:
            raise InvalidQuantityError(requested=order_item.quantity_ordered)

        strategy = strategy or allocman_settings.DEFAULT_STRATEGY
        scopes = _resolve_scopes(scopes)
        provider = _candidate_provider(candidates, order_item, scopes, on_date)
        max_attempts = max(1, allocman_settings.MAX_ATTEMPTS)

        attempt = None
        for number in range(1, max_attempts + 1):
            attempt = cls._attempt(order_item, quantity, provider, strategy, on_date, user, number)

            if attempt.outcome is Outcome.SUCCESS:
                return attempt.result
            if attempt.outcome is Outcome.FATAL:
                raise attempt.error

            logger.warning(
                "allocation.item.conflict",
                extra={
                    "order_item_id": order_item.pk,
                    "attempt": number,
                    "max_attempts": max_attempts,
                    "code": attempt.error.code,
                },
            )
            if number < max_attempts:
                time.sleep(_backoff(number))

        return cls._mark_failed(order_item, attempt, max_attempts)

    @classmethod
    def _attempt(cls, order_item, quantity, provider, strategy, on_date, user,
                 number: int) -> Attempt:
        requested = ZERO
        try:
            with transaction.atomic():
                item = _lock_item(order_item.pk)

                outstanding = item.outstanding_quantity
                requested = outstanding if quantity is None else min(quantity, outstanding)

                if requested <= ZERO:
                    status = refresh_item_status(item)
                    return Attempt(Outcome.SUCCESS, requested, AllocationResult(
                        order_item_id=item.pk,
                        requested=ZERO,
                        lines=(),
                        item_status=status,
                        attempts=number,
                    ))

                matched = match(
                    requested,
                    provider(),
                    strategy=strategy,
                    on_date=on_date,
                    exclude_expired=allocman_settings.EXCLUDE_EXPIRED,
                    kind=item.kind,
                    item_code=item.item_code,
                )
                _check_lines(item, matched.lines)

                for line in matched.lines:
                    QuantityLedger.reserve(line.batch_id, line.scope_id, line.quantity)
                    Allocation.objects.create(
                        order_item=item,
                        batch_id=line.batch_id,
                        scope_id=line.scope_id,
                        quantity=line.quantity,
                        status=AllocationStatus.ALLOCATED,
                        strategy=strategy,
                        attempt=number,
                        created_by=user,
                    )

                status = refresh_item_status(item, attempted=True)
                refresh_order_status(Order.objects.get(pk=item.order_id))

        except (ConcurrentModificationError, InsufficientStockError) as e:
            return Attempt(Outcome.CONFLICT, requested, error=e)
        except InvalidQuantityError:
            raise
        except AllocationError as e:
            return Attempt(Outcome.FATAL, requested, error=e)

        result = AllocationResult(
            order_item_id=order_item.pk,
            requested=requested,
            lines=matched.lines,
            item_status=status,
            attempts=number,
        )
        logger.info(
            "allocation.item.allocated",
            extra={
                "order_item_id": order_item.pk,
                "requested": str(requested),
                "allocated": str(result.allocated),
                "shortfall": str(result.shortfall),
                "status": str(status),
                "attempt": number,
            },
        )
        return Attempt(Outcome.SUCCESS, requested, result)

    @classmethod
    def _mark_failed(cls, order_item, attempt: Attempt, attempts: int) -> AllocationResult:
        with transaction.atomic():
            item = OrderItem.objects.select_for_update().get(pk=order_item.pk)
            # Earlier calls may have left allocations; those keep the item partial
            if item.allocated_quantity > ZERO:
                status = refresh_item_status(item)
            else:
                status = refresh_item_status(item, status=ItemStatus.ALLOCATION_FAILED)
            refresh_order_status(Order.objects.get(pk=item.order_id))

        logger.error(
            "allocation.item.failed",
            extra={
                "order_item_id": order_item.pk,
                "attempts": attempts,
                "code": attempt.error.code,
            },
        )
        return AllocationResult(
            order_item_id=order_item.pk,
            requested=attempt.requested,
            lines=(),
            item_status=status,
            attempts=attempts,
            failed=True,
            error_code=attempt.error.code,
        )

    @classmethod
    def allocate_order(cls, order, items=None, scopes=None, strategy: str | None = None,
                       on_date: date | None = None, user=None) -> OrderAllocationResult:
        """
        Allocate every unfinished item of an order.

        Each item is its own unit of atomicity; a failed item does not undo
        the others.

        Args:
            items: Items in the order they should be allocated
                (None = not fully allocated items by id)
        """
        if items is None:
            items = order.items.exclude(
                status=ItemStatus.FULLY_ALLOCATED
            ).order_by('pk')

        results = tuple(
            cls.allocate_item(item, scopes=scopes, strategy=strategy, on_date=on_date, user=user)
            for item in items
        )

        order.refresh_from_db(fields=['allocation_status', 'status_changed_at'])
        return OrderAllocationResult(
            order_id=order.pk,
            items=results,
            status=order.allocation_status,
        )

    @classmethod
    def plan_order(cls, order, scopes=None, strategy: str | None = None,
                   on_date: date | None = None) -> dict[int, MatchResult]:
        """
        Preview an allocation without reserving anything.

        Items share one candidate pool, so two items of the same SKU are
        not promised the same units.

        Returns:
            Dict[order_item.pk, MatchResult] for items with something outstanding
        """
        strategy = strategy or allocman_settings.DEFAULT_STRATEGY
        scopes = _resolve_scopes(scopes)

        demands = []
        pool = {}
        for item in order.items.order_by('pk'):
            outstanding = item.outstanding_quantity
            if outstanding <= ZERO:
                continue
            demands.append(Demand(item.pk, outstanding, item.kind, item.item_code))
            key = (item.kind, item.item_code)
            if key not in pool:
                pool[key] = AllocationQueries.candidates_for(item, scopes, on_date)

        candidates = [c for group in pool.values() for c in group]
        return match_items(
            demands,
            candidates,
            strategy=strategy,
            on_date=on_date,
            exclude_expired=allocman_settings.EXCLUDE_EXPIRED,
        )

    @classmethod
    def release_allocation(cls, allocation, reason: str = 'Liberado', user=None) -> Allocation:
        """
        Release an allocation (cancellation or reallocation).

        Gives the quantity back to the ledger, marks the row RELEASED and
        refreshes item and order status, in one transaction.

        Raises:
            AllocationError('INVALID_STATUS'): If already released
            OverReleaseError: If the ledger holds less than the row's quantity
        """
        order_item_id = Allocation.objects.values_list('order_item_id', flat=True).get(
            pk=allocation.pk
        )
        with transaction.atomic():
            item = _lock_item(order_item_id)
            locked = Allocation.objects.select_for_update().get(pk=allocation.pk)

            if locked.status != AllocationStatus.ALLOCATED:
                raise AllocationError(
                    'INVALID_STATUS',
                    current=locked.status,
                    expected=AllocationStatus.ALLOCATED,
                )

            QuantityLedger.release(locked.batch_id, locked.scope_id, locked.quantity)

            locked.status = AllocationStatus.RELEASED
            locked.released_at = timezone.now()
            locked.metadata['release_reason'] = reason
            if user is not None:
                locked.metadata['released_by'] = user.pk
            locked.save(update_fields=['status', 'released_at', 'metadata'])

            refresh_item_status(item)
            refresh_order_status(Order.objects.get(pk=item.order_id))

        logger.info(
            "allocation.released",
            extra={
                "allocation_id": locked.pk,
                "qty": str(locked.quantity),
                "reason": reason,
            },
        )
        return locked

    @classmethod
    def release_item(cls, order_item, reason: str = 'Liberado', user=None) -> int:
        """
        Release every active allocation of an order item.

        Returns:
            Number of allocations released
        """
        count = 0
        with transaction.atomic():
            _lock_item(order_item.pk)
            for allocation in order_item.allocations.active().order_by('pk'):
                cls.release_allocation(allocation, reason=reason, user=user)
                count += 1
        return count
