"""
Allocation matcher: pure batch selection (no database, no locking).

Given an outstanding quantity and a list of (batch, scope) candidates,
picks what to reserve:

    FEFO: expiry date ascending, undated expiry last,
          ties by batch creation order (oldest first), then batch id
    FIFO: batch creation order (oldest first), then batch id

Expired, non-active and empty candidates are skipped. The matcher never
returns more than it was asked for; a shortfall is a normal outcome
(backorder), reported in the result.

Usage:
    result = match(Decimal('15'), candidates)
    result.lines      # (MatchLine(batch_id=1, scope_id=1, quantity=10), ...)
    result.shortfall  # Decimal('0')
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Hashable, Iterable

from allocman.exceptions import AllocationError, InvalidQuantityError
from allocman.expiry import is_eligible
from allocman.models.enums import BatchStatus, Strategy


ZERO = Decimal('0')


@dataclass(frozen=True)
class Candidate:
    """Stock of one batch in one scope, as read from the ledger."""

    batch_id: int
    scope_id: int
    total_quantity: Decimal
    reserved_quantity: Decimal = ZERO
    expiry_date: date | None = None
    manufacture_date: date | None = None
    created_at: datetime | None = None
    status: str = BatchStatus.ACTIVE
    kind: str = ''
    item_code: str = ''
    batch_code: str = ''

    @property
    def available(self) -> Decimal:
        return max(self.total_quantity - self.reserved_quantity, ZERO)

    @classmethod
    def from_record(cls, record) -> Candidate:
        """Build from an InventoryRecord with its batch loaded."""
        batch = record.batch
        return cls(
            batch_id=record.batch_id,
            scope_id=record.scope_id,
            total_quantity=record.total_quantity,
            reserved_quantity=record.reserved_quantity,
            expiry_date=batch.expiry_date,
            manufacture_date=batch.manufacture_date,
            created_at=batch.created_at,
            status=batch.status,
            kind=batch.kind,
            item_code=batch.item_code,
            batch_code=batch.code,
        )


@dataclass(frozen=True)
class MatchLine:
    """Quantity to reserve from one batch in one scope."""

    batch_id: int
    scope_id: int
    quantity: Decimal


@dataclass(frozen=True)
class MatchResult:
    requested: Decimal
    lines: tuple[MatchLine, ...] = ()

    @property
    def allocated(self) -> Decimal:
        return sum((line.quantity for line in self.lines), ZERO)

    @property
    def shortfall(self) -> Decimal:
        return max(self.requested - self.allocated, ZERO)

    @property
    def fulfilled(self) -> bool:
        return self.shortfall == ZERO

    @property
    def backordered(self) -> bool:
        return self.shortfall > ZERO


@dataclass(frozen=True)
class Demand:
    """One item's need, for matching several items against one pool."""

    key: Hashable
    quantity: Decimal
    kind: str = ''
    item_code: str = ''


def _fefo_key(candidate: Candidate):
    return (
        candidate.expiry_date is None, candidate.expiry_date,
        candidate.created_at is None, candidate.created_at,
        candidate.batch_id, candidate.scope_id,
    )


def _fifo_key(candidate: Candidate):
    return (
        candidate.created_at is None, candidate.created_at,
        candidate.batch_id, candidate.scope_id,
    )


SORT_KEYS = {
    Strategy.FEFO: _fefo_key,
    Strategy.FIFO: _fifo_key,
}


def _as_quantity(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def rank(candidates: Iterable[Candidate], strategy: str = Strategy.FEFO,
         on_date: date | None = None, exclude_expired: bool = True) -> list[Candidate]:
    """Eligible candidates with stock, in consumption order."""
    try:
        sort_key = SORT_KEYS[Strategy(strategy)]
    except ValueError:
        raise AllocationError('INVALID_STRATEGY', strategy=strategy) from None

    on = on_date or date.today()
    eligible = [
        c for c in candidates
        if c.available > ZERO and is_eligible(c, on, exclude_expired)
    ]
    return sorted(eligible, key=sort_key)


def match(outstanding, candidates: Iterable[Candidate], strategy: str = Strategy.FEFO,
          on_date: date | None = None, exclude_expired: bool = True,
          kind: str | None = None, item_code: str | None = None) -> MatchResult:
    """
    Greedily consume ranked candidates until outstanding is covered.

    Args:
        outstanding: Quantity still needed (requested minus already allocated)
        candidates: Ledger candidates for the item
        strategy: 'fefo' or 'fifo'
        on_date: Reference date for expiry (None = today)
        exclude_expired: Whether expired batches are skipped
        kind: If given, candidates of another BatchKind are skipped
            (candidates without a kind are kept)
        item_code: If given, candidates of another item code are skipped
            (candidates without a code are kept)

    Returns:
        MatchResult; lines sum to at most outstanding

    Raises:
        InvalidQuantityError: If outstanding <= 0
    """
    requested = _as_quantity(outstanding)
    if requested <= ZERO:
        raise InvalidQuantityError(requested=requested)

    if kind is not None:
        candidates = [c for c in candidates if not c.kind or c.kind == kind]
    if item_code is not None:
        candidates = [c for c in candidates if not c.item_code or c.item_code == item_code]

    lines = []
    remaining = requested
    for candidate in rank(candidates, strategy, on_date, exclude_expired):
        if remaining <= ZERO:
            break
        take = min(candidate.available, remaining)
        lines.append(MatchLine(candidate.batch_id, candidate.scope_id, take))
        remaining -= take

    return MatchResult(requested=requested, lines=tuple(lines))


def match_items(demands: Iterable[Demand], candidates: Iterable[Candidate],
                strategy: str = Strategy.FEFO, on_date: date | None = None,
                exclude_expired: bool = True) -> dict[Hashable, MatchResult]:
    """
    Match several demands against one shared pool, in the given order.

    Stock taken by an earlier demand is not offered to a later one, so two
    items of the same SKU never count the same units twice.

    Returns:
        Dict[demand.key, MatchResult]
    """
    pool = {(c.batch_id, c.scope_id): c for c in candidates}
    taken: dict[tuple[int, int], Decimal] = {}
    results = {}

    for demand in demands:
        own = [
            dataclasses.replace(
                c, reserved_quantity=c.reserved_quantity + taken.get(coord, ZERO)
            )
            for coord, c in pool.items()
            if c.kind == demand.kind and c.item_code == demand.item_code
        ]
        result = match(demand.quantity, own, strategy, on_date, exclude_expired)
        for line in result.lines:
            coord = (line.batch_id, line.scope_id)
            taken[coord] = taken.get(coord, ZERO) + line.quantity
        results[demand.key] = result

    return results
