"""
Quantity ledger: reserve/release and total changes on InventoryRecord.

All methods use transaction.atomic() with select_for_update() on the
ledger row, so concurrent allocations of the same batch/scope serialize
on that row and never lose an update.
"""

import logging
from decimal import Decimal

from django.db import OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from allocman.conf import allocman_settings
from allocman.exceptions import (
    AllocationError,
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidQuantityError,
    OverReleaseError,
)
from allocman.models.inventory import InventoryRecord
from allocman.models.movement import Movement

logger = logging.getLogger('allocman')


def _pk(obj):
    """Accept a model instance or a raw id."""
    return getattr(obj, 'pk', obj)


def _lock_record(batch, scope) -> InventoryRecord:
    """
    Lock and return the ledger row. Must run inside transaction.atomic().

    Raises:
        AllocationError('RECORD_NOT_FOUND'): If no row exists for (batch, scope)
        ConcurrentModificationError: If the lock could not be taken
    """
    batch_id, scope_id = _pk(batch), _pk(scope)
    try:
        return InventoryRecord.objects.select_for_update(
            nowait=allocman_settings.LOCK_NOWAIT
        ).get(batch_id=batch_id, scope_id=scope_id)
    except InventoryRecord.DoesNotExist:
        raise AllocationError(
            'RECORD_NOT_FOUND', batch_id=batch_id, scope_id=scope_id
        ) from None
    except OperationalError as e:
        logger.warning(
            "ledger.lock_conflict",
            extra={"batch_id": batch_id, "scope_id": scope_id, "error": str(e)},
        )
        raise ConcurrentModificationError(batch_id=batch_id, scope_id=scope_id) from e


class QuantityLedger:
    """Ledger operations on (batch, scope) rows."""

    # ══════════════════════════════════════════════════════════════
    # QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_record(cls, batch, scope) -> InventoryRecord | None:
        """Ledger row for (batch, scope), without locking."""
        return InventoryRecord.objects.filter(
            batch_id=_pk(batch), scope_id=_pk(scope)
        ).first()

    @classmethod
    def available(cls, batch, scope) -> Decimal:
        """Available quantity of a batch in a scope (0 if no row)."""
        record = cls.get_record(batch, scope)
        return record.available if record else Decimal('0')

    # ══════════════════════════════════════════════════════════════
    # RESERVATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def reserve(cls, batch, scope, quantity) -> InventoryRecord:
        """
        Reserve quantity on a ledger row.

        Raises:
            InvalidQuantityError: If quantity <= 0
            InsufficientStockError: If quantity > available after the lock
            ConcurrentModificationError: If the row lock could not be taken

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on InventoryRecord
            - Verifies availability after lock
        """
        if quantity <= 0:
            raise InvalidQuantityError(requested=quantity)

        with transaction.atomic():
            record = _lock_record(batch, scope)

            if quantity > record.available:
                raise InsufficientStockError(
                    available=record.available,
                    requested=quantity,
                    batch_id=record.batch_id,
                    scope_id=record.scope_id,
                )

            InventoryRecord.objects.filter(pk=record.pk).update(
                reserved_quantity=F('reserved_quantity') + quantity,
                updated_at=timezone.now(),
            )
            record.refresh_from_db()
            logger.info(
                "ledger.reserve",
                extra={
                    "record_id": record.pk,
                    "qty": str(quantity),
                    "reserved": str(record.reserved_quantity),
                    "total": str(record.total_quantity),
                },
            )
            return record

    @classmethod
    def release(cls, batch, scope, quantity) -> InventoryRecord:
        """
        Release previously reserved quantity.

        Raises:
            InvalidQuantityError: If quantity <= 0
            OverReleaseError: If quantity > reserved (never retried)
            ConcurrentModificationError: If the row lock could not be taken
        """
        if quantity <= 0:
            raise InvalidQuantityError(requested=quantity)

        with transaction.atomic():
            record = _lock_record(batch, scope)

            if quantity > record.reserved_quantity:
                logger.error(
                    "ledger.over_release",
                    extra={
                        "record_id": record.pk,
                        "qty": str(quantity),
                        "reserved": str(record.reserved_quantity),
                    },
                )
                raise OverReleaseError(
                    reserved=record.reserved_quantity,
                    requested=quantity,
                    batch_id=record.batch_id,
                    scope_id=record.scope_id,
                )

            InventoryRecord.objects.filter(pk=record.pk).update(
                reserved_quantity=F('reserved_quantity') - quantity,
                updated_at=timezone.now(),
            )
            record.refresh_from_db()
            logger.info(
                "ledger.release",
                extra={
                    "record_id": record.pk,
                    "qty": str(quantity),
                    "reserved": str(record.reserved_quantity),
                },
            )
            return record

    # ══════════════════════════════════════════════════════════════
    # TOTALS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def receive(cls, batch, scope, quantity, reason='Recebimento',
                user=None, **metadata) -> InventoryRecord:
        """
        Stock entry.

        Creates or updates the ledger row for (batch, scope) and journals
        a Movement with positive delta.
        """
        if quantity <= 0:
            raise InvalidQuantityError(requested=quantity)

        with transaction.atomic():
            record, _ = InventoryRecord.objects.get_or_create(
                batch_id=_pk(batch),
                scope_id=_pk(scope),
            )

            Movement.objects.create(
                record=record,
                delta=quantity,
                reason=reason,
                user=user,
                metadata=metadata,
            )

            record.refresh_from_db()
            logger.info(
                "ledger.receive",
                extra={
                    "record_id": record.pk,
                    "qty": str(quantity),
                    "reason": reason,
                },
            )
            return record

    @classmethod
    def adjust(cls, record, new_total, reason, user=None) -> Movement | None:
        """
        Inventory adjustment of the total quantity.

        Calculates delta automatically: new_total - record.total_quantity

        Raises:
            AllocationError('REASON_REQUIRED'): If reason is empty
            AllocationError('BELOW_RESERVED'): If new_total < reserved
            InvalidQuantityError: If new_total < 0
        """
        if not reason:
            raise AllocationError('REASON_REQUIRED')
        if new_total < 0:
            raise InvalidQuantityError(requested=new_total)

        with transaction.atomic():
            locked = _lock_record(record.batch_id, record.scope_id)

            if new_total < locked.reserved_quantity:
                raise AllocationError(
                    'BELOW_RESERVED',
                    reserved=locked.reserved_quantity,
                    requested=new_total,
                )

            delta = new_total - locked.total_quantity
            if delta == 0:
                return None

            movement = Movement.objects.create(
                record=locked,
                delta=delta,
                reason=f"Ajuste: {reason}",
                user=user,
            )
            logger.info(
                "ledger.adjust",
                extra={
                    "record_id": locked.pk,
                    "delta": str(delta),
                    "reason": reason,
                },
            )
            return movement
