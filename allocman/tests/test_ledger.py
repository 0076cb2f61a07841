"""
Tests for the quantity ledger (reserve, release, receive, adjust).
"""

import random
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.db.models import F

from allocman import allocation, AllocationError
from allocman.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    OverReleaseError,
)
from allocman.models import InventoryRecord, Movement


pytestmark = pytest.mark.django_db


class TestReceive:
    """Tests for allocation.receive()."""

    def test_receive_creates_record_and_movement(self, batch_a, warehouse):
        record = allocation.receive(batch_a, warehouse, Decimal('10'), reason='NF 123')

        assert record.total_quantity == Decimal('10')
        assert record.reserved_quantity == Decimal('0')
        assert record.movements.count() == 1
        assert record.movements.first().reason == 'NF 123'

    def test_receive_twice_updates_same_record(self, batch_a, warehouse):
        allocation.receive(batch_a, warehouse, Decimal('10'))
        record = allocation.receive(batch_a, warehouse, Decimal('5'))

        assert record.total_quantity == Decimal('15')
        assert InventoryRecord.objects.count() == 1
        assert record.movements.count() == 2

    def test_receive_stores_metadata(self, batch_a, warehouse, user):
        record = allocation.receive(batch_a, warehouse, Decimal('3'), user=user, invoice='123')

        movement = record.movements.get()
        assert movement.user == user
        assert movement.metadata == {'invoice': '123'}

    def test_receive_invalid_quantity(self, batch_a, warehouse):
        with pytest.raises(InvalidQuantityError) as exc:
            allocation.receive(batch_a, warehouse, Decimal('0'))

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not InventoryRecord.objects.exists()


class TestReserveRelease:
    """Tests for allocation.reserve() / allocation.release()."""

    def test_reserve_increments_reserved(self, stocked, batch_a, warehouse):
        record = allocation.reserve(batch_a, warehouse, Decimal('4'))

        assert record.reserved_quantity == Decimal('4')
        assert record.available == Decimal('6')
        assert allocation.available(batch_a, warehouse) == Decimal('6')

    def test_reserve_accepts_ids(self, stocked, batch_a, warehouse):
        record = allocation.reserve(batch_a.pk, warehouse.pk, Decimal('1'))

        assert record.reserved_quantity == Decimal('1')

    def test_reserve_more_than_available(self, stocked, batch_a, warehouse):
        allocation.reserve(batch_a, warehouse, Decimal('8'))

        with pytest.raises(InsufficientStockError) as exc:
            allocation.reserve(batch_a, warehouse, Decimal('3'))

        assert exc.value.code == 'INSUFFICIENT_AVAILABLE'
        assert exc.value.available == Decimal('2')
        assert exc.value.requested == Decimal('3')
        assert allocation.get_record(batch_a, warehouse).reserved_quantity == Decimal('8')

    def test_reserve_exactly_available(self, stocked, batch_a, warehouse):
        record = allocation.reserve(batch_a, warehouse, Decimal('10'))

        assert record.available == Decimal('0')

    @pytest.mark.parametrize('quantity', [Decimal('0'), Decimal('-1')])
    def test_reserve_non_positive(self, stocked, batch_a, warehouse, quantity):
        with pytest.raises(InvalidQuantityError):
            allocation.reserve(batch_a, warehouse, quantity)

    def test_reserve_without_record(self, batch_a, location):
        with pytest.raises(AllocationError) as exc:
            allocation.reserve(batch_a, location, Decimal('1'))

        assert exc.value.code == 'RECORD_NOT_FOUND'
        assert exc.value.retryable is False

    def test_release_round_trip(self, stocked, batch_a, warehouse):
        allocation.reserve(batch_a, warehouse, Decimal('7'))
        record = allocation.release(batch_a, warehouse, Decimal('7'))

        assert record.reserved_quantity == Decimal('0')
        assert record.total_quantity == Decimal('10')

    def test_over_release(self, stocked, batch_a, warehouse):
        allocation.reserve(batch_a, warehouse, Decimal('2'))

        with pytest.raises(OverReleaseError) as exc:
            allocation.release(batch_a, warehouse, Decimal('3'))

        assert exc.value.code == 'OVER_RELEASE'
        assert exc.value.retryable is False
        assert allocation.get_record(batch_a, warehouse).reserved_quantity == Decimal('2')

    def test_available_without_record(self, batch_a, location):
        assert allocation.available(batch_a, location) == Decimal('0')

    def test_random_sequences_keep_invariant(self, stocked, batch_a, warehouse):
        """0 <= reserved <= total after any sequence of reserve/release calls."""
        rng = random.Random(20250101)
        expected = Decimal('0')

        for _ in range(200):
            quantity = Decimal(rng.randint(1, 6))
            if rng.random() < 0.55:
                try:
                    allocation.reserve(batch_a, warehouse, quantity)
                    expected += quantity
                except InsufficientStockError:
                    assert quantity > Decimal('10') - expected
            else:
                try:
                    allocation.release(batch_a, warehouse, quantity)
                    expected -= quantity
                except OverReleaseError:
                    assert quantity > expected

            record = allocation.get_record(batch_a, warehouse)
            assert record.reserved_quantity == expected
            assert Decimal('0') <= record.reserved_quantity <= record.total_quantity


class TestAdjust:
    """Tests for allocation.adjust()."""

    def test_adjust_creates_movement(self, stocked, batch_a, warehouse):
        record, _ = stocked
        movement = allocation.adjust(record, Decimal('8'), reason='Inventário')

        record.refresh_from_db()
        assert record.total_quantity == Decimal('8')
        assert movement.delta == Decimal('-2')
        assert movement.reason == 'Ajuste: Inventário'

    def test_adjust_same_total_is_noop(self, stocked):
        record, _ = stocked

        assert allocation.adjust(record, Decimal('10'), reason='Contagem') is None
        assert record.movements.count() == 1

    def test_adjust_below_reserved(self, stocked, batch_a, warehouse):
        record, _ = stocked
        allocation.reserve(batch_a, warehouse, Decimal('6'))

        with pytest.raises(AllocationError) as exc:
            allocation.adjust(record, Decimal('5'), reason='Quebra')

        assert exc.value.code == 'BELOW_RESERVED'
        record.refresh_from_db()
        assert record.total_quantity == Decimal('10')

    def test_adjust_requires_reason(self, stocked):
        record, _ = stocked

        with pytest.raises(AllocationError) as exc:
            allocation.adjust(record, Decimal('5'), reason='')

        assert exc.value.code == 'REASON_REQUIRED'


class TestImmutability:
    """Movement and Batch protection, database constraints."""

    def test_movement_cannot_be_saved_twice(self, stocked):
        record, _ = stocked
        movement = record.movements.get()

        with pytest.raises(ValueError):
            movement.save()

    def test_movement_cannot_be_deleted(self, stocked):
        record, _ = stocked

        with pytest.raises(ValueError):
            record.movements.get().delete()

    def test_movement_requires_reason(self, stocked):
        record, _ = stocked

        with pytest.raises(ValueError):
            Movement.objects.create(record=record, delta=Decimal('1'), reason='')

    def test_batch_status_is_editable(self, batch_a):
        batch_a.status = 'recalled'
        batch_a.save()

        batch_a.refresh_from_db()
        assert batch_a.status == 'recalled'

    def test_batch_expiry_is_immutable(self, batch_a, batch_b):
        batch_a.expiry_date = batch_b.expiry_date

        with pytest.raises(ValueError):
            batch_a.save()

    def test_database_rejects_reserved_above_total(self, stocked):
        record, _ = stocked

        with pytest.raises(IntegrityError), transaction.atomic():
            InventoryRecord.objects.filter(pk=record.pk).update(
                reserved_quantity=F('total_quantity') + 1
            )

    def test_database_rejects_negative_reserved(self, stocked):
        record, _ = stocked

        with pytest.raises(IntegrityError), transaction.atomic():
            InventoryRecord.objects.filter(pk=record.pk).update(reserved_quantity=-1)
