"""
Tests for the status aggregator.
"""

import itertools
from decimal import Decimal

import pytest

from allocman import allocation
from allocman.adapters import get_status_resolver
from allocman.adapters.choices import ChoicesStatusResolver
from allocman.models import ItemStatus, OrderAllocationStatus
from allocman.protocols import StatusResolver
from allocman.services.status import Progress, item_status_for, progress_of, summarize


class TestItemStatusFor:

    def test_nothing_allocated_after_attempt(self):
        assert item_status_for(Decimal('5'), Decimal('0')) == ItemStatus.BACKORDERED

    def test_nothing_allocated_before_attempt(self):
        assert item_status_for(Decimal('5'), Decimal('0'), attempted=False) == ItemStatus.PENDING

    def test_partial(self):
        assert item_status_for(Decimal('25'), Decimal('20')) == ItemStatus.PARTIALLY_ALLOCATED

    def test_full(self):
        assert item_status_for(Decimal('15'), Decimal('15')) == ItemStatus.FULLY_ALLOCATED


class TestSummarize:

    def test_no_items_is_unknown(self):
        assert summarize([]) == OrderAllocationStatus.UNKNOWN

    def test_all_full(self):
        statuses = [ItemStatus.FULLY_ALLOCATED, ItemStatus.FULLY_ALLOCATED]
        assert summarize(statuses) == OrderAllocationStatus.FULLY_ALLOCATED

    def test_some_full(self):
        statuses = [ItemStatus.FULLY_ALLOCATED, ItemStatus.PENDING]
        assert summarize(statuses) == OrderAllocationStatus.PARTIALLY_ALLOCATED

    def test_failed_and_full_is_partial(self):
        statuses = [ItemStatus.FULLY_ALLOCATED, ItemStatus.ALLOCATION_FAILED]
        assert summarize(statuses) == OrderAllocationStatus.PARTIALLY_ALLOCATED

    def test_failed_without_success(self):
        statuses = [ItemStatus.ALLOCATION_FAILED, ItemStatus.PENDING]
        assert summarize(statuses) == OrderAllocationStatus.FAILED

    def test_backordered_counts_as_failed(self):
        assert summarize([ItemStatus.BACKORDERED]) == OrderAllocationStatus.FAILED

    def test_nothing_attempted(self):
        assert summarize([ItemStatus.PENDING]) == OrderAllocationStatus.PENDING_ALLOCATION

    def test_accepts_progress_values(self):
        assert summarize([Progress.PARTIAL]) == OrderAllocationStatus.PARTIALLY_ALLOCATED

    def test_unknown_item_status(self):
        with pytest.raises(ValueError):
            progress_of('shipped')

    @pytest.mark.parametrize('size', [1, 2, 3])
    def test_total_over_every_combination(self, size):
        """Every combination of item progress maps to exactly one known summary."""
        known = set(OrderAllocationStatus.values) - {OrderAllocationStatus.UNKNOWN}

        for combo in itertools.product(list(Progress), repeat=size):
            result = summarize(combo)
            assert result in known

            if set(combo) == {Progress.FULL}:
                assert result == OrderAllocationStatus.FULLY_ALLOCATED
            elif Progress.FULL in combo or Progress.PARTIAL in combo:
                assert result == OrderAllocationStatus.PARTIALLY_ALLOCATED
            elif Progress.FAILED in combo:
                assert result == OrderAllocationStatus.FAILED
            else:
                assert result == OrderAllocationStatus.PENDING_ALLOCATION

    def test_every_item_status_is_mapped(self):
        for status in ItemStatus.values:
            assert isinstance(progress_of(status), Progress)


@pytest.mark.django_db
class TestOrderSummary:

    def test_order_summary_matches_stored_status(self, stocked, make_item, order, on_date):
        item = make_item('25')
        allocation.allocate_item(item, on_date=on_date)

        order.refresh_from_db()
        assert allocation.order_summary(order) == OrderAllocationStatus.PARTIALLY_ALLOCATED
        assert order.allocation_status == OrderAllocationStatus.PARTIALLY_ALLOCATED

    def test_order_without_items(self, order):
        assert allocation.order_summary(order) == OrderAllocationStatus.UNKNOWN

    def test_stored_failed_item_with_allocations_is_partial(self, stocked, make_item, order,
                                                            on_date):
        """The order summary follows allocation rows, not a stale item mark."""
        from allocman.models import OrderItem
        from allocman.services.status import refresh_order_status

        item = make_item('15')
        allocation.allocate_item(item, quantity=Decimal('5'), on_date=on_date)
        OrderItem.objects.filter(pk=item.pk).update(status=ItemStatus.ALLOCATION_FAILED)

        assert refresh_order_status(order) == OrderAllocationStatus.PARTIALLY_ALLOCATED
        order.refresh_from_db()
        assert order.allocation_status == OrderAllocationStatus.PARTIALLY_ALLOCATED


class TestStatusResolver:

    def test_default_resolver(self):
        resolver = get_status_resolver()

        assert isinstance(resolver, ChoicesStatusResolver)
        assert isinstance(resolver, StatusResolver)
        assert resolver.label(ItemStatus.PARTIALLY_ALLOCATED) == 'Parcialmente Alocado'

    def test_resolver_is_cached(self):
        assert get_status_resolver() is get_status_resolver()

    def test_unknown_status_label(self):
        assert ChoicesStatusResolver().label('shipped') == 'shipped'

    def test_labels(self):
        labels = ChoicesStatusResolver().labels([OrderAllocationStatus.FAILED, 'released'])

        assert labels == {'failed': 'Falhou', 'released': 'Liberado'}

    def test_bad_resolver_path(self, settings):
        from django.core.exceptions import ImproperlyConfigured

        settings.ALLOCMAN = {'STATUS_RESOLVER': 'allocman.adapters.missing.Resolver'}

        with pytest.raises(ImproperlyConfigured):
            get_status_resolver()

    def test_resolver_must_follow_protocol(self, settings):
        from django.core.exceptions import ImproperlyConfigured

        settings.ALLOCMAN = {'STATUS_RESOLVER': 'decimal.Decimal'}

        with pytest.raises(ImproperlyConfigured):
            get_status_resolver()
