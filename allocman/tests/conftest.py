"""
Pytest fixtures for Allocman tests.
"""

from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from allocman import allocation
from allocman.adapters import reset_status_resolver
from allocman.models import (
    Batch,
    BatchKind,
    Order,
    OrderItem,
    Scope,
    ScopeKind,
)


User = get_user_model()


@pytest.fixture(autouse=True)
def _fresh_status_resolver():
    reset_status_resolver()
    yield
    reset_status_resolver()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        password='testpass123'
    )


@pytest.fixture
def warehouse(db):
    """Main warehouse."""
    return Scope.objects.create(
        code='wh-sp',
        name='Armazém São Paulo',
        kind=ScopeKind.WAREHOUSE,
    )


@pytest.fixture
def location(db, warehouse):
    """A slot inside the main warehouse."""
    return Scope.objects.create(
        code='wh-sp-a01',
        name='Corredor A-01',
        kind=ScopeKind.LOCATION,
        parent=warehouse,
    )


@pytest.fixture
def on_date():
    """Reference date before every fixture batch expires."""
    return date(2024, 12, 1)


@pytest.fixture
def batch_a(db):
    """Yogurt lot expiring first."""
    return Batch.objects.create(
        code='LOT-A',
        kind=BatchKind.PRODUCT,
        item_code='SKU-001',
        manufacture_date=date(2024, 11, 1),
        expiry_date=date(2025, 1, 1),
        initial_quantity=Decimal('10'),
    )


@pytest.fixture
def batch_b(db):
    """Yogurt lot expiring later."""
    return Batch.objects.create(
        code='LOT-B',
        kind=BatchKind.PRODUCT,
        item_code='SKU-001',
        manufacture_date=date(2024, 11, 15),
        expiry_date=date(2025, 6, 1),
        initial_quantity=Decimal('10'),
    )


@pytest.fixture
def stocked(warehouse, batch_a, batch_b):
    """10 units of each lot received in the warehouse."""
    record_a = allocation.receive(batch_a, warehouse, Decimal('10'))
    record_b = allocation.receive(batch_b, warehouse, Decimal('10'))
    return record_a, record_b


@pytest.fixture
def order(db):
    return Order.objects.create(code='PED-0001')


@pytest.fixture
def make_item(order):
    """Factory for order items of SKU-001."""
    def _make(quantity, item_code='SKU-001', kind=BatchKind.PRODUCT):
        return OrderItem.objects.create(
            order=order,
            kind=kind,
            item_code=item_code,
            quantity_ordered=Decimal(quantity),
        )
    return _make
