"""
Allocman Admin.

Provides views for production debugging:
- Scope: list + edit
- Batch: edit (only status after creation)
- InventoryRecord: read-only (batch, scope, total, reserved, available)
- Movement: read-only audit trail (timestamp, delta, reason)
- Order: read-only status with items inline
- Allocation: read-only with "release" action
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from allocman.exceptions import AllocationError
from allocman.models import (
    Allocation,
    AllocationStatus,
    Batch,
    InventoryRecord,
    Movement,
    Order,
    OrderItem,
    Scope,
)
from allocman.models.batch import IMMUTABLE_FIELDS

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """Rows only change through the allocation service."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# SCOPE ADMIN
# =========================================================================

@admin.register(Scope)
class ScopeAdmin(admin.ModelAdmin):
    """Scope admin: editable."""

    list_display = ['code', 'name', 'kind', 'parent', 'is_active']
    list_filter = ['kind', 'is_active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_at', 'updated_at']


# =========================================================================
# BATCH ADMIN
# =========================================================================

@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    """Batch admin: lot traceability. Only status is editable after creation."""

    list_display = ['code', 'kind', 'item_code', 'manufacture_date', 'expiry_date',
                    'status', 'is_expired_display']
    list_filter = ['kind', 'status', 'expiry_date']
    search_fields = ['code', 'item_code', 'supplier']

    def get_readonly_fields(self, request, obj=None):
        if obj is None:
            return ['created_at']
        return [*IMMUTABLE_FIELDS, 'created_at']

    @admin.display(description=_('Expirado?'), boolean=True)
    def is_expired_display(self, obj):
        return obj.is_expired


# =========================================================================
# INVENTORY RECORD ADMIN (read-only)
# =========================================================================

@admin.register(InventoryRecord)
class InventoryRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Ledger admin: read-only. Quantities only change via the service."""

    list_display = ['batch', 'scope', 'total_quantity', 'reserved_quantity',
                    'available_display', 'updated_at']
    list_filter = ['scope', 'batch__kind']
    search_fields = ['batch__code', 'batch__item_code']
    list_select_related = ['batch', 'scope']

    @admin.display(description=_('Disponível'))
    def available_display(self, obj):
        return obj.available


# =========================================================================
# MOVEMENT ADMIN (read-only audit trail)
# =========================================================================

@admin.register(Movement)
class MovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Movement admin: read-only. Immutable audit trail."""

    list_display = ['timestamp', 'record', 'delta', 'reason', 'user']
    list_filter = ['timestamp']
    search_fields = ['reason']
    date_hierarchy = 'timestamp'


# =========================================================================
# ORDER ADMIN (read-only status)
# =========================================================================

class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ['kind', 'item_code', 'quantity_ordered', 'status', 'status_changed_at']
    readonly_fields = ['status', 'status_changed_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Order admin: allocation status is derived, never edited."""

    list_display = ['code', 'allocation_status', 'status_changed_at', 'created_at']
    list_filter = ['allocation_status']
    search_fields = ['code']
    readonly_fields = ['allocation_status', 'status_changed_at']
    inlines = [OrderItemInline]


# =========================================================================
# ALLOCATION ADMIN (read-only with release action)
# =========================================================================

@admin.register(Allocation)
class AllocationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Allocation admin: read-only with release action."""

    list_display = ['id', 'order_item', 'batch', 'scope', 'quantity',
                    'status', 'strategy', 'created_at']
    list_filter = ['status', 'strategy', 'scope']
    search_fields = ['batch__code', 'order_item__order__code']
    list_select_related = ['order_item__order', 'batch', 'scope']
    actions = ['release_allocations']

    @admin.action(description=_('Liberar alocações selecionadas'))
    def release_allocations(self, request, queryset):
        from allocman import allocation

        count = 0
        for row in queryset.filter(status=AllocationStatus.ALLOCATED):
            try:
                allocation.release_allocation(row, reason='Liberado via admin', user=request.user)
                count += 1
            except AllocationError as exc:
                logger.warning("release_allocations: failed to release %s: %s", row.pk, exc)

        self.message_user(request, _('{count} alocação(ões) liberada(s).').format(count=count))
