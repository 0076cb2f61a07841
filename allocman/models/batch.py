"""
Batch model: lot traceability for products and packaging materials.

One table holds both kinds; `kind` tells how to read `item_code`:
- PRODUCT: item_code is the SKU code
- PACKAGING_MATERIAL: item_code is the packaging material code

Usage:
    batch = Batch.objects.create(
        code="LOT-2026-0223-A",
        kind=BatchKind.PRODUCT,
        item_code="SKU-001",
        manufacture_date=date(2026, 2, 23),
        expiry_date=date(2027, 2, 23),
        initial_quantity=Decimal('500'),
    )

    allocation.receive(batch, warehouse, Decimal('500'))
"""

from datetime import date

from django.db import models
from django.utils.translation import gettext_lazy as _

from allocman.models.enums import BatchKind, BatchStatus


# Everything except status is fixed once the batch exists
IMMUTABLE_FIELDS = (
    'code', 'kind', 'item_code', 'manufacture_date',
    'expiry_date', 'initial_quantity',
)


class BatchQuerySet(models.QuerySet):
    """Custom QuerySet for Batch with convenience filters."""

    def for_item(self, kind, item_code):
        """Batches of one SKU or packaging material."""
        return self.filter(kind=kind, item_code=item_code)

    def expired(self, on=None):
        """Batches past their expiry date."""
        on = on or date.today()
        return self.filter(expiry_date__lt=on, expiry_date__isnull=False)

    def eligible(self, on=None):
        """Active batches not expired on the given date."""
        on = on or date.today()
        return self.filter(status=BatchStatus.ACTIVE).filter(
            models.Q(expiry_date__isnull=True) | models.Q(expiry_date__gte=on)
        )


class Batch(models.Model):
    """
    Batch/lot of a product or packaging material.

    Key use cases:
    - Track expiry dates per lot
    - Trace which supplier delivered which lot
    - Support recalls: set status to RECALLED and the lot stops being allocated
    - FEFO picking: prefer lots that expire first
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Código do Lote'),
    )
    kind = models.CharField(
        max_length=20,
        choices=BatchKind.choices,
        default=BatchKind.PRODUCT,
        verbose_name=_('Tipo'),
    )
    item_code = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Código do Item'),
        help_text=_('SKU para produtos, código do material para embalagens'),
    )

    # Dates
    manufacture_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_('Data de Fabricação'),
    )
    expiry_date = models.DateField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Data de Validade'),
        help_text=_('Último dia em que o lote pode ser alocado. Vazio = não perecível.'),
    )

    initial_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantidade Original'),
    )
    status = models.CharField(
        max_length=20,
        choices=BatchStatus.choices,
        default=BatchStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )

    supplier = models.CharField(
        max_length=200,
        blank=True,
        default='',
        verbose_name=_('Fornecedor'),
    )
    notes = models.TextField(
        blank=True,
        default='',
        verbose_name=_('Observações'),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Criado em'))

    objects = BatchQuerySet.as_manager()

    class Meta:
        verbose_name = _('Lote')
        verbose_name_plural = _('Lotes')
        ordering = ['expiry_date', 'created_at']
        indexes = [
            models.Index(fields=['kind', 'item_code'], name='batch_kind_item_idx'),
            models.Index(fields=['status', 'expiry_date'], name='batch_status_expiry_idx'),
        ]

    def save(self, *args, **kwargs):
        """Save batch. Only status may change after creation."""
        if not self._state.adding and self.pk:
            stored = type(self).objects.filter(pk=self.pk).values(*IMMUTABLE_FIELDS).first()
            if stored is not None:
                changed = [f for f in IMMUTABLE_FIELDS if stored[f] != getattr(self, f)]
                if changed:
                    raise ValueError(
                        f"Lotes são imutáveis (exceto status). Campos alterados: {', '.join(changed)}"
                    )
        super().save(*args, **kwargs)

    @property
    def is_product(self) -> bool:
        return self.kind == BatchKind.PRODUCT

    @property
    def is_packaging_material(self) -> bool:
        return self.kind == BatchKind.PACKAGING_MATERIAL

    @property
    def is_active(self) -> bool:
        return self.status == BatchStatus.ACTIVE

    @property
    def is_expired(self) -> bool:
        """Is this batch past its expiry date?"""
        if self.expiry_date is None:
            return False
        return date.today() > self.expiry_date

    def __str__(self) -> str:
        expiry = f" (val:{self.expiry_date})" if self.expiry_date else ""
        return f"Lote {self.code}{expiry}"
