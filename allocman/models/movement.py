"""
Movement model: Immutable journal of ledger total changes.
"""

from django.conf import settings
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Movement(models.Model):
    """
    Immutable record of a change to InventoryRecord.total_quantity.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Movements with inverse delta
    - Updates InventoryRecord.total_quantity atomically on save()

    Reservations are not movements; they are journaled by Allocation rows.
    """

    record = models.ForeignKey(
        'allocman.InventoryRecord',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Registro de Estoque'),
    )

    delta = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Variação'),
        help_text=_('Positivo = entrada, Negativo = saída'),
    )

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Motivo'),
        help_text=_('Obrigatório. Ex: "Recebimento NF 123", "Inventário"'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadados'))

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Data/Hora'))
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Usuário'),
    )

    class Meta:
        verbose_name = _('Movimento')
        verbose_name_plural = _('Movimentos')
        ordering = ['timestamp']
        indexes = [
            models.Index(fields=['record', 'timestamp'], name='movement_record_ts_idx'),
        ]

    def save(self, *args, **kwargs):
        """Save movement and update the ledger total atomically."""
        if self.pk:
            raise ValueError(
                "Movimentos são imutáveis. "
                "Para corrigir, crie um novo Movement com delta inverso."
            )

        if not self.reason:
            raise ValueError("Motivo é obrigatório")

        with transaction.atomic():
            super().save(*args, **kwargs)

            from allocman.models.inventory import InventoryRecord

            InventoryRecord.objects.filter(pk=self.record_id).update(
                total_quantity=F('total_quantity') + self.delta,
                updated_at=timezone.now()
            )

    def delete(self, *args, **kwargs):
        """Prevent deletion. Movements are immutable."""
        raise ValueError(
            "Movimentos são imutáveis. "
            "Para estornar, crie um novo Movement com delta inverso."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.reason}"
