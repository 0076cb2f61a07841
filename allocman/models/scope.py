"""
Scope model: Where stock is tracked.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from allocman.models.enums import ScopeKind


class ScopeQuerySet(models.QuerySet):
    """Custom QuerySet for Scope."""

    def active(self):
        return self.filter(is_active=True)

    def within(self, warehouse):
        """The warehouse itself plus every location under it."""
        return self.filter(models.Q(pk=warehouse.pk) | models.Q(parent=warehouse))


class Scope(models.Model):
    """
    A warehouse or a location inside one.

    Scopes are stable entities, created during system setup. The hierarchy
    is one level deep: locations point at their warehouse.

    Examples:
        wh = Scope.objects.create(code='wh-sp', name='São Paulo', kind=ScopeKind.WAREHOUSE)
        Scope.objects.create(code='wh-sp-a01', name='A-01', kind=ScopeKind.LOCATION, parent=wh)
    """

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_('Código'),
        help_text=_('Identificador único (ex: wh-sp, wh-sp-a01)'),
    )
    name = models.CharField(
        max_length=100,
        verbose_name=_('Nome'),
    )
    kind = models.CharField(
        max_length=20,
        choices=ScopeKind.choices,
        default=ScopeKind.WAREHOUSE,
        verbose_name=_('Tipo'),
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='locations',
        verbose_name=_('Armazém'),
        help_text=_('Somente para localizações'),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_('Ativo'),
        help_text=_('Estoque em escopos inativos não é alocado.'),
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_('Metadados'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ScopeQuerySet.as_manager()

    class Meta:
        verbose_name = _('Escopo')
        verbose_name_plural = _('Escopos')
        ordering = ['code']

    @property
    def warehouse(self):
        """The warehouse this scope belongs to (itself for a warehouse)."""
        if self.kind == ScopeKind.LOCATION and self.parent_id:
            return self.parent
        return self

    def __str__(self) -> str:
        return self.name
