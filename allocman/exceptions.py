"""
Exceptions for Allocman.

All errors are AllocationError with a structured code for programmatic handling.

Stock shortage is reported two ways on purpose:
- the matcher returns a shortfall (normal backorder, not an exception)
- the ledger raises InsufficientStockError when a reserve finds less than
  it was asked for (the stock moved between reading and locking)
Lock conflicts raise ConcurrentModificationError and are the only
retryable condition.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Error with a machine-readable code, a message and context data.

    Subclasses provide `_default_messages` keyed by code.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict[str, Any]:
        return {'code': self.code, 'message': self.message, 'data': self.data}


class AllocationError(BaseError):
    """
    Structured exception for allocation and ledger operations.

    Usage:
        try:
            allocation.reserve(batch, warehouse, Decimal('10'))
        except AllocationError as e:
            if e.code == 'INSUFFICIENT_AVAILABLE':
                print(f"Só tem {e.available} disponível")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    retryable = False

    _default_messages = {
        'INSUFFICIENT_AVAILABLE': 'Quantidade solicitada indisponível',
        'INVALID_QUANTITY': 'Quantidade inválida (deve ser positiva)',
        'OVER_RELEASE': 'Liberação maior que a quantidade reservada',
        'CONCURRENT_MODIFICATION': 'Modificação concorrente detectada',
        'RECORD_NOT_FOUND': 'Registro de estoque não encontrado',
        'BELOW_RESERVED': 'Total não pode ficar abaixo do reservado',
        'INVALID_STATUS': 'Status inválido para esta operação',
        'INVALID_STRATEGY': 'Estratégia de alocação desconhecida',
        'ITEM_MISMATCH': 'Lote não corresponde ao item do pedido',
        'REASON_REQUIRED': 'Motivo é obrigatório',
    }

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class InvalidQuantityError(AllocationError):
    """Non-positive quantity. Raised before any database access."""

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('INVALID_QUANTITY', message, **data)


class InsufficientStockError(AllocationError):
    """A reserve asked for more than the locked ledger row has available."""

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('INSUFFICIENT_AVAILABLE', message, **data)


class OverReleaseError(AllocationError):
    """Release larger than the reserved quantity. Data-integrity error, never retried."""

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('OVER_RELEASE', message, **data)


class ConcurrentModificationError(AllocationError):
    """Lock conflict on a ledger row. Safe to retry the whole item attempt."""

    retryable = True

    def __init__(self, message: str | None = None, **data: Any):
        super().__init__('CONCURRENT_MODIFICATION', message, **data)
