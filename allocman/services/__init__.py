"""
Allocation services: modular organization of allocation operations.

    from allocman.services import AllocationQueries, QuantityLedger, AllocationRecorder
"""

from allocman.services.ledger import QuantityLedger
from allocman.services.queries import AllocationQueries
from allocman.services.recorder import AllocationRecorder

__all__ = [
    'AllocationQueries',
    'QuantityLedger',
    'AllocationRecorder',
]
