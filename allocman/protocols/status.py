"""
Status Lookup Protocol: Interface for human-readable status names.

Allocman stores only status identifiers (ItemStatus, AllocationStatus,
OrderAllocationStatus values). A host system with its own status tables
implements this protocol to give them display names and codes.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class StatusResolver(Protocol):
    """
    Protocol for status lookup.

    Implementations should provide methods to:
    - Resolve one status identifier to a display label
    - Resolve many at once
    """

    def label(self, status: str) -> str:
        """
        Display label for a status identifier.

        Args:
            status: Status value (e.g. 'partially_allocated')

        Returns:
            Human-readable label; the identifier itself if unknown
        """
        ...

    def labels(self, statuses: Iterable[str]) -> dict[str, str]:
        """
        Resolve several identifiers.

        Returns:
            Dict[status, label]
        """
        ...
