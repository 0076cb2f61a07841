"""
Choices Status Resolver: labels from Allocman's own enums.

Default STATUS_RESOLVER. Host systems with status tables of their own
(codes like ALLOC_PARTIAL, ALLOC_COMPLETED) plug in another resolver:

    ALLOCMAN = {
        "STATUS_RESOLVER": "orders.adapters.StatusTableResolver",
    }
"""

from __future__ import annotations

from typing import Iterable

from allocman.models.enums import AllocationStatus, ItemStatus, OrderAllocationStatus


class ChoicesStatusResolver:
    """Resolves labels from the TextChoices enums. No database access."""

    enums = (ItemStatus, AllocationStatus, OrderAllocationStatus)

    def __init__(self):
        self._labels: dict[str, str] = {}
        for enum in self.enums:
            for value, label in enum.choices:
                self._labels.setdefault(value, str(label))

    def label(self, status: str) -> str:
        return self._labels.get(str(status), str(status))

    def labels(self, statuses: Iterable[str]) -> dict[str, str]:
        return {str(status): self.label(status) for status in statuses}
