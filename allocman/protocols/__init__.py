"""
Allocman Protocols.

Defines interfaces for external system integration.
"""

from allocman.protocols.status import StatusResolver

__all__ = [
    "StatusResolver",
]
