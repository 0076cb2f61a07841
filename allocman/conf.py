"""
Allocman configuration.

Usage in settings.py:
    ALLOCMAN = {
        "MAX_ATTEMPTS": 3,
        "RETRY_BACKOFF_SECONDS": 0.05,
        "RETRY_BACKOFF_FACTOR": 2,
        "DEFAULT_STRATEGY": "fefo",
        "EXCLUDE_EXPIRED": True,
        "LOCK_NOWAIT": False,
        "STATUS_RESOLVER": "allocman.adapters.choices.ChoicesStatusResolver",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class AllocmanSettings:
    """Allocman configuration settings."""

    # Attempts per order item before it is marked allocation_failed
    MAX_ATTEMPTS: int = 3

    # Sleep before the 2nd attempt; multiplied by FACTOR for each later one
    RETRY_BACKOFF_SECONDS: float = 0.05
    RETRY_BACKOFF_FACTOR: float = 2

    # 'fefo' (first expire, first out) or 'fifo' (first received, first out)
    DEFAULT_STRATEGY: str = 'fefo'

    # Skip batches past their expiry date when matching
    EXCLUDE_EXPIRED: bool = True

    # Fail immediately on a locked ledger row instead of waiting (PostgreSQL)
    LOCK_NOWAIT: bool = False

    # Status lookup backend (dotted path)
    STATUS_RESOLVER: str = 'allocman.adapters.choices.ChoicesStatusResolver'


def get_allocman_settings() -> AllocmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "ALLOCMAN", {})
    return AllocmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in AllocmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_allocman_settings(), name)


allocman_settings = _LazySettings()
