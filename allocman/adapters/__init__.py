"""
Allocman Adapters.

Implementations of protocols for external systems, and their loader.

Usage:
    from allocman.adapters import get_status_resolver

    resolver = get_status_resolver()
    resolver.label('partially_allocated')
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from allocman.conf import allocman_settings
from allocman.protocols.status import StatusResolver

logger = logging.getLogger(__name__)


# Cached resolver instance
_lock = threading.Lock()
_status_resolver: StatusResolver | None = None


def get_status_resolver() -> StatusResolver:
    """
    Return the configured status resolver.

    Raises:
        ImproperlyConfigured: If STATUS_RESOLVER is empty or import fails
    """
    global _status_resolver

    if _status_resolver is None:
        with _lock:
            if _status_resolver is None:  # double-checked
                resolver_path = allocman_settings.STATUS_RESOLVER

                if not resolver_path:
                    raise ImproperlyConfigured(
                        "ALLOCMAN['STATUS_RESOLVER'] must be configured. "
                        "Example: 'allocman.adapters.choices.ChoicesStatusResolver'"
                    )

                try:
                    resolver_class = import_string(resolver_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import status resolver '{resolver_path}': {e}"
                    ) from e

                resolver = resolver_class()
                if not isinstance(resolver, StatusResolver):
                    raise ImproperlyConfigured(
                        f"'{resolver_path}' does not implement StatusResolver"
                    )
                _status_resolver = resolver
                logger.debug("Loaded status resolver: %s", resolver_path)

    return _status_resolver


def reset_status_resolver() -> None:
    """Reset the cached resolver. Useful for testing."""
    global _status_resolver
    _status_resolver = None


__all__ = [
    "get_status_resolver",
    "reset_status_resolver",
]
