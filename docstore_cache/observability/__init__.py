"""
docstore-cache — Observability Module

Single observability adapter for the runtime.

Usage:
    from docstore_cache.observability import get_observability

    obs = get_observability()
    obs.increment("cache.hits")

    with obs.trace("cache.read"):
        ...
"""

from .monitoring import (
    JSONFormatter,
    ObservabilityAdapter,
    configure_logging,
    get_observability,
    initialize_observability,
    reset_observability,
)

__all__ = [
    "ObservabilityAdapter",
    "JSONFormatter",
    "configure_logging",
    "get_observability",
    "initialize_observability",
    "reset_observability",
]
