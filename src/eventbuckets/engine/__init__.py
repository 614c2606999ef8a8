"""
Engine Module - filter registration and backfill

    Example:
        from eventbuckets.engine import register_filter
        result = register_filter(store, request, compiled)
"""

from eventbuckets.engine.backfill import BackfillScanner
from eventbuckets.engine.coordinator import TransactionCoordinator, register_filter
from eventbuckets.engine.registrar import FilterRegistrar
from eventbuckets.engine.resolver import BucketResolver

__all__ = [
    "BackfillScanner",
    "BucketResolver",
    "FilterRegistrar",
    "TransactionCoordinator",
    "register_filter",
]
