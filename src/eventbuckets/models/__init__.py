"""
Models Module - store rows and run descriptors

    Example:
        from eventbuckets.models import FilterRequest
        request = FilterRequest(bucket_name="errors", pattern="ERROR")
"""

from eventbuckets.models.base import (
    BackfillResult,
    Bucket,
    Event,
    Filter,
    FilterRequest,
    HostRestriction,
    RegistrationResult,
    RunState,
)

__all__ = [
    "BackfillResult",
    "Bucket",
    "Event",
    "Filter",
    "FilterRequest",
    "HostRestriction",
    "RegistrationResult",
    "RunState",
]
