"""
Filter Registrar - persists a filter and its host restrictions
"""

from eventbuckets.errors import FilterInsertFailed, HostInsertFailed
from eventbuckets.models import Filter, HostRestriction
from eventbuckets.storage import EventStore
from eventbuckets.utils.logging import get_logger

logger = get_logger(__name__)


class FilterRegistrar:
    """Writes one filter row plus one onlyon row per host, all in the open transaction."""

    def __init__(self, store: EventStore):
        self.store = store

    def register(
        self, bucket_id: int, pattern: str, report: bool = True, hosts: list[str] | None = None
    ) -> Filter:
        rule = Filter(bucket_id=bucket_id, pattern=pattern, report=report)
        try:
            self.store.insert_filter(rule)
        except self.store.Error as e:
            raise FilterInsertFailed("couldn't insert new bucket filter", e) from e

        restrictions = [HostRestriction(bucket_id=bucket_id, host=host) for host in hosts or []]
        for restriction in restrictions:
            try:
                self.store.insert_host_restriction(restriction)
            except self.store.Error as e:
                raise HostInsertFailed("couldn't insert new bucket host restriction", e) from e

        logger.info(
            "Registered filter",
            bucket_id=bucket_id,
            pattern=pattern,
            report=report,
            hosts=[r.host for r in restrictions],
        )
        return rule
