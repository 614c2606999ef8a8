"""
Backfill Scanner

Retroactively classifies unclassified events against a newly registered
filter. The scan walks distinct payloads rather than rows, so each payload
is regex-tested once and produces at most one UPDATE no matter how many
duplicate events share it.
"""

import re
from collections.abc import Callable
from contextlib import ExitStack

from eventbuckets.errors import CursorFailed, UnclassifiedQueryFailed, UpdateFailed
from eventbuckets.models import BackfillResult
from eventbuckets.storage import EventStore
from eventbuckets.utils.logging import get_logger
from eventbuckets.validation import matches

logger = get_logger(__name__)

ProgressCallback = Callable[[BackfillResult], None]


class BackfillScanner:
    """
    Tags matching unclassified events with a bucket id.

    The scan cursor and the updates share the store's open transaction;
    any failure propagates and the caller abandons the whole transaction.
    """

    def __init__(self, store: EventStore):
        self.store = store

    def scan(
        self,
        bucket_id: int,
        compiled: re.Pattern,
        on_progress: ProgressCallback | None = None,
    ) -> BackfillResult:
        """
        Run the backfill.

        Args:
            bucket_id: Bucket that matching events are assigned to
            compiled: Validated filter
            on_progress: Called after every scanned payload with the live counters

        Returns:
            Final counters
        """
        result = BackfillResult()

        with ExitStack() as stack:
            try:
                payloads = stack.enter_context(self.store.unclassified_payloads())
            except self.store.Error as e:
                raise UnclassifiedQueryFailed("couldn't find unclassified events", e) from e

            while True:
                try:
                    payload = next(payloads)
                except StopIteration:
                    break
                except self.store.Error as e:
                    raise CursorFailed("couldn't walk rows while looking for matching events", e) from e

                if payload is None:
                    raise CursorFailed("couldn't read existing event", "NULL event payload")

                result.scanned += 1

                if matches(compiled, payload):
                    result.matched += 1
                    try:
                        result.tagged += self.store.tag_payload(bucket_id, payload)
                    except self.store.Error as e:
                        raise UpdateFailed("couldn't update matching events", e) from e

                if on_progress is not None:
                    on_progress(result)

        logger.info(
            "Backfill finished",
            bucket_id=bucket_id,
            pattern=compiled.pattern,
            **result.to_dict(),
        )
        return result
