"""
Bucket Resolver - find-or-create a bucket by name inside the open transaction
"""

from eventbuckets.errors import BucketInsertFailed, LookupFailed
from eventbuckets.models import Bucket
from eventbuckets.storage import EventStore
from eventbuckets.utils.logging import get_logger

logger = get_logger(__name__)


class BucketResolver:
    """
    Resolves a bucket name to a stable id.

    An existing bucket is returned unchanged: its eat_it/report_it flags are
    never rewritten. A missing one is inserted with the caller's flags. If
    the insert loses a race against a concurrent run (unique-name conflict)
    the winner's id is used instead.
    """

    def __init__(self, store: EventStore):
        self.store = store

    def _lookup(self, name: str) -> Bucket | None:
        try:
            return self.store.get_bucket(name)
        except self.store.Error as e:
            raise LookupFailed("couldn't search for existing bucket", e) from e

    def resolve(self, name: str, eat_it: bool = True, report_it: bool = True) -> tuple[int, bool]:
        """
        Find or create the bucket called `name`.

        Returns:
            (bucket id, whether this call created the bucket)
        """
        bucket = self._lookup(name)
        if bucket is not None:
            logger.info("Found existing bucket", bucket=name, bucket_id=bucket.id)
            if (bucket.eat_it, bucket.report_it) != (eat_it, report_it):
                logger.info(
                    "Existing bucket keeps its flags",
                    bucket=name,
                    eat_it=bucket.eat_it,
                    report_it=bucket.report_it,
                )
            return bucket.id, False

        try:
            bucket_id = self.store.insert_bucket(name, eat_it, report_it)
        except self.store.IntegrityError as e:
            logger.warning("Bucket created concurrently, re-resolving", bucket=name, error=str(e))
            winner = self._lookup(name)
            if winner is None:
                raise BucketInsertFailed("couldn't insert new bucket", e) from e
            return winner.id, False
        except self.store.Error as e:
            raise BucketInsertFailed("couldn't insert new bucket", e) from e

        logger.info(
            "Created bucket", bucket=name, bucket_id=bucket_id, eat_it=eat_it, report_it=report_it
        )
        return bucket_id, True
