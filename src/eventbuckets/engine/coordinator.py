"""
Transaction Coordinator

Runs bucket resolution, filter registration and the optional backfill as
one atomic unit:

    START -> BUCKET_RESOLVED -> FILTER_PERSISTED -> [BACKFILL_DONE] -> COMMITTED

Any error moves the run to ABORTED and the transaction is rolled back, so
nothing from a failed run is visible afterwards. Dry runs execute every
step and end in ROLLED_BACK instead of COMMITTED. There are no retries:
every failure is terminal for the run.
"""

import re
from collections.abc import Callable

from eventbuckets.engine.backfill import BackfillScanner
from eventbuckets.engine.registrar import FilterRegistrar
from eventbuckets.engine.resolver import BucketResolver
from eventbuckets.errors import (
    CommitFailed,
    RollbackFailed,
    TxStartFailed,
    UnclassifiedQueryFailed,
)
from eventbuckets.models import FilterRequest, RegistrationResult, RunState
from eventbuckets.storage import EventStore
from eventbuckets.utils.logging import get_logger
from eventbuckets.utils.metrics import RunMetrics
from eventbuckets.utils.progress import NullProgress, ProgressReporter

logger = get_logger(__name__)


def _silent(message: str):
    pass


class TransactionCoordinator:
    """
    One-shot coordinator for a single registration run.

    Args:
        store: Open event store
        progress: Status line renderer for the backfill
        metrics: Run metrics to update, optional
        echo: Sink for operator-facing messages
    """

    def __init__(
        self,
        store: EventStore,
        progress: ProgressReporter | NullProgress | None = None,
        metrics: RunMetrics | None = None,
        echo: Callable[[str], None] | None = None,
    ):
        self.store = store
        self.resolver = BucketResolver(store)
        self.registrar = FilterRegistrar(store)
        self.scanner = BackfillScanner(store)
        self.progress = progress or NullProgress()
        self.metrics = metrics
        self.echo = echo or _silent
        self.state = RunState.START

    def _advance(self, state: RunState):
        logger.debug("Run state change", previous=self.state.value, state=state.value)
        self.state = state

    def run(self, request: FilterRequest, compiled: re.Pattern) -> RegistrationResult:
        """
        Execute the registration transaction.

        Args:
            request: Run descriptor
            compiled: Filter already accepted by the validator

        Returns:
            RegistrationResult for a committed (or dry) run

        Raises:
            BucketFilterError: On any failure, after the transaction is abandoned
        """
        if self.state.is_terminal:
            raise RuntimeError(f"Coordinator already used (state={self.state.value})")

        try:
            result = self._run(request, compiled)
        except Exception as e:
            self._abort(e)
            raise

        if self.metrics is not None:
            self.metrics.finish(result.committed)
        return result

    def _run(self, request: FilterRequest, compiled: re.Pattern) -> RegistrationResult:
        self._check_unique_bucket_names()

        try:
            self.store.begin()
        except self.store.Error as e:
            raise TxStartFailed("ruh-oh, couldn't start transaction to insert new bucket filter", e) from e

        bucket_id, created = self.resolver.resolve(request.bucket_name, request.eat_it, request.report_it)
        self._advance(RunState.BUCKET_RESOLVED)

        verb = "Making a new bucket" if created else "Adding to bucket"
        self.echo(f'{verb} called "{request.bucket_name}" using filter "{request.pattern}"...')
        if request.hosts:
            self.echo(".... but only for " + ", ".join(request.hosts))

        self.registrar.register(bucket_id, request.pattern, request.update_counts, request.hosts)
        self._advance(RunState.FILTER_PERSISTED)

        result = RegistrationResult(
            bucket_id=bucket_id,
            bucket_created=created,
            filter_pattern=request.pattern,
            hosts=list(request.hosts),
        )

        if request.apply:
            try:
                pending = self.store.count_unclassified()
            except self.store.Error as e:
                raise UnclassifiedQueryFailed("couldn't find unclassified events", e) from e
            logger.info("Looking for unclassified events for this new filter", unclassified_events=pending)

            self.progress.start("Matching events")
            try:
                backfill = self.scanner.scan(
                    bucket_id,
                    compiled,
                    on_progress=lambda counters: self.progress.update(counters.progress_line()),
                )
            except Exception:
                self.progress.stop()
                raise
            self.progress.stop(backfill.summary())

            result.backfill = backfill
            self._advance(RunState.BACKFILL_DONE)

        if request.dry_run:
            try:
                self.store.rollback()
            except self.store.Error as e:
                raise RollbackFailed("ruh-oh, couldn't roll back dry run", e) from e
            self._advance(RunState.ROLLED_BACK)
            logger.info("Dry run rolled back", **result.to_dict())
            return result

        try:
            self.store.commit()
        except self.store.Error as e:
            raise CommitFailed("ruh-oh, couldn't commit transaction to insert new bucket", e) from e

        result.committed = True
        self._advance(RunState.COMMITTED)
        self._record(result)
        logger.info("Registration committed", **result.to_dict())
        return result

    def _check_unique_bucket_names(self):
        # Called before BEGIN; a failed query aborts an open PostgreSQL transaction
        try:
            unique = self.store.has_unique_bucket_names()
        except self.store.Error as e:
            logger.warning("Couldn't check for a unique bucket name index", error=str(e))
            return

        if not unique:
            logger.warning("No unique index on buckets.name, concurrent runs may duplicate buckets")
            self.echo("warning: buckets.name has no unique index (run with --init-schema to add it)")

    def _record(self, result: RegistrationResult):
        if self.metrics is None:
            return
        self.metrics.filters_registered.inc()
        if result.bucket_created:
            self.metrics.buckets_created.inc()
        if result.backfill is not None:
            self.metrics.record_backfill(
                result.backfill.matched, result.backfill.scanned, result.backfill.tagged
            )

    def _abort(self, error: Exception):
        try:
            self.store.rollback()
        except self.store.Error as e:
            logger.warning("Rollback after failure failed", error=str(e))

        logger.error(
            "Registration aborted",
            state=self.state.value,
            error=type(error).__name__,
            detail=str(error),
        )
        self._advance(RunState.ABORTED)

        if self.metrics is not None:
            self.metrics.record_failure(error)
            self.metrics.finish(committed=False)


def register_filter(
    store: EventStore,
    request: FilterRequest,
    compiled: re.Pattern,
    progress: ProgressReporter | NullProgress | None = None,
    metrics: RunMetrics | None = None,
    echo: Callable[[str], None] | None = None,
) -> RegistrationResult:
    """Run one registration transaction with a fresh coordinator."""
    coordinator = TransactionCoordinator(store, progress=progress, metrics=metrics, echo=echo)
    return coordinator.run(request, compiled)
