"""
Prometheus Metrics

Per-run counters for filter registration. The tool is a batch job, so
metrics live on a private registry and are pushed to a Pushgateway at the
end of the run instead of being scraped.
"""

import time

from prometheus_client import CollectorRegistry, Counter, Gauge, push_to_gateway

from eventbuckets.utils.logging import get_logger

logger = get_logger(__name__)


class RunMetrics:
    """
    Metrics for one registration run.

    Counters are incremented as the engine works; `push()` ships them.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self._started = time.monotonic()

        # Counters
        self.events_scanned = Counter(
            "eventbuckets_backfill_payloads_scanned_total",
            "Distinct unclassified payloads examined by the backfill scan",
            registry=self.registry,
        )

        self.events_matched = Counter(
            "eventbuckets_backfill_payloads_matched_total",
            "Distinct unclassified payloads matched by the new filter",
            registry=self.registry,
        )

        self.events_tagged = Counter(
            "eventbuckets_backfill_events_tagged_total",
            "Event rows assigned to a bucket by the backfill scan",
            registry=self.registry,
        )

        self.filters_registered = Counter(
            "eventbuckets_filters_registered_total",
            "Filters persisted",
            registry=self.registry,
        )

        self.buckets_created = Counter(
            "eventbuckets_buckets_created_total",
            "Buckets created by filter registration",
            registry=self.registry,
        )

        self.failures = Counter(
            "eventbuckets_run_failures_total",
            "Aborted registration runs",
            ["error"],
            registry=self.registry,
        )

        # Gauges
        self.run_duration = Gauge(
            "eventbuckets_run_duration_seconds",
            "Wall-clock duration of the last registration run",
            registry=self.registry,
        )

        self.last_success = Gauge(
            "eventbuckets_last_success_timestamp_seconds",
            "Unix time of the last committed registration run",
            registry=self.registry,
        )

    def record_backfill(self, matched: int, scanned: int, tagged: int):
        self.events_matched.inc(matched)
        self.events_scanned.inc(scanned)
        self.events_tagged.inc(tagged)

    def record_failure(self, error: Exception):
        self.failures.labels(error=type(error).__name__).inc()

    def finish(self, committed: bool):
        self.run_duration.set(time.monotonic() - self._started)
        if committed:
            self.last_success.set_to_current_time()

    def push(self, gateway: str | None, job: str) -> bool:
        """
        Push metrics to a Pushgateway.

        Failures are logged and swallowed: metrics never fail a run.

        Returns:
            True if the push succeeded
        """
        if not gateway:
            return False

        try:
            push_to_gateway(gateway, job=job, registry=self.registry)
            logger.info("Pushed run metrics", gateway=gateway, job=job)
            return True
        except OSError as e:
            logger.warning("Failed to push run metrics", gateway=gateway, error=str(e))
            return False
