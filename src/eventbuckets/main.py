"""
Event Buckets - add a bucket filter and backfill unclassified events

Two phases: a validation phase (inputs, regex compile, optional self-test)
that never touches the database, then one transaction that resolves the
bucket, stores the filter and tags matching unclassified events.
"""

import argparse
import sys
from collections.abc import Sequence
from typing import TextIO

from eventbuckets.engine import register_filter
from eventbuckets.errors import BucketFilterError, ConfigMissing, ConnectFailed, InputMissing
from eventbuckets.models import FilterRequest
from eventbuckets.storage import EventStore
from eventbuckets.utils.config import (
    Settings,
    get_database_dsn,
    get_run_config,
    get_settings,
    load_config,
)
from eventbuckets.utils.logging import get_logger, setup_logging
from eventbuckets.utils.metrics import RunMetrics
from eventbuckets.utils.progress import ProgressReporter
from eventbuckets.validation import compile_filter, read_filter, read_test_text, self_test

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventbuckets-add-filter",
        description="Add a regex filter to an event bucket and apply it to unclassified events",
    )
    parser.add_argument("--config", type=str, default="", help="the config file")
    parser.add_argument(
        "--bucket-name", type=str, default="", help="which bucket this match will go to"
    )
    parser.add_argument(
        "--bucket-filter",
        type=str,
        default="",
        help="which regex will match this bucket (read from stdin when omitted)",
    )
    parser.add_argument(
        "--only-on",
        action="append",
        default=[],
        metavar="HOSTS",
        help="comma-separated list of hosts to restrict this filter to matching on (repeatable)",
    )
    parser.add_argument(
        "--test-data",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="wait for test data on stdin",
    )
    parser.add_argument(
        "--eat-it",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="on a match, don't pass the event on to other buckets",
    )
    parser.add_argument(
        "--report-it", action=argparse.BooleanOptionalAction, default=True, help="record matches"
    )
    parser.add_argument(
        "--update-counts",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="update filter usage count on matches",
    )
    parser.add_argument(
        "--apply",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="apply bucket to unclassified events",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="run everything, report the counts, then roll back",
    )
    parser.add_argument(
        "--init-schema",
        action="store_true",
        help="create missing tables and the unique bucket-name index first",
    )
    parser.add_argument("--log-level", type=str, default=None, help="log level (default: settings)")
    parser.add_argument(
        "--log-format", type=str, choices=["text", "json"], default=None, help="log output format"
    )
    return parser


def parse_hosts(values: Sequence[str]) -> list[str]:
    """Flatten repeated comma-separated host lists."""
    hosts = []
    for value in values:
        hosts.extend(h.strip() for h in value.split(",") if h.strip())
    return hosts


def run(args: argparse.Namespace, stdin: TextIO, stdout: TextIO, settings: Settings) -> int:
    """Execute one registration run. Raises BucketFilterError on failure."""

    def echo(message: str):
        print(message, file=stdout)

    if not args.config:
        raise ConfigMissing("I need a config file!")

    config = load_config(args.config)
    dsn = get_database_dsn(config)
    run_config = get_run_config(config)

    if not args.bucket_name:
        raise InputMissing("I need a bucket name!")

    # Validation phase: no database access
    pattern = args.bucket_filter
    if not pattern:
        stdout.write("I need a bucket filter, so give me one now: ")
        stdout.flush()
        pattern = read_filter(stdin)

    compiled = compile_filter(pattern)

    if args.test_data:
        echo("Give me a test line to make sure the regex you gave me does what you want it to:")
        self_test(compiled, read_test_text(stdin))

    request = FilterRequest(
        bucket_name=args.bucket_name,
        pattern=pattern,
        hosts=parse_hosts(args.only_on),
        eat_it=args.eat_it,
        report_it=args.report_it,
        update_counts=args.update_counts,
        apply=args.apply,
        self_test=args.test_data,
        dry_run=args.dry_run,
    )

    # Transactional phase
    batch_size = run_config.scan_batch_size(settings)
    gateway, job = run_config.metrics_target(settings)
    metrics = RunMetrics()

    try:
        with EventStore.connect(dsn, scan_batch_size=batch_size) as store:
            if args.init_schema:
                try:
                    store.ensure_schema()
                except store.Error as e:
                    raise ConnectFailed("couldn't create schema", e) from e

            result = register_filter(
                store,
                request,
                compiled,
                progress=ProgressReporter(stream=stdout),
                metrics=metrics,
                echo=echo,
            )
    finally:
        metrics.push(gateway, job)

    echo("   dry run, rolled back" if request.dry_run else "   done!")
    logger.debug("Run finished", **result.to_dict())
    return 0


def main(
    argv: Sequence[str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Main entry point. Returns the process exit code."""
    argv = list(sys.argv[1:] if argv is None else argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    parser = build_parser()
    if not argv:
        parser.print_help(stdout)
        return 0

    args = parser.parse_args(argv)
    settings = get_settings()

    setup_logging(
        level=args.log_level or settings.log_level,
        format_type=args.log_format or settings.log_format,
        output_file=settings.log_file,
    )

    try:
        return run(args, stdin, stdout, settings)
    except BucketFilterError as e:
        logger.debug("Run failed", **e.to_dict())
        print(str(e), file=stdout)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
