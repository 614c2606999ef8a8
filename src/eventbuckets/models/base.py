"""
Domain Models - rows of the event-tagging store and run inputs/outputs
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from eventbuckets.errors import InputMissing


@dataclass
class Event:
    """An event payload, either bucketed or unclassified."""

    event: str
    bucket_id: int | None = None


@dataclass
class Bucket:
    """Named classification target. `name` is the natural key."""

    id: int
    name: str
    eat_it: bool = True
    report_it: bool = True


@dataclass
class Filter:
    """Regex rule owned by exactly one bucket."""

    bucket_id: int
    pattern: str
    report: bool = True


@dataclass
class HostRestriction:
    bucket_id: int
    host: str


@dataclass
class FilterRequest:
    """
    Everything one registration run needs.

    Flags default to enabled. `eat_it` and `report_it` are only persisted
    when the bucket is created by this run; `update_counts` is stored as the
    filter's `report` flag.
    """

    bucket_name: str
    pattern: str
    hosts: list[str] = field(default_factory=list)
    eat_it: bool = True
    report_it: bool = True
    update_counts: bool = True
    apply: bool = True
    self_test: bool = True
    dry_run: bool = False

    def __post_init__(self):
        if not self.bucket_name or not self.bucket_name.strip():
            raise InputMissing("I need a bucket name!")
        self.hosts = [h for h in self.hosts if h]


@dataclass
class BackfillResult:
    """
    Counters accumulated while scanning unclassified payloads.

    `matched` and `scanned` count distinct payloads; `tagged` counts the
    event rows those payloads updated.
    """

    matched: int = 0
    scanned: int = 0
    tagged: int = 0

    def progress_line(self) -> str:
        return f"(matched {self.matched} of {self.scanned} scanned)"

    def summary(self) -> str:
        return f"(matched {self.matched} of {self.scanned})"

    def to_dict(self) -> dict[str, int]:
        return {"matched": self.matched, "scanned": self.scanned, "tagged": self.tagged}


class RunState(Enum):
    """Lifecycle of one registration run."""

    START = "start"
    BUCKET_RESOLVED = "bucket_resolved"
    FILTER_PERSISTED = "filter_persisted"
    BACKFILL_DONE = "backfill_done"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMMITTED, RunState.ROLLED_BACK, RunState.ABORTED)


@dataclass
class RegistrationResult:
    """Outcome of a successful (or dry) registration run."""

    bucket_id: int
    bucket_created: bool
    filter_pattern: str
    hosts: list[str] = field(default_factory=list)
    backfill: BackfillResult | None = None
    committed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket_id": self.bucket_id,
            "bucket_created": self.bucket_created,
            "filter_pattern": self.filter_pattern,
            "hosts": self.hosts,
            "backfill": self.backfill.to_dict() if self.backfill else None,
            "committed": self.committed,
        }
