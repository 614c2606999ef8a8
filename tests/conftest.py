"""
Pytest configuration and fixtures.

Every test gets its own file-backed SQLite store so that rollback behaviour
can be checked from a second, independent connection.
"""

import sqlite3

import pytest

from eventbuckets.models import Event, Filter, HostRestriction
from eventbuckets.storage import EventStore
from eventbuckets.utils.config import get_settings


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "events.db"


@pytest.fixture
def dsn(db_path):
    return f"sqlite:///{db_path}"


@pytest.fixture
def store(dsn):
    store = EventStore.connect(dsn)
    store.ensure_schema()
    yield store
    store.close()


class StoreRows:
    """Read-back queries for checking what a run left in the store."""

    def __init__(self, store: EventStore):
        self.store = store

    def count_buckets(self, name=None):
        if name is None:
            return self.store._fetchall("SELECT COUNT(*) FROM buckets")[0][0]
        return self.store._fetchall("SELECT COUNT(*) FROM buckets WHERE name = %s", (name,))[0][0]

    def filters_for(self, bucket_id):
        rows = self.store._fetchall(
            "SELECT bucket_id, filter, report FROM filters WHERE bucket_id = %s", (bucket_id,)
        )
        return [Filter(bucket_id=r[0], pattern=r[1], report=bool(r[2])) for r in rows]

    def hosts_for(self, bucket_id):
        rows = self.store._fetchall("SELECT bucket_id, host FROM onlyon WHERE bucket_id = %s", (bucket_id,))
        return [HostRestriction(bucket_id=r[0], host=r[1]) for r in rows]

    def events(self):
        rows = self.store._fetchall("SELECT event, bucket_id FROM events ORDER BY event")
        return [Event(event=r[0], bucket_id=r[1]) for r in rows]


@pytest.fixture
def rows(store):
    return StoreRows(store)


@pytest.fixture
def seed_events(store):
    """Insert event rows (autocommitted) and return nothing."""

    def _seed(payloads, bucket_id=None):
        store.connection.executemany(
            "INSERT INTO events(event, bucket_id) VALUES(?, ?)",
            [(payload, bucket_id) for payload in payloads],
        )

    return _seed


@pytest.fixture
def inspect_db(db_path):
    """Open a second connection to read committed state only."""
    connections = []

    def _open():
        conn = sqlite3.connect(db_path)
        connections.append(conn)
        return conn

    yield _open

    for conn in connections:
        conn.close()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Keep EVENTBUCKETS_* variables from the host out of the tests."""
    monkeypatch.delenv("EVENTBUCKETS_METRICS_PUSHGATEWAY", raising=False)
    monkeypatch.delenv("EVENTBUCKETS_LOG_FILE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
