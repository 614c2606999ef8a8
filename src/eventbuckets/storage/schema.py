"""
Schema definitions for the event-tagging store.

`events` normally exists already (it is filled by the ingestion side); the
statements below only create what is missing. The unique index on
`buckets.name` is what makes concurrent find-or-create safe.
"""

POSTGRES_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS buckets (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        eat_it BOOLEAN NOT NULL DEFAULT TRUE,
        report_it BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS filters (
        bucket_id INTEGER NOT NULL REFERENCES buckets(id),
        filter TEXT NOT NULL,
        report BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS onlyon (
        bucket_id INTEGER NOT NULL REFERENCES buckets(id),
        host TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        event TEXT NOT NULL,
        bucket_id INTEGER REFERENCES buckets(id)
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS buckets_name_key ON buckets(name)",
    "CREATE INDEX IF NOT EXISTS events_unclassified_idx ON events(event) WHERE bucket_id IS NULL",
    "CREATE INDEX IF NOT EXISTS filters_bucket_id_idx ON filters(bucket_id)",
]

SQLITE_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS buckets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        eat_it INTEGER NOT NULL DEFAULT 1,
        report_it INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS filters (
        bucket_id INTEGER NOT NULL REFERENCES buckets(id),
        filter TEXT NOT NULL,
        report INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS onlyon (
        bucket_id INTEGER NOT NULL REFERENCES buckets(id),
        host TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        event TEXT NOT NULL,
        bucket_id INTEGER REFERENCES buckets(id)
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS buckets_name_key ON buckets(name)",
    "CREATE INDEX IF NOT EXISTS filters_bucket_id_idx ON filters(bucket_id)",
]

SCHEMAS = {
    "postgres": POSTGRES_SCHEMA,
    "sqlite": SQLITE_SCHEMA,
}
