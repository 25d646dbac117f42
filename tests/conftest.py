"""Shared test fixtures for the query log exporter."""

import sqlite3
from contextlib import closing

import pytest

from querylog_exporter.config import ExporterConfig

V1_SCHEMA = """
    CREATE TABLE queries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp INTEGER NOT NULL,
        type INTEGER NOT NULL,
        status INTEGER NOT NULL,
        domain TEXT NOT NULL,
        client TEXT NOT NULL,
        forward TEXT,
        additional_info TEXT
    )
"""

V2_SCHEMA = """
    CREATE TABLE queries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp INTEGER NOT NULL,
        type INTEGER NOT NULL,
        status INTEGER NOT NULL,
        domain TEXT NOT NULL,
        client TEXT NOT NULL,
        forward TEXT,
        additional_info TEXT,
        reply_type INTEGER,
        reply_time REAL,
        dnssec INTEGER
    )
"""


class QueryLogDB:
    """Small helper around a temporary FTL-style database."""

    def __init__(self, path, schema=V1_SCHEMA):
        self.path = path
        with closing(sqlite3.connect(path)) as conn, conn:
            conn.execute(schema)

    def insert(self, row_id, timestamp=1700000000, query_type=1, status=2,
               domain="example.com", client="192.168.1.10", forward="8.8.8.8#53", **extra):
        columns = ["id", "timestamp", "type", "status", "domain", "client", "forward", *extra]
        values = [row_id, timestamp, query_type, status, domain, client, forward, *extra.values()]
        placeholders = ",".join("?" for _ in columns)
        with closing(sqlite3.connect(self.path)) as conn, conn:
            conn.execute(f"INSERT INTO queries ({','.join(columns)}) VALUES ({placeholders})", values)

    def insert_many(self, ids, **kwargs):
        for row_id in ids:
            self.insert(row_id, timestamp=1700000000 + row_id, **kwargs)


@pytest.fixture
def query_db(tmp_path):
    """Empty version 1 query log database."""
    return QueryLogDB(tmp_path / "pihole-FTL.db")


@pytest.fixture
def query_db_v2(tmp_path):
    """Empty version 2 query log database (has reply_type)."""
    return QueryLogDB(tmp_path / "pihole-FTL-v2.db", schema=V2_SCHEMA)


@pytest.fixture
def sample_config(tmp_path, query_db):
    """ExporterConfig pointing at temp files, ignoring any config.env."""
    return ExporterConfig(
        db_location=query_db.path,
        lock_file=tmp_path / "state" / "last_time_check",
        limit=5000,
        _env_file=None,
    )


@pytest.fixture
def cursor_file(sample_config):
    return sample_config.lock_file
