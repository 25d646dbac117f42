"""Bounded, ordered range reads from the FTL query log database."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from querylog_exporter.exceptions import QueryError, RowError
from querylog_exporter.logging_utils import get_logger
from querylog_exporter.models import QueryRecord, SchemaVersion

logger = get_logger(__name__)

BASE_COLUMNS = ("id", "timestamp", "type", "status", "domain", "client", "forward")

_SELECT_V1 = """
    SELECT
        id,
        timestamp,
        type AS query_type,
        status,
        domain,
        client,
        IFNULL(forward, ?) AS upstream
    FROM {table}
    WHERE id > ?
    ORDER BY id ASC
    LIMIT ?
"""

_SELECT_V2 = """
    SELECT
        id,
        timestamp,
        type AS query_type,
        status,
        domain,
        client,
        IFNULL(forward, ?) AS upstream,
        reply_type
    FROM {table}
    WHERE id > ?
    ORDER BY id ASC
    LIMIT ?
"""


def open_readonly(db_location: Path) -> sqlite3.Connection:
    """Open the database read-only; a missing file is an error, not a new DB."""
    if not db_location.is_file():
        raise QueryError(f"Failed to open database: {db_location} does not exist")
    try:
        conn = sqlite3.connect(f"{db_location.resolve().as_uri()}?mode=ro", uri=True)
    except sqlite3.Error as e:
        raise QueryError(f"Failed to open database: {e}", details={"db_location": str(db_location)}) from e
    conn.row_factory = sqlite3.Row
    return conn


def detect_schema_version(conn: sqlite3.Connection, table: str) -> SchemaVersion:
    """Inspect the table's columns and return the matching schema version."""
    try:
        columns = {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
    except sqlite3.Error as e:
        raise QueryError(f"Failed to query database: {e}", details={"table": table}) from e

    if not columns:
        raise QueryError(f"Failed to query database: no such table: {table}")

    missing = [c for c in BASE_COLUMNS if c not in columns]
    if missing:
        raise QueryError(
            f"Failed to query database: table {table} is missing columns {missing}",
            details={"table": table},
        )
    return SchemaVersion.V2 if "reply_type" in columns else SchemaVersion.V1


def row_to_record(row: sqlite3.Row, schema_version: SchemaVersion) -> QueryRecord:
    """Validate a raw row into a QueryRecord, raising RowError on bad shape."""
    data = dict(row)
    try:
        return QueryRecord.model_validate({**data, "schema_version": schema_version})
    except PydanticValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise RowError(
            f"Malformed row with id {data.get('id')!r}: invalid or missing {', '.join(fields)}",
            details={"row_id": data.get("id"), "error_count": e.error_count()},
        ) from e


class QuerySource:
    """Fetches query rows strictly after a given id.

    Each ``fetch`` opens and closes its own connection so no lock is held on
    the database between requests.
    """

    def __init__(self, db_location: Path | str, upstream_placeholder: str = "null", table: str = "queries"):
        self.db_location = Path(db_location)
        self.upstream_placeholder = upstream_placeholder
        self.table = table

    def fetch(self, after: int, limit: int) -> list[QueryRecord]:
        """Return at most ``limit`` records with ``id > after``, ascending by id."""
        if limit < 1:
            raise QueryError(f"Failed to query database: limit must be >= 1, got {limit}")

        with closing(open_readonly(self.db_location)) as conn:
            schema_version = detect_schema_version(conn, self.table)
            sql = (_SELECT_V2 if schema_version is SchemaVersion.V2 else _SELECT_V1).format(table=self.table)
            try:
                rows = conn.execute(sql, (self.upstream_placeholder, after, limit)).fetchall()
            except sqlite3.Error as e:
                raise QueryError(
                    f"Failed to query database: {e}",
                    details={"db_location": str(self.db_location), "after": after},
                ) from e

        records = [row_to_record(row, schema_version) for row in rows]
        logger.debug(
            "Fetched query rows",
            extra={"after": after, "limit": limit, "rows": len(records), "schema_version": schema_version.value},
        )
        return records
