"""Data models for the query log exporter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, StrictInt, model_validator


class SchemaVersion(int, Enum):
    """Shape of the source ``queries`` table.

    V1 has no ``reply_type`` column; V2 adds it.
    """

    V1 = 1
    V2 = 2


class QueryRecord(BaseModel):
    """One row of the DNS query log, normalized for output."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: StrictInt = Field(..., ge=0)
    timestamp: StrictInt | float
    query_type: StrictInt
    status: StrictInt
    domain: str
    client: str
    upstream: str
    reply_type: StrictInt | None = None
    schema_version: SchemaVersion = SchemaVersion.V1

    @model_validator(mode="after")
    def check_reply_type_matches_version(self) -> "QueryRecord":
        if self.schema_version is SchemaVersion.V1 and self.reply_type is not None:
            raise ValueError("reply_type is only valid for schema version 2")
        return self


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of a single extraction request."""

    body: str
    rows: int
    previous_cursor: int
    next_cursor: int
    advanced: bool


@dataclass
class ExtractionMetrics:
    """Metrics collected during one extraction."""

    correlation_id: str = ""
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: datetime | None = None
    duration_seconds: float = 0.0

    previous_cursor: int | None = None
    next_cursor: int | None = None
    rows_output: int = 0
    bytes_output: int = 0
    cursor_advanced: bool = False

    success: bool = False
    error_message: str = ""
    error_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": round(self.duration_seconds, 4),
            "previous_cursor": self.previous_cursor,
            "next_cursor": self.next_cursor,
            "rows_output": self.rows_output,
            "bytes_output": self.bytes_output,
            "cursor_advanced": self.cursor_advanced,
            "success": self.success,
            "error_message": self.error_message,
            "error_type": self.error_type,
        }
