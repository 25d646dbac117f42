"""Incremental DNS query log exporter package."""

from querylog_exporter.config import ExporterConfig, get_config
from querylog_exporter.cursor import CursorStore
from querylog_exporter.exceptions import (
    ConfigurationError,
    ExporterError,
    QueryError,
    RowError,
    StorageError,
)
from querylog_exporter.handler import Extractor
from querylog_exporter.models import ExtractionResult, QueryRecord, SchemaVersion
from querylog_exporter.source import QuerySource
from querylog_exporter.transformation import to_line

__all__ = [
    "ExporterConfig",
    "get_config",
    "CursorStore",
    "ExporterError",
    "ConfigurationError",
    "StorageError",
    "QueryError",
    "RowError",
    "Extractor",
    "ExtractionResult",
    "QueryRecord",
    "SchemaVersion",
    "QuerySource",
    "to_line",
]
