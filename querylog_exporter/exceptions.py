"""Custom exception hierarchy for the query log exporter."""

from __future__ import annotations


class ExporterError(Exception):
    """Base exception for all exporter-related errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(ExporterError):
    """Raised when configuration is missing or invalid."""
    pass


class StorageError(ExporterError):
    """Raised when the cursor file cannot be read, parsed or written."""
    pass


class QueryError(ExporterError):
    """Raised when the source database cannot be opened or queried."""
    pass


class RowError(ExporterError):
    """Raised when a fetched row does not have the expected shape."""
    pass
