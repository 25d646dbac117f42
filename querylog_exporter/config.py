"""Configuration management for the query log exporter."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from querylog_exporter.exceptions import ConfigurationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class ExporterConfig(BaseSettings):
    """Configuration for the incremental query log endpoint."""

    model_config = SettingsConfigDict(
        env_file="config.env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Extraction
    limit: int = Field(default=5000, ge=1, description="Max rows returned per request")
    db_location: Path = Field(default=Path("./pihole-FTL.db"), description="Path to the FTL SQLite database")
    lock_file: Path = Field(default=Path("./last_time_check"), description="Cursor persistence file")
    table_name: str = Field(default="queries")

    # Output
    output_format: Literal["line_protocol", "csv"] = Field(default="line_protocol")
    measurement: str = Field(default="dnsquery", min_length=1)
    upstream_placeholder: str = Field(default="null", min_length=1)
    timestamp_precision: Literal["s", "ms", "us", "ns"] = Field(default="s")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        # Interpolated into SQL, so only plain identifiers are accepted
        if not _IDENTIFIER.match(v):
            raise ValueError(f"TABLE_NAME must be a plain SQL identifier, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v


def get_config() -> ExporterConfig:
    """Load configuration from environment."""
    try:
        load_dotenv("config.env")
        return ExporterConfig()
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e
