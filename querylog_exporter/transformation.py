"""Rendering of query records into output lines."""

from __future__ import annotations

import csv
import io

from querylog_exporter.models import QueryRecord, SchemaVersion

LINE_DELIMITER = "\n"

OUTPUT_FORMATS = ("line_protocol", "csv")

CSV_COLUMNS = ["id", "timestamp", "query_type", "status", "domain", "client", "upstream"]

_PRECISION_MULTIPLIERS = {"s": 1, "ms": 1_000, "us": 1_000_000, "ns": 1_000_000_000}

_TAG_ESCAPES = str.maketrans({"\\": "\\\\", ",": "\\,", "=": "\\=", " ": "\\ "})
_MEASUREMENT_ESCAPES = str.maketrans({"\\": "\\\\", ",": "\\,", " ": "\\ "})
_FIELD_STRING_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"'})


def scale_timestamp(timestamp: int | float, precision: str = "s") -> int:
    """Convert a timestamp in seconds to an integer in the given precision."""
    multiplier = _PRECISION_MULTIPLIERS[precision]
    if isinstance(timestamp, int):
        return timestamp * multiplier
    return int(round(timestamp * multiplier))


def _tag(value: object) -> str:
    # Line protocol tag values may not be empty
    text = str(value).replace("\n", " ")
    return text.translate(_TAG_ESCAPES) if text else "\\ "


def _string_field(value: str) -> str:
    return '"' + value.replace("\n", " ").translate(_FIELD_STRING_ESCAPES) + '"'


def to_line_protocol(
    record: QueryRecord,
    measurement: str = "dnsquery",
    timestamp_precision: str = "s",
) -> str:
    """Render a record as a single InfluxDB line protocol line (no delimiter).

    Low-cardinality values (query type, client, status) become tags; domain,
    upstream and, for schema version 2, reply type become fields.
    """
    tags = ",".join([
        f"query_type={_tag(record.query_type)}",
        f"client={_tag(record.client)}",
        f"status={_tag(record.status)}",
    ])
    fields = [
        f"domain={_string_field(record.domain)}",
        f"upstream={_string_field(record.upstream)}",
    ]
    if record.schema_version is SchemaVersion.V2 and record.reply_type is not None:
        fields.append(f"reply_type={record.reply_type}i")

    timestamp = scale_timestamp(record.timestamp, timestamp_precision)
    return f"{measurement.translate(_MEASUREMENT_ESCAPES)},{tags} {','.join(fields)} {timestamp}"


def to_csv_line(record: QueryRecord, timestamp_precision: str = "s") -> str:
    """Render a record as one CSV row (no delimiter)."""
    values = [
        record.id,
        scale_timestamp(record.timestamp, timestamp_precision),
        record.query_type,
        record.status,
        record.domain.replace("\n", " "),
        record.client.replace("\n", " "),
        record.upstream.replace("\n", " "),
    ]
    if record.schema_version is SchemaVersion.V2:
        values.append("" if record.reply_type is None else record.reply_type)

    buf = io.StringIO()
    csv.writer(buf, lineterminator="").writerow(values)
    return buf.getvalue()


def to_line(
    record: QueryRecord,
    output_format: str = "line_protocol",
    measurement: str = "dnsquery",
    timestamp_precision: str = "s",
) -> tuple[str, int]:
    """Render ``record`` in ``output_format`` and return it with the record id."""
    if output_format == "csv":
        line = to_csv_line(record, timestamp_precision)
    else:
        line = to_line_protocol(record, measurement, timestamp_precision)
    return line, record.id
