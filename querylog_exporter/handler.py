"""Extraction orchestration: load cursor, fetch, render, persist cursor."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter

from filelock import FileLock

from querylog_exporter.config import ExporterConfig
from querylog_exporter.cursor import CursorStore, ensure_dir
from querylog_exporter.exceptions import StorageError
from querylog_exporter.logging_utils import CorrelationIdFilter, get_logger, log_operation
from querylog_exporter.models import ExtractionMetrics, ExtractionResult
from querylog_exporter.source import QuerySource
from querylog_exporter.transformation import LINE_DELIMITER, to_line

logger = get_logger(__name__)


def advisory_lock_path(lock_file: Path) -> Path:
    """Sibling file guarding the cursor across processes."""
    return lock_file.parent / f"{lock_file.name}.lock"


class Extractor:
    """Runs the incremental extraction pipeline.

    Every call to ``extract`` holds ``self._lock`` and an exclusive advisory
    lock on ``<lock_file>.lock`` from cursor load through cursor persist. Any
    extractor sharing the cursor file, in this process or another one (a
    ``--once`` run next to the server), waits for the current one to finish.
    """

    def __init__(
        self,
        config: ExporterConfig,
        cursor_store: CursorStore | None = None,
        source: QuerySource | None = None,
    ):
        self.config = config
        self.cursor_store = cursor_store or CursorStore(config.lock_file)
        self.source = source or QuerySource(
            config.db_location,
            upstream_placeholder=config.upstream_placeholder,
            table=config.table_name,
        )
        self._lock = threading.Lock()
        self._file_lock = FileLock(str(advisory_lock_path(Path(config.lock_file))))

    def extract(self, advance: bool = True) -> ExtractionResult:
        """Return all rows after the cursor (up to ``limit``) as text.

        With ``advance=False`` the cursor file is left untouched.
        Any ExporterError propagates and leaves the cursor unchanged.
        """
        with self._lock:
            metrics = ExtractionMetrics(correlation_id=CorrelationIdFilter.generate_correlation_id())
            start = perf_counter()
            try:
                self._acquire_file_lock()
                try:
                    result = self._run(metrics, advance)
                finally:
                    self._file_lock.release()
            except Exception as e:
                metrics.error_type = type(e).__name__
                metrics.error_message = str(e)
                raise
            else:
                metrics.success = True
                return result
            finally:
                metrics.end_time = datetime.now(timezone.utc)
                metrics.duration_seconds = perf_counter() - start
                if metrics.success:
                    logger.info("Extraction finished", extra=metrics.to_dict())
                else:
                    logger.error("Extraction failed", extra=metrics.to_dict())
                CorrelationIdFilter.set_correlation_id(None)

    def _acquire_file_lock(self) -> None:
        lock_path = Path(self._file_lock.lock_file)
        try:
            ensure_dir(lock_path.parent)
            self._file_lock.acquire()
        except OSError as e:
            raise StorageError(f"Failed to lock cursor file: {e}", details={"path": str(lock_path)}) from e

    def _run(self, metrics: ExtractionMetrics, advance: bool) -> ExtractionResult:
        with log_operation(logger, "load_cursor", lock_file=str(self.cursor_store.path)):
            cursor = self.cursor_store.load()
        metrics.previous_cursor = cursor

        with log_operation(logger, "fetch_rows", after=cursor, limit=self.config.limit):
            records = self.source.fetch(cursor, self.config.limit)

        lines: list[str] = []
        next_cursor = cursor
        for record in records:
            line, record_id = to_line(
                record,
                output_format=self.config.output_format,
                measurement=self.config.measurement,
                timestamp_precision=self.config.timestamp_precision,
            )
            lines.append(line + LINE_DELIMITER)
            next_cursor = max(next_cursor, record_id)

        advanced = False
        if lines and advance:
            with log_operation(logger, "store_cursor", cursor=next_cursor):
                self.cursor_store.store(next_cursor)
            advanced = True

        body = "".join(lines)
        metrics.rows_output = len(lines)
        metrics.bytes_output = len(body.encode("utf-8"))
        metrics.next_cursor = next_cursor
        metrics.cursor_advanced = advanced

        return ExtractionResult(
            body=body,
            rows=len(lines),
            previous_cursor=cursor,
            next_cursor=next_cursor,
            advanced=advanced,
        )
