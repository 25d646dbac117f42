"""File-backed cursor holding the id of the last delivered query row."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from pathlib import Path

from querylog_exporter.exceptions import StorageError
from querylog_exporter.logging_utils import get_logger

logger = get_logger(__name__)


def ensure_dir(path: Path) -> None:
    """Create directory if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)


def parse_cursor(text: str) -> int:
    """Parse cursor file contents; surrounding whitespace is ignored."""
    value = text.strip()
    if not value or not (value.isascii() and value.isdigit()):
        raise StorageError(
            f"Invalid lock file contents: expected a non-negative integer, got {value[:32]!r}"
        )
    return int(value)


class CursorStore:
    """Reads and atomically replaces the persisted cursor.

    No locking happens here: callers must serialize ``load``/``store`` pairs.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> int:
        """Return the persisted cursor, or 0 when none was ever stored."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No lock file found, starting from the beginning", extra={"path": str(self.path)})
            return 0
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read lock file: {e}", details={"path": str(self.path)}) from e

        return parse_cursor(text)

    def store(self, value: int) -> None:
        """Replace the persisted cursor with ``value``.

        Writes a uniquely named sibling temp file and renames it over the
        target, so a reader sees either the old or the new value.
        """
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise StorageError(f"Failed to write lock file: invalid cursor value {value!r}")

        temp_file: Path | None = None
        try:
            ensure_dir(self.path.parent)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                temp_file = Path(f.name)
                f.write(str(value))
                f.flush()
                os.fsync(f.fileno())
            temp_file.replace(self.path)
        except OSError as e:
            if temp_file is not None:
                with suppress(OSError):
                    temp_file.unlink(missing_ok=True)
            raise StorageError(f"Failed to write lock file: {e}", details={"path": str(self.path)}) from e

        logger.debug("Cursor persisted", extra={"path": str(self.path), "cursor": value})
