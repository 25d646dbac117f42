"""CLI entry point for the query log exporter."""

from __future__ import annotations

import argparse
import sys

import uvicorn

from querylog_exporter.config import get_config
from querylog_exporter.cursor import CursorStore
from querylog_exporter.exceptions import ConfigurationError, ExporterError
from querylog_exporter.handler import Extractor
from querylog_exporter.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Serve new DNS query log rows as newline-delimited text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m querylog_exporter.cli
  python -m querylog_exporter.cli --port 9100
  python -m querylog_exporter.cli --once
  python -m querylog_exporter.cli --once --dry-run
  python -m querylog_exporter.cli --show-cursor
        """,
    )

    parser.add_argument("--host", type=str, default=None, help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides PORT)")
    parser.add_argument("--once", action="store_true", help="Run one extraction, print it and exit")
    parser.add_argument("--dry-run", action="store_true", help="With --once, don't advance the cursor")
    parser.add_argument("--show-cursor", action="store_true", help="Print the persisted cursor and exit")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None)
    parser.add_argument("--log-format", choices=["json", "text"], default=None)

    parsed = parser.parse_args(argv)

    if parsed.dry_run and not parsed.once:
        parser.error("--dry-run requires --once")

    return parsed


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI execution."""
    args = parse_args(argv)

    try:
        config = get_config()
    except ConfigurationError as e:
        setup_logging(level=args.log_level or "INFO", json_format=(args.log_format != "text"))
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logging(
        level=args.log_level or config.log_level,
        json_format=(args.log_format or config.log_format) == "json",
    )

    try:
        if args.show_cursor:
            sys.stdout.write(f"{CursorStore(config.lock_file).load()}\n")
            return 0

        if args.once:
            result = Extractor(config).extract(advance=not args.dry_run)
            sys.stdout.write(result.body)
            return 0

        # Imported here so --once never builds the web app
        from querylog_exporter.app import create_app

        uvicorn.run(
            create_app(config),
            host=args.host or config.host,
            port=args.port or config.port,
            log_config=None,
        )
        return 0

    except ExporterError as e:
        logger.error(f"Extraction failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Exporter interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
