#!/usr/bin/env python3
"""
Sync Runner
===========

CLI script to run the sync engine.

Usage:
    warehouse-sync run                    # Incremental sync of all configured tables
    warehouse-sync run --full-refresh     # Re-extract every row of every table
    warehouse-sync run --tables orders    # Restrict the run to some tables
    warehouse-sync check                  # Test connections only
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .config import SyncConfig, parse_tables
from .connectors import BigQueryConnector, PostgresConnector
from .engine import SyncEngine
from .exceptions import ConfigError
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def check_connections(config: SyncConfig) -> bool:
    """Test source and target connections and report table status."""
    source = PostgresConnector(config.source_connection())
    destination = BigQueryConnector(config.destination_connection())

    try:
        source.connect()
        destination.connect()

        tables = source.list_tables()
        logger.info(f"✓ PostgreSQL source: {len(tables)} tables in schema {config.pg_schema}")
        for table in config.tables:
            if table not in tables:
                logger.warning(f"  - {table}: not found in source")
                continue
            trackable = source.has_column(table, config.tracking_column)
            exists = destination.table_exists(table)
            logger.info(
                f"  - {table}: {config.tracking_column}={'yes' if trackable else 'no'}, "
                f"destination table {'exists' if exists else 'missing'}"
            )
        logger.info("✓ All connections successful!")
        return True
    except Exception as e:
        logger.error(f"✗ Connection failed: {e}")
        return False
    finally:
        source.disconnect()


def run_sync(config: SyncConfig, results_file: Optional[str] = None) -> bool:
    """Execute a sync run; return True when no table failed."""
    source = PostgresConnector(config.source_connection())
    destination = BigQueryConnector(config.destination_connection())

    try:
        source.connect()
        destination.connect()
        summary = SyncEngine(config, source, destination).run()
    except Exception as e:
        logger.error(f"✗ Sync failed: {e}", exc_info=True)
        return False
    finally:
        source.disconnect()

    if results_file:
        save_results(summary.to_dict(), results_file)

    return summary.ok


def save_results(results: dict, results_file: str) -> bool:
    """Write the run summary as JSON; report failures instead of raising."""
    try:
        directory = os.path.dirname(results_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(results_file, "w") as f:
            json.dump(results, f, indent=2, default=str)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Error saving results to {results_file}: {e}")
        return False
    logger.info(f"Results saved to: {results_file}")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="PostgreSQL to BigQuery incremental sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Sync the configured tables")
    run_parser.add_argument(
        "--full-refresh",
        action="store_true",
        help="Fetch all rows regardless of stored checkpoints (same as FETCH_ALL_ROWS=true)",
    )
    run_parser.add_argument(
        "--tables",
        type=str,
        default=None,
        help="Comma-separated tables to sync instead of TABLES",
    )
    run_parser.add_argument(
        "--results",
        type=str,
        default=None,
        help="Path of a JSON file to write the run summary to",
    )

    subparsers.add_parser("check", help="Test source and target connections")
    return parser


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    try:
        config = SyncConfig.from_env()
        if args.command == "run":
            overrides = {}
            if args.full_refresh:
                overrides["fetch_all_rows"] = True
            if args.tables:
                tables = parse_tables(args.tables)
                if not tables:
                    raise ConfigError("--tables does not name any table")
                overrides["tables"] = tables
            config = config.with_overrides(**overrides)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(config.log_level, config.log_format, config.log_file)

    if args.command == "check":
        success = check_connections(config)
    else:
        success = run_sync(config, results_file=args.results)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
