#!/usr/bin/env python3
"""
MySQL Backup Rotator - CLI Entry Point
======================================
Backs up MySQL databases with mysqldump and keeps bounded
daily/weekly/monthly snapshot sets:
- Single file, schema + data, or per-table batched dumps by row count
- All databases with exclusions, or an explicit database list
- Every dump compressed to .tar.gz
- Weekly/monthly promotion and pruning of old snapshots
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from .config import ConfigLoader
from .errors import ConfigurationError, DumpError, FatalBackupError
from .models import BackupOptions, RunContext
from .orchestrator import BackupOrchestrator
from .rotator import RetentionRotator
from .utils import format_options_display, log_run_summary, setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Command line options; every option overrides the config file."""
    parser = argparse.ArgumentParser(
        description='MySQL Backup Rotator - mysqldump backups with daily/weekly/monthly rotation'
    )
    parser.add_argument(
        '-c', '--config',
        help='Path to YAML configuration file (optional)'
    )
    parser.add_argument('--host', dest='host', help='MySQL server host (default: localhost)')
    parser.add_argument('--port', dest='port', type=int, help='MySQL server port (default: 3306)')
    parser.add_argument('-u', '--user', dest='user', help='MySQL user (default: root)')
    parser.add_argument('-p', '--password', dest='password', help='MySQL password')
    parser.add_argument(
        '-d', '--databases',
        dest='databases',
        help='Comma separated databases to back up (default: all databases)'
    )
    parser.add_argument(
        '-e', '--exclude-databases',
        dest='exclude_databases',
        help='Comma separated databases to skip; only used when --databases is not given'
    )
    parser.add_argument(
        '--db-threshold',
        dest='db_row_threshold',
        type=int,
        help='Split dumps when the total row count of a database exceeds this (default: 10000000)'
    )
    parser.add_argument(
        '--table-threshold',
        dest='table_row_threshold',
        type=int,
        help='Per-table row threshold (accepted, currently does not change the dump shape)'
    )
    parser.add_argument(
        '--batch-size',
        dest='batch_size',
        type=int,
        help='Rows per file when a database is dumped table by table (default: 1000000)'
    )
    parser.add_argument(
        '--force-split',
        dest='force_split',
        action=argparse.BooleanOptionalAction,
        help='Write schema and data to separate files even below the database threshold'
    )
    parser.add_argument(
        '--exact-row-counts',
        dest='exact_row_counts',
        action=argparse.BooleanOptionalAction,
        help='Count rows with SELECT COUNT(*) instead of information_schema estimates'
    )
    parser.add_argument(
        '--extra-args',
        dest='extra_args',
        help='Additional mysqldump arguments, e.g. --extra-args="--single-transaction --quick"'
    )
    parser.add_argument(
        '--mysqldump-path',
        dest='mysqldump_path',
        help='Path of the mysqldump executable (default: /usr/bin/mysqldump)'
    )
    parser.add_argument(
        '-o', '--output-dir',
        dest='output_dir',
        help='Directory holding the daily/weekly/monthly trees (default: current directory)'
    )
    parser.add_argument('--daily-retention', dest='daily_retention', type=int,
                        help='Daily snapshots to keep (default: 5)')
    parser.add_argument('--weekly-retention', dest='weekly_retention', type=int,
                        help='Weekly snapshots to keep (default: 2)')
    parser.add_argument('--monthly-retention', dest='monthly_retention', type=int,
                        help='Monthly snapshots to keep (default: 1)')
    parser.add_argument(
        '--verbosity',
        type=int,
        choices=[0, 1, 2],
        help='0 = only errors, 1 = important things, 2 = all (default: config file level)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug output'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be dumped without dumping or rotating'
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = ConfigLoader(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file '{args.config}' not found")
        sys.exit(ConfigurationError.exit_code)
    except (yaml.YAMLError, ValueError) as e:
        print(f"Error: Invalid configuration file: {e}")
        sys.exit(ConfigurationError.exit_code)

    setup_logging(config.get_logging_settings(), verbosity=args.verbosity, debug=args.verbose)

    try:
        options = BackupOptions.from_configs(config.get_option_values(), vars(args))
        options.validate()
        options.output_dir = str(Path(options.output_dir).resolve())

        context = RunContext.now()
        logging.info("Running with parameters")
        logging.info(format_options_display(options))

        orchestrator = BackupOrchestrator(options, context)

        if args.dry_run:
            logging.info("DRY RUN MODE - No data will be dumped")
            stats = orchestrator.run(dry_run=True)
            log_run_summary(stats)
            return

        stats = orchestrator.run()
        rotation = RetentionRotator(options.output_dir, options.retention_policy()).rotate(context.today)
        log_run_summary(stats, rotation)

    except FatalBackupError as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(e.exit_code)
    except OSError as e:
        logging.error(f"Fatal I/O error: {e}")
        sys.exit(DumpError.exit_code)
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
