"""
Utility functions for MySQL Backup Rotator.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from .models import BackupOptions, BackupStats, RotationStats

# --verbosity: 0 = only errors, 1 = important things, 2 = all
VERBOSITY_LEVELS = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
}


def resolve_log_level(
    log_settings: dict[str, Any],
    verbosity: Optional[int] = None,
    debug: bool = False
) -> int:
    """Pick the root log level: --verbose, then --verbosity, then the config file."""
    if debug:
        return logging.DEBUG
    if verbosity is not None:
        return VERBOSITY_LEVELS[verbosity]
    return getattr(logging, str(log_settings.get('level', 'INFO')).upper())


def setup_logging(
    log_settings: dict[str, Any],
    verbosity: Optional[int] = None,
    debug: bool = False
) -> None:
    """Setup logging configuration."""
    log_level = resolve_log_level(log_settings, verbosity, debug)
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def format_options_display(options: BackupOptions) -> str:
    """Render options for the log, password masked."""
    return json.dumps(options.display_dict(), indent=2)


def log_run_summary(stats: BackupStats, rotation: Optional[RotationStats] = None) -> None:
    """Log the summary of a finished run."""
    logging.info("=" * 50)
    logging.info("BACKUP COMPLETE")
    logging.info(f"Databases: {len(stats.databases)}")
    for db in stats.databases:
        decision = db.decision.value if db.decision else 'n/a'
        logging.info(f"  - {db.name}: {decision}, {db.total_rows} rows, {len(db.files)} file(s)")
    logging.info(f"Tables: {stats.total_tables}")
    logging.info(f"Total Rows: {stats.total_rows}")
    logging.info(f"Files: {len(stats.files)}")

    if rotation is None:
        return

    logging.info(f"Promoted snapshots: {len(rotation.promoted)}")
    logging.info(f"Pruned snapshots: {len(rotation.pruned)}")
    if rotation.errors:
        logging.warning(f"Rotation errors: {len(rotation.errors)}")
        for err in rotation.errors:
            logging.warning(f"  - {err['tier']}/{err['snapshot']}: {err['error']}")
