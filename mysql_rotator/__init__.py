"""
MySQL Backup Rotator
====================
Backs up MySQL databases with mysqldump and rotates the results:
- Single file, schema + data, or per-table batched dumps by row count
- All databases with exclusions, or an explicit database list
- Compression of every dump to .tar.gz
- Daily/weekly/monthly snapshot retention
"""

from .archiver import Archiver
from .config import ConfigLoader
from .connection import DatabaseConnection
from .dump_invoker import MySQLDumpInvoker
from .errors import (
    ArchiveError,
    BackupError,
    ConfigurationError,
    DumpError,
    FatalBackupError,
    MetadataError,
    RotationError,
)
from .main import main
from .models import (
    BackupOptions,
    BackupStats,
    BackupTarget,
    BatchWindow,
    DatabaseStats,
    DumpJob,
    DumpKind,
    NameSet,
    RetentionPolicy,
    RotationStats,
    RunContext,
    SizingDecision,
    TableInfo,
    Tier,
)
from .orchestrator import BackupOrchestrator
from .planner import batch_windows, plan, total_row_count
from .rotator import RetentionRotator, rotate
from .utils import format_options_display, log_run_summary, setup_logging

__version__ = "1.0.0"

__all__ = [
    # Main entry point
    "main",
    # Core classes
    "Archiver",
    "BackupOrchestrator",
    "ConfigLoader",
    "DatabaseConnection",
    "MySQLDumpInvoker",
    "RetentionRotator",
    # Planning and rotation
    "batch_windows",
    "plan",
    "rotate",
    "total_row_count",
    # Models
    "BackupOptions",
    "BackupStats",
    "BackupTarget",
    "BatchWindow",
    "DatabaseStats",
    "DumpJob",
    "DumpKind",
    "NameSet",
    "RetentionPolicy",
    "RotationStats",
    "RunContext",
    "SizingDecision",
    "TableInfo",
    "Tier",
    # Errors
    "ArchiveError",
    "BackupError",
    "ConfigurationError",
    "DumpError",
    "FatalBackupError",
    "MetadataError",
    "RotationError",
    # Utilities
    "format_options_display",
    "log_run_summary",
    "setup_logging",
]
