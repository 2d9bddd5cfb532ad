"""
Exception hierarchy for MySQL Backup Rotator.

Fatal errors carry the process exit code the CLI terminates with.
Rotation errors are recoverable and never leave the rotator.
"""


class BackupError(Exception):
    """Base class for all backup errors."""


class FatalBackupError(BackupError):
    """An error that aborts the whole run."""

    exit_code = 1


class ConfigurationError(FatalBackupError):
    """Invalid configuration or missing mysqldump executable."""

    exit_code = 1


class MetadataError(FatalBackupError):
    """Databases or tables could not be enumerated."""

    exit_code = 2


class DumpError(FatalBackupError):
    """mysqldump failed or wrote diagnostic output."""

    exit_code = 4

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class ArchiveError(FatalBackupError):
    """A dump file could not be compressed or removed."""

    exit_code = 4


class RotationError(BackupError):
    """A snapshot could not be promoted or pruned."""
