"""
mysqldump invocation for MySQL Backup Rotator.
"""

import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError, DumpError
from .models import BackupOptions, BatchWindow


class MySQLDumpInvoker:
    """Runs mysqldump for a database, its schema, its data or a table window."""

    SCHEMA_FLAGS = ['--no-data']
    DATA_FLAGS = ['--no-create-db', '--skip-triggers', '--no-create-info']

    def __init__(
        self,
        executable: str,
        host: str,
        port: int,
        user: str,
        password: str,
        extra_args: str = ""
    ):
        self.executable = executable
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.extra_args = shlex.split(extra_args) if extra_args else []

    @classmethod
    def from_options(cls, options: BackupOptions) -> "MySQLDumpInvoker":
        return cls(
            executable=cls.locate(options.mysqldump_path),
            host=options.host,
            port=options.port,
            user=options.user,
            password=options.password,
            extra_args=options.extra_args,
        )

    @staticmethod
    def locate(path: str) -> str:
        """
        Resolve the mysqldump executable.

        A bare command name is looked up on PATH; anything else must point
        to an executable file.
        """
        if os.sep not in path:
            found = shutil.which(path)
            if found:
                return found
        elif os.path.isfile(path) and os.access(path, os.X_OK):
            return path

        raise ConfigurationError(
            f"mysqldump binary can not be found at '{path}', "
            f"please specify the correct mysqldump path"
        )

    def dump_full(self, database: str, output_path: Path) -> None:
        """Dump schema and data of ``database`` into one file."""
        self.run(self.build_args(database, output_path))

    def dump_schema(self, database: str, output_path: Path) -> None:
        self.run(self.build_args(database, output_path, flags=self.SCHEMA_FLAGS))

    def dump_data(self, database: str, output_path: Path) -> None:
        self.run(self.build_args(database, output_path, flags=self.DATA_FLAGS))

    def dump_table_window(
        self,
        database: str,
        table: str,
        window: BatchWindow,
        output_path: Path
    ) -> None:
        """Dump the rows of ``table`` that fall into ``window``."""
        self.run(self.build_args(
            database,
            output_path,
            flags=self.DATA_FLAGS,
            table=table,
            where=window.where_clause,
        ))

    def build_args(
        self,
        database: str,
        output_path: Path,
        flags: Optional[list[str]] = None,
        table: Optional[str] = None,
        where: Optional[str] = None
    ) -> list[str]:
        """Build the mysqldump argument list (without credentials file)."""
        args = [
            f"--host={self.host}",
            f"--port={self.port}",
            f"--user={self.user}",
            *(flags or []),
            *self.extra_args,
            f"--result-file={output_path}",
        ]
        if where:
            args.append(f"--where={where}")
        args.append(database)
        if table:
            args.append(table)
        return args

    def run(self, args: list[str]) -> str:
        """
        Run mysqldump with ``args`` and return its standard output.

        The password is handed over in a temporary option file so it never
        shows up in the process list or in mysqldump's own warnings.

        Raises:
            DumpError: if mysqldump cannot be started, exits non-zero or
                writes anything to standard error.
        """
        logging.info(f"mysqldump is being executed with parameters: {' '.join(args)}")

        try:
            credentials = self._write_credentials_file()
        except OSError as e:
            raise DumpError(f"Cannot write mysqldump option file: {e}") from e

        command = [self.executable, f"--defaults-extra-file={credentials}", *args]
        try:
            result = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as e:
            raise DumpError(f"Failed to execute '{self.executable}': {e}") from e
        finally:
            os.unlink(credentials)

        if result.stdout:
            logging.debug(f"mysqldump output is: {result.stdout}")

        stderr = result.stderr.strip()
        if stderr or result.returncode != 0:
            logging.error(f"mysqldump error is: {stderr}")
            raise DumpError(
                f"mysqldump exited with status {result.returncode}: {stderr or 'no error output'}",
                stderr=stderr,
            )

        return result.stdout

    def _write_credentials_file(self) -> str:
        escaped = self.password.replace('\\', '\\\\').replace('"', '\\"')
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.cnf', prefix='mysqldump-', delete=False
        ) as f:
            f.write(f'[client]\npassword="{escaped}"\n')
        return f.name
