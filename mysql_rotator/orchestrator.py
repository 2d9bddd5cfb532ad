"""
Backup orchestration for MySQL Backup Rotator.
"""

import logging
from pathlib import Path
from typing import Optional

from .archiver import Archiver
from .connection import DatabaseConnection
from .dump_invoker import MySQLDumpInvoker
from .errors import DumpError
from .models import (
    BackupOptions,
    BackupStats,
    BackupTarget,
    DatabaseStats,
    DumpJob,
    DumpKind,
    NameSet,
    RunContext,
    SizingDecision,
    Tier,
)
from .planner import batch_windows, plan, total_row_count


class BackupOrchestrator:
    """Backs up every requested database into today's daily snapshot."""

    SYSTEM_SCHEMAS = ('information_schema', 'performance_schema')

    def __init__(
        self,
        options: BackupOptions,
        context: RunContext,
        invoker: Optional[MySQLDumpInvoker] = None,
        archiver: Optional[Archiver] = None
    ):
        self.options = options
        self.context = context
        self.invoker = invoker or MySQLDumpInvoker.from_options(options)
        self.archiver = archiver or Archiver()
        self.stats = BackupStats()

    @property
    def snapshot_dir(self) -> Path:
        """Daily snapshot directory of this run."""
        return Path(self.options.output_dir) / Tier.DAILY.directory / self.context.run_date

    def database_dir(self, database: str) -> Path:
        return self.snapshot_dir / f"{database}-{self.context.run_date}"

    def run(self, dry_run: bool = False) -> BackupStats:
        """Back up all requested databases.

        Any dump or archive failure raises and ends the run; databases after
        the failing one are not processed.

        Args:
            dry_run: Only log what would be dumped; nothing is written.
        """
        if not dry_run:
            self._make_dir(self.snapshot_dir)

        with DatabaseConnection(
            host=self.options.host,
            port=self.options.port,
            user=self.options.user,
            password=self.options.password
        ) as conn:
            databases = self.resolve_databases(conn)
            logging.info(f"Starting backup of {len(databases)} database(s)")

            for name in databases:
                target = BackupTarget(
                    name=name,
                    tables=conn.get_tables(name, exact=self.options.exact_row_counts)
                )
                self._backup_database(target, dry_run)

        return self.stats

    def resolve_databases(self, conn: DatabaseConnection) -> list[str]:
        """Databases to back up, in order and without duplicates.

        An explicit database list is used as given. Otherwise every database
        on the server is taken, minus the exclusion list and the system
        schemas.
        """
        if not self.options.all_databases:
            if self.options.exclude_databases:
                logging.warning(
                    "Excluded databases are ignored because an explicit database list was given"
                )
            return NameSet(self.options.databases).to_list()

        excluded = NameSet(self.options.exclude_databases).union(self.SYSTEM_SCHEMAS)
        return NameSet(conn.get_databases()).difference(excluded).to_list()

    def build_jobs(self, target: BackupTarget, decision: SizingDecision) -> list[DumpJob]:
        """List the mysqldump invocations for ``target`` under ``decision``."""
        db = target.name
        timestamp = self.context.timestamp

        if decision is SizingDecision.SINGLE_FILE:
            return [DumpJob(DumpKind.FULL, db, f"{db}_{DumpKind.FULL.value}_{timestamp}.sql")]

        jobs = [DumpJob(DumpKind.SCHEMA, db, f"{db}_{DumpKind.SCHEMA.value}_{timestamp}.sql")]

        if decision is SizingDecision.SPLIT_SCHEMA_DATA:
            jobs.append(DumpJob(DumpKind.DATA, db, f"{db}_{DumpKind.DATA.value}_{timestamp}.sql"))
            return jobs

        for table in target.tables:
            for window in batch_windows(table.row_count, self.options.batch_size):
                jobs.append(DumpJob(
                    DumpKind.TABLE,
                    db,
                    f"{db}_{table.name}{window.index}_{timestamp}.sql",
                    table=table.name,
                    window=window,
                ))
        return jobs

    def _backup_database(self, target: BackupTarget, dry_run: bool) -> None:
        """Back up a single database."""
        logging.info(f"Processing database: {target.name}")

        total_rows = total_row_count(target.tables)
        decision = plan(self.options.force_split, total_rows, self.options.db_row_threshold)
        logging.info(
            f"'{target.name}': force_split={self.options.force_split}, "
            f"total_rows={total_rows}, db_row_threshold={self.options.db_row_threshold} "
            f"-> {decision.value}"
        )

        db_stats = DatabaseStats(
            name=target.name,
            decision=decision,
            total_rows=total_rows,
            tables=len(target.tables)
        )
        self.stats.databases.append(db_stats)
        self.stats.total_tables += db_stats.tables
        self.stats.total_rows += db_stats.total_rows

        jobs = self.build_jobs(target, decision)
        db_dir = self.database_dir(target.name)

        if dry_run:
            for job in jobs:
                logging.info(f"  Would create: {db_dir / job.filename}")
                db_stats.files.append(str(db_dir / job.filename))
            return

        self._make_dir(db_dir)
        for job in jobs:
            archive = self._execute(job, db_dir)
            db_stats.files.append(str(archive))

        logging.info(f"Processing done for database: {target.name} ({len(jobs)} file(s))")

    @staticmethod
    def _make_dir(path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DumpError(f"Cannot create output directory '{path}': {e}") from e

    def _execute(self, job: DumpJob, db_dir: Path) -> Path:
        """Run one dump job and archive its output."""
        output_path = db_dir / job.filename

        if job.kind is DumpKind.FULL:
            self.invoker.dump_full(job.database, output_path)
        elif job.kind is DumpKind.SCHEMA:
            self.invoker.dump_schema(job.database, output_path)
        elif job.kind is DumpKind.DATA:
            self.invoker.dump_data(job.database, output_path)
        else:
            self.invoker.dump_table_window(job.database, job.table, job.window, output_path)

        return self.archiver.archive(output_path)
