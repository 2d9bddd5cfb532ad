"""
Data models and enums for MySQL Backup Rotator.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Iterator, Optional, Union

from .errors import ConfigurationError


TRUE_STRINGS = ('1', 'true', 'yes', 'on')
FALSE_STRINGS = ('0', 'false', 'no', 'off', '')


def _coerce(name: str, value: Any, target: type) -> Any:
    """Convert a config value (often a string after env substitution) to ``target``."""
    if target is bool:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in TRUE_STRINGS:
                return True
            if lowered in FALSE_STRINGS:
                return False
            raise ConfigurationError(f"'{name}' must be a boolean, got '{value}'")
        return bool(value)
    if target is int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"'{name}' must be an integer, got '{value}'") from None
    if target is str:
        return str(value)
    return value


class SizingDecision(Enum):
    """How a database's dump is partitioned."""
    SINGLE_FILE = "single_file"
    SPLIT_SCHEMA_DATA = "split_schema_data"
    PER_TABLE_BATCHED = "per_table_batched"


class Tier(Enum):
    """Retention tiers, named after their directories."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def directory(self) -> str:
        return self.value


class NameSet:
    """Insertion-ordered set of database names.

    Blank entries are dropped and surrounding whitespace is stripped, so
    ``NameSet.parse("a, b ,a")`` yields ``a, b``.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: dict[str, None] = {}
        for name in names:
            self.add(name)

    @classmethod
    def parse(cls, value: Union[None, str, Iterable[str]]) -> "NameSet":
        """Build a set from a comma-separated string or an iterable of names."""
        if value is None:
            return cls()
        if isinstance(value, str):
            return cls(value.split(','))
        return cls(str(item) for item in value)

    def add(self, name: str) -> None:
        name = name.strip()
        if name:
            self._names.setdefault(name, None)

    def difference(self, other: Iterable[str]) -> "NameSet":
        """Names of this set that are not in ``other``, order preserved."""
        excluded = set(other)
        return NameSet(name for name in self._names if name not in excluded)

    def union(self, other: Iterable[str]) -> "NameSet":
        return NameSet([*self._names, *other])

    def to_list(self) -> list[str]:
        return list(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NameSet):
            return self.to_list() == other.to_list()
        return NotImplemented

    def __repr__(self) -> str:
        return f"NameSet({self.to_list()!r})"


@dataclass
class TableInfo:
    """Table name with its row count."""
    name: str
    row_count: int = 0


@dataclass
class BackupTarget:
    """A database and its table inventory for the current run."""
    name: str
    tables: list[TableInfo] = field(default_factory=list)


@dataclass(frozen=True)
class BatchWindow:
    """Row-offset window dumped as one file."""
    index: int
    offset: int
    size: int

    @property
    def where_clause(self) -> str:
        return f"1=1 LIMIT {self.offset}, {self.size}"


class DumpKind(Enum):
    """Kind of mysqldump invocation; the value is used in file names."""
    FULL = "ALL"
    SCHEMA = "SCHEMA"
    DATA = "DATA"
    TABLE = "TABLE"


@dataclass(frozen=True)
class DumpJob:
    """One mysqldump invocation producing one file."""
    kind: DumpKind
    database: str
    filename: str
    table: Optional[str] = None
    window: Optional[BatchWindow] = None


@dataclass(frozen=True)
class RunContext:
    """Values fixed once at run start and shared by every component."""
    started_at: datetime

    @classmethod
    def now(cls) -> "RunContext":
        return cls(started_at=datetime.now())

    @property
    def timestamp(self) -> str:
        return self.started_at.strftime('%Y%m%d_%H%M%S')

    @property
    def today(self) -> date:
        return self.started_at.date()

    @property
    def run_date(self) -> str:
        return self.today.isoformat()


@dataclass
class RetentionPolicy:
    """Retention counts and promotion cadence for the three tiers."""
    daily: int = 5
    weekly: int = 2
    monthly: int = 1
    weekly_weekday: int = 0  # Monday
    monthly_day: int = 1

    def count_for(self, tier: Tier) -> int:
        return getattr(self, tier.value)

    def is_promotion_day(self, tier: Tier, day: date) -> bool:
        """Whether ``day`` is on the promotion cadence of ``tier``."""
        if tier is Tier.WEEKLY:
            return day.weekday() == self.weekly_weekday
        if tier is Tier.MONTHLY:
            return day.day == self.monthly_day
        return True


@dataclass
class DatabaseStats:
    """Statistics for a single database backup."""
    name: str
    decision: Optional[SizingDecision] = None
    total_rows: int = 0
    tables: int = 0
    files: list[str] = field(default_factory=list)


@dataclass
class BackupStats:
    """Overall backup statistics."""
    databases: list[DatabaseStats] = field(default_factory=list)
    total_tables: int = 0
    total_rows: int = 0

    @property
    def files(self) -> list[str]:
        return [path for db in self.databases for path in db.files]


@dataclass
class RotationStats:
    """Outcome of a rotation pass."""
    promoted: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class BackupOptions:
    """Merged settings for one backup run."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    databases: list[str] = field(default_factory=list)
    exclude_databases: list[str] = field(default_factory=list)
    db_row_threshold: int = 10_000_000
    table_row_threshold: int = 5_000_000
    batch_size: int = 1_000_000
    force_split: bool = False
    exact_row_counts: bool = False
    extra_args: str = ""
    mysqldump_path: str = "/usr/bin/mysqldump"
    output_dir: str = "."
    daily_retention: int = 5
    weekly_retention: int = 2
    monthly_retention: int = 1
    weekly_weekday: int = 0
    monthly_day: int = 1

    LIST_FIELDS = ('databases', 'exclude_databases')

    @classmethod
    def from_configs(cls, *layers: dict[str, Any]) -> "BackupOptions":
        """
        Create BackupOptions by merging layers; later layers win.

        Keys that are missing or ``None`` in a layer leave the previous value
        in place, so argparse defaults of ``None`` never mask the config file.
        """
        known = {f.name for f in fields(cls)}
        settings: dict[str, Any] = {}
        for layer in layers:
            for key, value in layer.items():
                if key in known and value is not None:
                    settings[key] = value

        for f in fields(cls):
            if f.name not in settings:
                continue
            if f.name in cls.LIST_FIELDS:
                settings[f.name] = NameSet.parse(settings[f.name]).to_list()
            else:
                settings[f.name] = _coerce(f.name, settings[f.name], type(f.default))

        return cls(**settings)

    @property
    def all_databases(self) -> bool:
        """True when no explicit database list was given."""
        return not self.databases

    def retention_policy(self) -> RetentionPolicy:
        return RetentionPolicy(
            daily=self.daily_retention,
            weekly=self.weekly_retention,
            monthly=self.monthly_retention,
            weekly_weekday=self.weekly_weekday,
            monthly_day=self.monthly_day,
        )

    def validate(self) -> None:
        """Raise ConfigurationError for values the run cannot work with."""
        problems = []
        if not 1 <= self.port <= 65535:
            problems.append(f"port must be between 1 and 65535, got {self.port}")
        if self.db_row_threshold < 0:
            problems.append("db_row_threshold must not be negative")
        if self.table_row_threshold < 0:
            problems.append("table_row_threshold must not be negative")
        if self.batch_size <= 0:
            problems.append(f"batch_size must be positive, got {self.batch_size}")
        if self.daily_retention < 1:
            problems.append("daily_retention must be at least 1")
        if self.weekly_retention < 0 or self.monthly_retention < 0:
            problems.append("weekly_retention and monthly_retention must not be negative")
        if not 0 <= self.weekly_weekday <= 6:
            problems.append("weekly_weekday must be between 0 (Monday) and 6 (Sunday)")
        if not 1 <= self.monthly_day <= 28:
            problems.append("monthly_day must be between 1 and 28")

        if problems:
            raise ConfigurationError("Invalid configuration: " + "; ".join(problems))

    def display_dict(self) -> dict[str, Any]:
        """Settings for logging, with the password masked."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        if values['password']:
            values['password'] = '******'
        return values
