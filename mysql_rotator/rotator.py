"""
Daily/weekly/monthly retention rotation for MySQL Backup Rotator.

Layout::

    <output>/daily/<YYYY-MM-DD>/<db>-<YYYY-MM-DD>/<files>
    <output>/weekly/<YYYY-MM-DD>/...
    <output>/monthly/<YYYY-MM-DD>/...

Weekly and monthly snapshots are copies of a daily snapshot. Entries in a
tier whose names are not dates are never touched, except leftover
``.staging-*`` directories of interrupted promotions.
"""

import logging
import shutil
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from .errors import RotationError
from .models import RetentionPolicy, RotationStats, Tier

SNAPSHOT_DATE_FORMAT = '%Y-%m-%d'


def parse_snapshot_date(name: str) -> Union[date, None]:
    """Date of a snapshot directory name, or None if it is not a snapshot."""
    try:
        return datetime.strptime(name, SNAPSHOT_DATE_FORMAT).date()
    except ValueError:
        return None


class RetentionRotator:
    """Promotes daily snapshots into weekly/monthly tiers and prunes old ones."""

    STAGING_PREFIX = '.staging-'
    PROMOTION_ORDER = (Tier.MONTHLY, Tier.WEEKLY)

    def __init__(self, output_dir: Union[str, Path], policy: RetentionPolicy):
        self.output_dir = Path(output_dir)
        self.policy = policy
        self.stats = RotationStats()

    def tier_dir(self, tier: Tier) -> Path:
        return self.output_dir / tier.directory

    def list_snapshots(self, tier: Tier) -> list[tuple[date, Path]]:
        """Snapshots of ``tier``, newest first."""
        tier_dir = self.tier_dir(tier)
        if not tier_dir.is_dir():
            return []

        snapshots = []
        for entry in tier_dir.iterdir():
            snapshot_date = parse_snapshot_date(entry.name)
            if snapshot_date is not None and entry.is_dir():
                snapshots.append((snapshot_date, entry))

        return sorted(snapshots, key=lambda item: item[0], reverse=True)

    def rotate(self, today: date) -> RotationStats:
        """
        Run one rotation pass.

        Failures are logged and collected in ``stats.errors``; they never
        propagate, since the dumps of the run are already complete.
        """
        for tier in self.PROMOTION_ORDER:
            if self.policy.count_for(tier) > 0:
                self._promote_if_due(tier, today)

        for tier in Tier:
            self._prune(tier)

        return self.stats

    def _promote_if_due(self, tier: Tier, today: date) -> None:
        snapshots = self._list_or_record(tier)
        if snapshots is None:
            return

        if any(snapshot_date == today for snapshot_date, _ in snapshots):
            logging.debug(f"{tier.value}: snapshot for {today} already exists")
            return

        if snapshots and not self.policy.is_promotion_day(tier, today):
            logging.debug(f"{tier.value}: {today} is not a promotion day")
            return

        source = self.tier_dir(Tier.DAILY) / today.isoformat()
        if not source.is_dir():
            logging.warning(f"{tier.value}: no daily snapshot for {today} to promote")
            return

        try:
            target = self.promote(source, tier)
        except RotationError as e:
            logging.error(str(e))
            self._record_error(tier, source.name, e)
            return

        logging.info(f"Promoted {source} to {target}")
        self.stats.promoted.append(str(target))

    def promote(self, source: Path, tier: Tier) -> Path:
        """
        Copy daily snapshot ``source`` into ``tier``.

        The copy is made into a hidden staging directory, compared against
        the source and only then renamed to its dated name, so a tier never
        contains a partial snapshot.
        """
        tier_dir = self.tier_dir(tier)
        target = tier_dir / source.name
        staging = tier_dir / f"{self.STAGING_PREFIX}{source.name}"

        try:
            tier_dir.mkdir(parents=True, exist_ok=True)
            if staging.exists():
                shutil.rmtree(staging)
            shutil.copytree(source, staging)

            expected = self._manifest(source)
            copied = self._manifest(staging)
            if copied != expected:
                differing = sorted(
                    name for name in set(expected) | set(copied)
                    if expected.get(name) != copied.get(name)
                )
                raise RotationError(
                    f"Copy of {source} into {tier.value} does not match the source: "
                    f"{', '.join(differing)}"
                )

            staging.rename(target)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise RotationError(f"Failed to promote {source} into {tier.value}: {e}") from e
        except RotationError:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        return target

    def _prune(self, tier: Tier) -> None:
        try:
            snapshots = self.list_snapshots(tier)
            stale = self._stale_staging_dirs(tier)
        except OSError as e:
            self._listing_failed(tier, e)
            return

        for path in stale:
            if self._remove(tier, path):
                logging.info(f"Removed stale staging directory {path}")

        keep = self.policy.count_for(tier)
        for _, path in snapshots[keep:]:
            if self._remove(tier, path):
                logging.info(f"Pruned {tier.value} snapshot {path.name}")
                self.stats.pruned.append(str(path))

    def _stale_staging_dirs(self, tier: Tier) -> list[Path]:
        """Staging directories left behind by interrupted promotions."""
        tier_dir = self.tier_dir(tier)
        if not tier_dir.is_dir():
            return []
        return [
            entry for entry in tier_dir.iterdir()
            if entry.name.startswith(self.STAGING_PREFIX) and entry.is_dir()
        ]

    def _list_or_record(self, tier: Tier) -> Optional[list[tuple[date, Path]]]:
        """List ``tier``, or record the failure and return None."""
        try:
            return self.list_snapshots(tier)
        except OSError as e:
            self._listing_failed(tier, e)
            return None

    def _listing_failed(self, tier: Tier, error: OSError) -> None:
        logging.error(f"Failed to list {tier.value} snapshots: {error}")
        self._record_error(tier, tier.directory, error)

    def _remove(self, tier: Tier, path: Path) -> bool:
        try:
            shutil.rmtree(path)
        except OSError as e:
            logging.error(f"Failed to delete {path}: {e}")
            self._record_error(tier, path.name, e)
            return False
        return True

    def _record_error(self, tier: Tier, snapshot: str, error: Exception) -> None:
        self.stats.errors.append({
            'tier': tier.value,
            'snapshot': snapshot,
            'error': str(error)
        })

    @staticmethod
    def _manifest(root: Path) -> dict[str, int]:
        """Relative file paths under ``root`` mapped to their sizes."""
        return {
            str(path.relative_to(root)): path.stat().st_size
            for path in root.rglob('*')
            if path.is_file()
        }


def rotate(output_dir: Union[str, Path], policy: RetentionPolicy, today: date) -> RotationStats:
    """Run a rotation pass over ``output_dir``."""
    return RetentionRotator(output_dir, policy).rotate(today)
