"""
Compression of dump files for MySQL Backup Rotator.
"""

import logging
import tarfile
from pathlib import Path

from .errors import ArchiveError


class Archiver:
    """Packs a single dump file into ``<file>.tar.gz`` and removes the original."""

    SUFFIX = '.tar.gz'

    def archive(self, source: Path) -> Path:
        """
        Compress ``source`` and delete it.

        Returns:
            Path of the created archive.

        Raises:
            ArchiveError: if the archive cannot be written or the source
                cannot be removed. A partially written archive is removed.
        """
        source = Path(source)
        target = source.with_name(source.name + self.SUFFIX)
        logging.info(f"Compressing {source}")

        try:
            with tarfile.open(target, 'w:gz') as tar:
                tar.add(source, arcname=source.name)
        except (OSError, tarfile.TarError) as e:
            target.unlink(missing_ok=True)
            raise ArchiveError(f"Failed to compress '{source}': {e}") from e

        try:
            source.unlink()
        except OSError as e:
            raise ArchiveError(f"Failed to remove '{source}' after compression: {e}") from e

        logging.debug(f"Created archive {target}")
        return target
