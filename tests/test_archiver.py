"""
Unit tests for archiver.py
"""

import tarfile
import tempfile
from pathlib import Path
from unittest import mock

import pytest

from mysql_rotator.archiver import Archiver
from mysql_rotator.errors import ArchiveError


class TestArchiver:
    """Tests for Archiver class."""

    @pytest.fixture
    def tmpdir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def dump_file(self, tmpdir):
        path = tmpdir / "sales_ALL_20240305_070809.sql"
        path.write_text("CREATE TABLE orders (id INT);\n")
        return path

    def test_archive(self, dump_file):
        """Test the archive replaces the dump file."""
        archive = Archiver().archive(dump_file)

        assert archive.name == "sales_ALL_20240305_070809.sql.tar.gz"
        assert archive.exists()
        assert not dump_file.exists()

    def test_archive_contents(self, dump_file, tmpdir):
        """Test the archive holds the dump under its base name."""
        archive = Archiver().archive(dump_file)

        with tarfile.open(archive, 'r:gz') as tar:
            assert tar.getnames() == ["sales_ALL_20240305_070809.sql"]
            content = tar.extractfile("sales_ALL_20240305_070809.sql").read()

        assert content == b"CREATE TABLE orders (id INT);\n"

    def test_missing_source(self, tmpdir):
        """Test a missing dump raises and leaves no partial archive."""
        source = tmpdir / "missing.sql"

        with pytest.raises(ArchiveError) as exc_info:
            Archiver().archive(source)

        assert exc_info.value.exit_code == 4
        assert not (tmpdir / "missing.sql.tar.gz").exists()

    def test_source_not_removable(self, dump_file):
        """Test a failure to delete the dump raises ArchiveError."""
        with mock.patch.object(Path, 'unlink', side_effect=PermissionError("denied")):
            with pytest.raises(ArchiveError) as exc_info:
                Archiver().archive(dump_file)

        assert "denied" in str(exc_info.value)
