"""
Unit tests for utils.py
"""

import json
import logging
import tempfile
from pathlib import Path
from unittest import mock

import pytest

from mysql_rotator.models import (
    BackupOptions,
    BackupStats,
    DatabaseStats,
    RotationStats,
    SizingDecision,
)
from mysql_rotator.utils import (
    format_options_display,
    log_run_summary,
    resolve_log_level,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.fixture
    def mock_basic_config(self):
        """Capture basicConfig calls and close the handlers they receive."""
        with mock.patch('mysql_rotator.utils.logging.basicConfig') as mock_config:
            yield mock_config
        for call in mock_config.call_args_list:
            for handler in call.kwargs.get('handlers', []):
                handler.close()

    def test_default_log_level(self, mock_basic_config):
        """Test default log level is INFO."""
        setup_logging({})
        assert mock_basic_config.call_args.kwargs['level'] == logging.INFO

    def test_custom_log_level(self, mock_basic_config):
        """Test setting custom log level."""
        setup_logging({"level": "DEBUG"})
        assert mock_basic_config.call_args.kwargs['level'] == logging.DEBUG

    def test_log_level_case_insensitive(self, mock_basic_config):
        """Test log level is case insensitive."""
        setup_logging({"level": "warning"})
        assert mock_basic_config.call_args.kwargs['level'] == logging.WARNING

    def test_verbosity_overrides_config(self, mock_basic_config):
        """Test --verbosity wins over the config file level."""
        setup_logging({"level": "DEBUG"}, verbosity=0)
        assert mock_basic_config.call_args.kwargs['level'] == logging.ERROR

    def test_verbose_overrides_verbosity(self, mock_basic_config):
        """Test --verbose wins over --verbosity."""
        setup_logging({}, verbosity=0, debug=True)
        assert mock_basic_config.call_args.kwargs['level'] == logging.DEBUG

    def test_stdout_handler_only(self, mock_basic_config):
        """Test only a console handler is installed without a log file."""
        setup_logging({})
        handlers = mock_basic_config.call_args.kwargs['handlers']
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)

    def test_log_to_file(self, mock_basic_config):
        """Test logging to a file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "test.log"
            setup_logging({"file": str(log_file)})

            handlers = mock_basic_config.call_args.kwargs['handlers']
            file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].baseFilename == str(log_file)
            file_handlers[0].close()

    def test_creates_log_directory(self, mock_basic_config):
        """Test that log directory is created if it doesn't exist."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "nested" / "dir" / "test.log"
            setup_logging({"file": str(log_file)})

            # Directory should be created
            assert log_file.parent.exists()
            for handler in mock_basic_config.call_args.kwargs['handlers']:
                handler.close()


class TestResolveLogLevel:
    """Tests for resolve_log_level function."""

    @pytest.mark.parametrize("verbosity, level", [
        (0, logging.ERROR),
        (1, logging.WARNING),
        (2, logging.INFO),
    ])
    def test_verbosity_levels(self, verbosity, level):
        assert resolve_log_level({}, verbosity=verbosity) == level

    def test_config_level(self):
        assert resolve_log_level({"level": "error"}) == logging.ERROR

    def test_debug(self):
        assert resolve_log_level({"level": "ERROR"}, verbosity=1, debug=True) == logging.DEBUG


class TestFormatOptionsDisplay:
    """Tests for format_options_display function."""

    def test_is_json(self):
        """Test the output is a JSON object of all options."""
        rendered = json.loads(format_options_display(BackupOptions(host="db1")))
        assert rendered["host"] == "db1"
        assert rendered["batch_size"] == 1_000_000

    def test_password_masked(self):
        """Test the password never appears in the output."""
        rendered = format_options_display(BackupOptions(password="s3cret"))
        assert "s3cret" not in rendered
        assert "******" in rendered


class TestLogRunSummary:
    """Tests for log_run_summary function."""

    @pytest.fixture
    def stats(self):
        return BackupStats(
            databases=[
                DatabaseStats(
                    name="sales",
                    decision=SizingDecision.SINGLE_FILE,
                    total_rows=60,
                    tables=2,
                    files=["sales_ALL.sql.tar.gz"]
                )
            ],
            total_tables=2,
            total_rows=60
        )

    def test_backup_summary(self, stats, caplog):
        """Test the summary lists databases and totals."""
        with caplog.at_level(logging.INFO):
            log_run_summary(stats)

        assert "BACKUP COMPLETE" in caplog.text
        assert "sales: single_file, 60 rows, 1 file(s)" in caplog.text
        assert "Tables: 2" in caplog.text
        assert "Files: 1" in caplog.text
        assert "Promoted snapshots" not in caplog.text

    def test_rotation_summary(self, stats, caplog):
        """Test rotation counts and errors are reported."""
        rotation = RotationStats(
            promoted=["/out/weekly/2024-03-04"],
            pruned=[],
            errors=[{"tier": "monthly", "snapshot": "2024-03-04", "error": "disk full"}]
        )

        with caplog.at_level(logging.INFO):
            log_run_summary(stats, rotation)

        assert "Promoted snapshots: 1" in caplog.text
        assert "Pruned snapshots: 0" in caplog.text
        assert "Rotation errors: 1" in caplog.text
        assert "monthly/2024-03-04: disk full" in caplog.text
