"""
Unit tests for planner.py
"""

import pytest

from mysql_rotator.models import BatchWindow, SizingDecision, TableInfo
from mysql_rotator.planner import batch_windows, plan, total_row_count


class TestPlan:
    """Tests for the sizing decision table."""

    def test_below_threshold_single_file(self):
        assert plan(False, 60, 1000) == SizingDecision.SINGLE_FILE

    def test_at_threshold_single_file(self):
        assert plan(False, 1000, 1000) == SizingDecision.SINGLE_FILE

    def test_force_split_below_threshold(self):
        assert plan(True, 60, 1000) == SizingDecision.SPLIT_SCHEMA_DATA

    def test_force_split_at_threshold(self):
        assert plan(True, 1000, 1000) == SizingDecision.SPLIT_SCHEMA_DATA

    def test_above_threshold_batched(self):
        assert plan(False, 1001, 1000) == SizingDecision.PER_TABLE_BATCHED

    def test_force_split_above_threshold_batched(self):
        """Above the threshold force_split makes no difference."""
        assert plan(True, 2_000_000, 1_000_000) == SizingDecision.PER_TABLE_BATCHED

    def test_empty_database(self):
        assert plan(False, 0, 0) == SizingDecision.SINGLE_FILE

    @pytest.mark.parametrize("force_split", [False, True])
    @pytest.mark.parametrize("total", [0, 1, 99, 100, 101, 10_000])
    def test_decision_table_exhaustive(self, force_split, total):
        """Every input maps to the variant of the first matching rule."""
        threshold = 100
        decision = plan(force_split, total, threshold)

        if total > threshold:
            assert decision == SizingDecision.PER_TABLE_BATCHED
        elif force_split:
            assert decision == SizingDecision.SPLIT_SCHEMA_DATA
        else:
            assert decision == SizingDecision.SINGLE_FILE


class TestTotalRowCount:
    """Tests for total_row_count."""

    def test_sum(self):
        tables = [TableInfo("orders", 50), TableInfo("customers", 10)]
        assert total_row_count(tables) == 60

    def test_no_tables(self):
        assert total_row_count([]) == 0


class TestBatchWindows:
    """Tests for batch_windows."""

    def test_two_million_rows(self):
        windows = batch_windows(2_000_000, 500_000)
        assert [w.offset for w in windows] == [0, 500_000, 1_000_000, 1_500_000, 2_000_000]
        assert [w.index for w in windows] == [1, 2, 3, 4, 5]
        assert all(w.size == 500_000 for w in windows)

    def test_empty_table_gets_one_window(self):
        assert batch_windows(0, 1000) == [BatchWindow(index=1, offset=0, size=1000)]

    def test_smaller_than_batch(self):
        assert len(batch_windows(999, 1000)) == 1

    @pytest.mark.parametrize("rows, size", [
        (0, 1), (1, 1), (7, 3), (9, 3), (10, 3), (1_000_001, 250_000)
    ])
    def test_window_count(self, rows, size):
        assert len(batch_windows(rows, size)) == rows // size + 1

    def test_windows_are_contiguous(self):
        windows = batch_windows(10, 3)
        for previous, current in zip(windows, windows[1:]):
            assert current.offset == previous.offset + previous.size

    @pytest.mark.parametrize("size", [0, -5])
    def test_invalid_batch_size(self, size):
        with pytest.raises(ValueError):
            batch_windows(10, size)
