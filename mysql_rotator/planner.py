"""
Sizing decisions for MySQL Backup Rotator.

A database is dumped in one of three shapes depending on its total row
count:

- at or below ``db_threshold``: one file, or schema + data when
  ``force_split`` is set
- above ``db_threshold``: schema once, then every table in row windows of
  ``batch_size`` (``force_split`` makes no difference here)
"""

from typing import Iterable

from .models import BatchWindow, SizingDecision, TableInfo


def plan(force_split: bool, total_row_count: int, db_threshold: int) -> SizingDecision:
    """Choose the dump strategy for a database."""
    if not force_split and total_row_count <= db_threshold:
        return SizingDecision.SINGLE_FILE
    if force_split and total_row_count <= db_threshold:
        return SizingDecision.SPLIT_SCHEMA_DATA
    return SizingDecision.PER_TABLE_BATCHED


def total_row_count(tables: Iterable[TableInfo]) -> int:
    return sum(table.row_count for table in tables)


def batch_windows(row_count: int, batch_size: int) -> list[BatchWindow]:
    """
    Split a table of ``row_count`` rows into windows of ``batch_size``.

    Offsets run 0, b, 2b, ... while ``offset <= row_count``, so there are
    ``row_count // batch_size + 1`` windows. An empty table, or one whose
    size is an exact multiple of the batch size, gets a trailing window
    that selects no rows.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    return [
        BatchWindow(index=index, offset=offset, size=batch_size)
        for index, offset in enumerate(range(0, row_count + 1, batch_size), start=1)
    ]
