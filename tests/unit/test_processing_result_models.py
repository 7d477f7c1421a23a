from __future__ import annotations

from datetime import UTC, datetime

import pytest

from gestionale.models.processing_result import BatchStatsAccumulator, FileStat, ProcessingResult


def test_total_files():
    now = datetime.now(UTC)
    result = ProcessingResult(
        success_files=3,
        failed_files=2,
        total_inserted_rows=10,
        rejected_rows=1,
        skipped_sheets=0,
        start_time=now,
        end_time=now,
        elapsed_seconds=0.0,
        throughput_rows_per_sec=0.0,
    )
    assert result.total_files == 5
    assert result.file_stats is None


def test_file_stat_batch_defaults():
    stat = FileStat(file_name="a.xlsx", status="success", inserted_rows=5, rejected_rows=0, elapsed_seconds=0.2)
    assert (stat.total_batches, stat.avg_batch_seconds, stat.p95_batch_seconds) == (0, 0.0, 0.0)


def test_batch_stats_empty():
    assert BatchStatsAccumulator().get_stats() == (0, 0.0, 0.0)


def test_batch_stats_single_batch():
    acc = BatchStatsAccumulator()
    acc.add_batch_time(0.5)
    assert acc.get_stats() == (1, 0.5, 0.5)


def test_batch_stats_many_batches():
    acc = BatchStatsAccumulator()
    for t in [0.1, 0.2, 0.3, 0.4, 1.0]:
        acc.add_batch_time(t)
    total, avg, p95 = acc.get_stats()
    assert total == 5
    assert avg == pytest.approx(0.4)
    assert 0.4 <= p95 <= 1.0
