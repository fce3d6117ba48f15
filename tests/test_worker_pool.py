"""Tests for WorkerPool and the script logger."""

import logging

import pytest
from greenscore.utils.logger import GreenScoreLogger
from greenscore.utils.worker_pool import PoolStats, WorkerPool


def _score(shop_id: str) -> int:
    if shop_id == "bad":
        raise ValueError("no such shop")
    return len(shop_id)


class TestWorkerPool:
    def test_collects_success_and_failure(self):
        pool = WorkerPool(max_workers=3)
        results = pool.map(_score, ["a", "bb", "bad", "cccc"], desc="Recompute")

        assert [r.item for r in results] == ["a", "bb", "bad", "cccc"]
        assert [r.value for r in results if r.ok] == [1, 2, 4]
        failed = results[2]
        assert failed.ok is False
        assert isinstance(failed.error, ValueError)

        assert pool.get_stats() == PoolStats(max_workers=3, submitted=4, succeeded=3, failed=1)

    def test_stats_accumulate(self):
        pool = WorkerPool(max_workers=2)
        pool.map(_score, ["a"])
        pool.map(_score, ["bad"])
        stats = pool.get_stats()
        assert (stats.submitted, stats.succeeded, stats.failed) == (2, 1, 1)

    def test_empty(self):
        pool = WorkerPool()
        assert pool.map(_score, []) == []
        assert pool.get_stats().submitted == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            WorkerPool(max_workers=0)

    def test_failure_logged(self, caplog):
        pool = WorkerPool(max_workers=1, logger=logging.getLogger("greenscore.test_pool"))
        with caplog.at_level(logging.ERROR, logger="greenscore.test_pool"):
            pool.map(_score, ["bad"])
        assert "bad failed: no such shop" in caplog.text


class TestGreenScoreLogger:
    def test_fields_and_tracking(self, capsys):
        log = GreenScoreLogger(name="greenscore.test_logger", task="recompute")
        log.info("Shop score", shop="s1", score=96)
        log.warning("Slow shop", shop="s2")
        log.error("Recompute failed", exception=RuntimeError("deadlock"), shop="s3")

        out = capsys.readouterr().out
        assert "| recompute |" in out
        assert "Shop score [shop=s1 score=96]" in out

        summary = log.get_error_summary()
        assert summary["total_warnings"] == 1
        assert summary["total_errors"] == 1
        assert summary["errors"][0].exception == "deadlock"
        assert summary["errors"][0].fields == {"shop": "s3"}
        assert "Recompute failed: deadlock [shop=s3]" in out

    def test_run_summary(self, capsys):
        log = GreenScoreLogger(name="greenscore.test_run", task="recompute")
        log.log_run_start(3)
        log.log_run_complete(succeeded=2, failed=1)
        out = capsys.readouterr().out
        assert "Starting recompute [shops=3]" in out
        assert "succeeded=2 failed=1" in out
