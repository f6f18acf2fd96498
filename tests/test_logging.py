"""Tests for UsageLog model and UsageStore."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta

import pytest

from resume_optimizer.logging.models import UsageLog
from resume_optimizer.logging.usage_store import UsageStore


# --- UsageLog model tests ---


class TestUsageLog:
    def test_create_minimal(self):
        log = UsageLog(mode="optimize")
        assert log.mode == "optimize"
        assert log.session_id == "anonymous"
        assert log.provider == "anthropic"
        assert log.success is True
        assert log.rounds == 0
        assert log.id  # uuid auto-generated

    def test_create_full(self):
        log = UsageLog(
            mode="refine",
            session_id="sess-123",
            provider="openai",
            job_title="Backend Engineer",
            initial_fit=0.55,
            final_fit=0.8,
            rounds=2,
            termination_reason="target_reached",
            elapsed_seconds=42.5,
            total_input_tokens=5000,
            total_output_tokens=3000,
            estimated_cost_usd=0.05,
        )
        assert log.final_fit == 0.8
        assert log.termination_reason == "target_reached"
        assert log.total_input_tokens == 5000

    def test_unique_ids(self):
        assert UsageLog(mode="optimize").id != UsageLog(mode="optimize").id


# --- UsageStore tests ---


@pytest.fixture
def store(tmp_path):
    return UsageStore(tmp_path / "nested" / "usage.db")


class TestUsageStore:
    def test_creates_db_in_wal_mode(self, store):
        assert store.db_path.exists()
        conn = sqlite3.connect(str(store.db_path))
        try:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        finally:
            conn.close()

    def test_save_and_get(self, store):
        log = UsageLog(mode="optimize", job_title="Data Engineer", final_fit=0.7, rounds=2)
        store.save_log(log)
        logs = store.get_logs()
        assert len(logs) == 1
        assert logs[0].id == log.id
        assert logs[0].job_title == "Data Engineer"
        assert logs[0].final_fit == 0.7
        assert logs[0].success is True
        assert isinstance(logs[0].timestamp, datetime)

    def test_filter_by_session(self, store):
        store.save_log(UsageLog(mode="optimize", session_id="a"))
        store.save_log(UsageLog(mode="select", session_id="b"))
        logs = store.get_logs(session_id="a")
        assert [log.mode for log in logs] == ["optimize"]

    def test_newest_first_and_limit(self, store):
        now = datetime.now()
        for i in range(3):
            store.save_log(UsageLog(mode="optimize", job_title=f"job {i}", timestamp=now + timedelta(seconds=i)))
        logs = store.get_logs(limit=2)
        assert [log.job_title for log in logs] == ["job 2", "job 1"]

    def test_save_is_idempotent_per_id(self, store):
        log = UsageLog(mode="optimize")
        store.save_log(log)
        store.save_log(log)
        assert len(store.get_logs()) == 1

    def test_monthly_stats(self, store):
        store.save_log(UsageLog(mode="optimize", final_fit=0.8, total_input_tokens=100,
                                total_output_tokens=50, estimated_cost_usd=0.01))
        store.save_log(UsageLog(mode="optimize", final_fit=0.6, total_input_tokens=200,
                                total_output_tokens=70, estimated_cost_usd=0.02, success=False,
                                error_message="committee.writer failed"))
        stats = store.get_monthly_stats()
        assert stats["total_runs"] == 2
        assert stats["total_input_tokens"] == 300
        assert stats["total_output_tokens"] == 120
        assert stats["total_cost_usd"] == pytest.approx(0.03)
        assert stats["avg_final_fit"] == pytest.approx(0.7)
        assert stats["success_rate"] == 50.0
        assert stats["month"] == datetime.now().strftime("%Y-%m")

    def test_empty_stats(self, store):
        stats = store.get_monthly_stats()
        assert stats["total_runs"] == 0
        assert stats["avg_final_fit"] is None
        assert stats["success_rate"] == 0.0
        assert store.get_total_cost() == 0.0

    def test_total_cost(self, store):
        store.save_log(UsageLog(mode="optimize", estimated_cost_usd=0.25))
        store.save_log(UsageLog(mode="refine", estimated_cost_usd=0.5))
        assert store.get_total_cost() == pytest.approx(0.75)
