"""Run history persisted to a local SQLite database."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from resume_optimizer.logging.models import UsageLog

DEFAULT_DB_PATH = Path.home() / ".resume-optimizer" / "usage.db"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    mode TEXT NOT NULL,
    provider TEXT NOT NULL,
    job_title TEXT,
    coverage REAL,
    initial_fit REAL,
    final_fit REAL,
    rounds INTEGER NOT NULL DEFAULT 0,
    termination_reason TEXT,
    elapsed_seconds REAL NOT NULL DEFAULT 0.0,
    total_input_tokens INTEGER NOT NULL DEFAULT 0,
    total_output_tokens INTEGER NOT NULL DEFAULT 0,
    estimated_cost_usd REAL NOT NULL DEFAULT 0.0,
    success INTEGER NOT NULL DEFAULT 1,
    error_message TEXT
);
CREATE INDEX IF NOT EXISTS idx_runs_timestamp ON runs (timestamp);
"""

_FIELDS = tuple(UsageLog.model_fields)


class UsageStore:
    """Append-mostly run log. One row per CLI run, keyed by the log id."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._session() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def save_log(self, log: UsageLog) -> None:
        """Insert the run, replacing any earlier row with the same id."""
        row = log.model_dump()
        row["timestamp"] = log.timestamp.isoformat()
        row["success"] = int(log.success)
        names = ", ".join(_FIELDS)
        params = ", ".join(f":{name}" for name in _FIELDS)
        with self._session() as conn:
            conn.execute(f"INSERT OR REPLACE INTO runs ({names}) VALUES ({params})", row)

    def get_logs(self, session_id: str | None = None, limit: int = 50) -> list[UsageLog]:
        """Newest runs first, optionally restricted to one session."""
        where, args = ("WHERE session_id = ?", [session_id]) if session_id is not None else ("", [])
        with self._session() as conn:
            rows = conn.execute(
                f"SELECT * FROM runs {where} ORDER BY timestamp DESC LIMIT ?",
                (*args, limit),
            ).fetchall()
        return [
            UsageLog(
                **{
                    **dict(row),
                    "timestamp": datetime.fromisoformat(row["timestamp"]),
                    "success": bool(row["success"]),
                }
            )
            for row in rows
        ]

    def get_monthly_stats(self) -> dict:
        now = datetime.now()
        since = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0).isoformat()
        with self._session() as conn:
            row = conn.execute(
                """SELECT COUNT(*) AS runs,
                          COALESCE(SUM(total_input_tokens), 0) AS tokens_in,
                          COALESCE(SUM(total_output_tokens), 0) AS tokens_out,
                          COALESCE(SUM(estimated_cost_usd), 0.0) AS cost,
                          AVG(final_fit) AS avg_fit,
                          COALESCE(SUM(success), 0) AS succeeded
                   FROM runs WHERE timestamp >= ?""",
                (since,),
            ).fetchone()
        runs = row["runs"]
        return {
            "total_runs": runs,
            "total_input_tokens": row["tokens_in"],
            "total_output_tokens": row["tokens_out"],
            "total_cost_usd": row["cost"],
            "avg_final_fit": round(row["avg_fit"], 3) if row["avg_fit"] is not None else None,
            "success_rate": row["succeeded"] / runs * 100 if runs else 0.0,
            "month": now.strftime("%Y-%m"),
        }

    def get_total_cost(self) -> float:
        with self._session() as conn:
            (total,) = conn.execute("SELECT COALESCE(SUM(estimated_cost_usd), 0.0) FROM runs").fetchone()
        return total
