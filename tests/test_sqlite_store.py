from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from common.models import SegmentRecord, SplitResult
from core.jobs import JobState, JobStateMachine
from storage import (
    fetch_job_events,
    fetch_segments,
    fetch_split_run,
    fetch_split_runs,
    init_sqlite,
    record_audit_event,
    record_segment,
    record_split_result,
)


def test_initialize_applies_migrations_once(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "runs.db"
    init_sqlite(db_path)
    init_sqlite(db_path)
    with sqlite3.connect(db_path) as conn:
        versions = [row[0] for row in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert versions == [1, 2]
    assert {"split_runs", "segments", "audit_log", "job_events"}.issubset(tables)


def test_state_machine_records_lifecycle(tmp_path: Path) -> None:
    db_path = tmp_path / "runs.db"
    tracker = JobStateMachine("run-1", db_path, source_path="data.csv", rows_per_file=10)
    tracker.transition(JobState.SPLITTING, detail="data.csv")
    record_segment(db_path, "run-1", SegmentRecord(index=0, path=Path("out/data_part1.csv"), rows=10, bytes_written=42))
    record_split_result(db_path, "run-1", SplitResult(total_segments=1, header="a,b", total_rows=10, bytes_read=50))
    tracker.transition(JobState.DONE, detail="segments=1")

    run = fetch_split_run(db_path, "run-1")
    assert run is not None
    assert run.status == "DONE"
    assert run.source_path == "data.csv"
    assert run.rows_per_file == 10
    assert (run.total_segments, run.total_rows, run.header) == (1, 10, "a,b")
    assert [state for state, _ in fetch_job_events(db_path, "run-1")] == ["PENDING", "SPLITTING", "DONE"]
    segments = fetch_segments(db_path, "run-1")
    assert [(s.index, s.path, s.rows) for s in segments] == [(0, Path("out/data_part1.csv"), 10)]


def test_terminal_state_rejects_transitions(tmp_path: Path) -> None:
    tracker = JobStateMachine("run-2", tmp_path / "runs.db")
    tracker.mark_failed("boom")
    with pytest.raises(ValueError):
        tracker.transition(JobState.SPLITTING)
    run = fetch_split_run(tmp_path / "runs.db", "run-2")
    assert run.status == "FAILED"
    assert run.detail == "boom"


def test_state_machine_without_database_is_in_memory_only() -> None:
    tracker = JobStateMachine("run-3", None)
    tracker.transition(JobState.SPLITTING)
    tracker.mark_cancelled("timeout")
    assert tracker.state == JobState.CANCELLED


def test_fetch_split_runs_and_audit(tmp_path: Path) -> None:
    db_path = tmp_path / "runs.db"
    JobStateMachine("a", db_path, source_path="a.csv")
    JobStateMachine("b", db_path, source_path="b.csv")
    record_audit_event(db_path, entity="split", action="split", detail="ok")
    assert {run.run_id for run in fetch_split_runs(db_path)} == {"a", "b"}
    assert fetch_split_run(db_path, "missing") is None
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM audit_log").fetchone()[0] == 1
