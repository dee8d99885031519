"""SQLite persistence for split runs, produced segments, and audit trails."""
from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import List, Optional, Tuple

from common.models import SegmentRecord, SplitResult, SplitRunRecord


SCHEMA_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at REAL NOT NULL
)
"""

MIGRATIONS: List[Tuple[int, List[str]]] = [
    (
        1,
        [
            """
            CREATE TABLE IF NOT EXISTS split_runs (
                run_id TEXT PRIMARY KEY,
                source_path TEXT NOT NULL,
                status TEXT NOT NULL,
                rows_per_file INTEGER NOT NULL,
                total_segments INTEGER NOT NULL DEFAULT 0,
                total_rows INTEGER NOT NULL DEFAULT 0,
                header TEXT NOT NULL DEFAULT '',
                detail TEXT,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_split_runs_updated_at ON split_runs(updated_at)
            """,
            """
            CREATE TABLE IF NOT EXISTS segments (
                run_id TEXT NOT NULL,
                segment_index INTEGER NOT NULL,
                path TEXT NOT NULL,
                rows INTEGER NOT NULL,
                bytes_written INTEGER NOT NULL,
                created_at REAL NOT NULL,
                PRIMARY KEY (run_id, segment_index),
                FOREIGN KEY(run_id) REFERENCES split_runs(run_id)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS audit_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entity TEXT NOT NULL,
                action TEXT NOT NULL,
                detail TEXT,
                created_at REAL NOT NULL
            )
            """,
        ],
    ),
    (
        2,
        [
            """
            CREATE TABLE IF NOT EXISTS job_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT NOT NULL,
                state TEXT NOT NULL,
                detail TEXT,
                created_at REAL NOT NULL
            )
            """,
            """
            CREATE INDEX IF NOT EXISTS idx_job_events_run ON job_events(run_id, created_at)
            """,
        ],
    ),
]


def initialize(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        _apply_migrations(conn)


def upsert_split_run(
    db_path: Path,
    run_id: str,
    status: str,
    *,
    source_path: str = "",
    rows_per_file: int = 0,
    detail: str | None = None,
) -> None:
    initialize(db_path)
    now = time.time()
    with sqlite3.connect(db_path) as conn:
        row = conn.execute("SELECT 1 FROM split_runs WHERE run_id = ?", (run_id,)).fetchone()
        if row:
            conn.execute(
                "UPDATE split_runs SET status = ?, detail = ?, updated_at = ? WHERE run_id = ?",
                (status, detail, now, run_id),
            )
        else:
            conn.execute(
                """
                INSERT INTO split_runs(run_id, source_path, status, rows_per_file, detail, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (run_id, source_path, status, rows_per_file, detail, now, now),
            )
        conn.commit()


def record_split_result(db_path: Path, run_id: str, result: SplitResult) -> None:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            UPDATE split_runs
            SET total_segments = ?, total_rows = ?, header = ?, updated_at = ?
            WHERE run_id = ?
            """,
            (result.total_segments, result.total_rows, result.header, time.time(), run_id),
        )
        conn.commit()


def record_segment(db_path: Path, run_id: str, record: SegmentRecord) -> None:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT OR REPLACE INTO segments(run_id, segment_index, path, rows, bytes_written, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (run_id, record.index, str(record.path), record.rows, record.bytes_written, time.time()),
        )
        conn.commit()


def record_audit_event(db_path: Path, entity: str, action: str, detail: str | None = None) -> None:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO audit_log(entity, action, detail, created_at) VALUES (?, ?, ?, ?)",
            (entity, action, detail, time.time()),
        )
        conn.commit()


def record_job_event(db_path: Path, run_id: str, state: str, detail: str | None = None) -> None:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO job_events(run_id, state, detail, created_at) VALUES (?, ?, ?, ?)",
            (run_id, state, detail, time.time()),
        )
        conn.commit()


def fetch_split_run(db_path: Path, run_id: str) -> Optional[SplitRunRecord]:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        row = conn.execute(
            """
            SELECT run_id, source_path, status, rows_per_file, total_segments,
                   total_rows, header, detail, updated_at
            FROM split_runs
            WHERE run_id = ?
            """,
            (run_id,),
        ).fetchone()
    return _run_from_row(row) if row else None


def fetch_split_runs(db_path: Path, *, limit: int = 100) -> List[SplitRunRecord]:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT run_id, source_path, status, rows_per_file, total_segments,
                   total_rows, header, detail, updated_at
            FROM split_runs
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    return [_run_from_row(row) for row in rows]


def fetch_segments(db_path: Path, run_id: str) -> List[SegmentRecord]:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT segment_index, path, rows, bytes_written
            FROM segments
            WHERE run_id = ?
            ORDER BY segment_index
            """,
            (run_id,),
        ).fetchall()
    return [
        SegmentRecord(index=row[0], path=Path(row[1]), rows=row[2], bytes_written=row[3])
        for row in rows
    ]


def fetch_job_events(db_path: Path, run_id: str) -> List[Tuple[str, Optional[str]]]:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(
            "SELECT state, detail FROM job_events WHERE run_id = ? ORDER BY id",
            (run_id,),
        ).fetchall()
    return [(row[0], row[1]) for row in rows]


def _run_from_row(row: tuple) -> SplitRunRecord:
    return SplitRunRecord(
        run_id=row[0],
        source_path=row[1],
        status=row[2],
        rows_per_file=int(row[3]),
        total_segments=int(row[4]),
        total_rows=int(row[5]),
        header=row[6] or "",
        detail=row[7],
        updated_at=float(row[8] or 0.0),
    )


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(SCHEMA_MIGRATIONS_TABLE)
    applied_versions = {
        row[0]
        for row in conn.execute("SELECT version FROM schema_migrations")
    }
    for version, statements in sorted(MIGRATIONS, key=lambda item: item[0]):
        if version in applied_versions:
            continue
        for statement in statements:
            conn.execute(statement)
        conn.execute(
            "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
            (version, time.time()),
        )
        conn.commit()
