"""State machine tracking split runs."""
from __future__ import annotations

import threading
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from storage import record_job_event, upsert_split_run


class JobState(str, Enum):
    """Supported lifecycle states for split runs."""

    PENDING = "PENDING"
    SPLITTING = "SPLITTING"
    DONE = "DONE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


_TERMINAL_STATES = {JobState.DONE, JobState.FAILED, JobState.CANCELLED}
_STATE_ORDER: Dict[JobState, int] = {
    JobState.PENDING: 0,
    JobState.SPLITTING: 1,
    JobState.DONE: 2,
}


class JobStateMachine:
    """Thread-safe helper that records run state transitions to SQLite."""

    def __init__(
        self,
        run_id: str,
        sqlite_path: Optional[Path | str],
        *,
        source_path: str = "",
        rows_per_file: int = 0,
    ) -> None:
        self.run_id = run_id
        self._sqlite_path = Path(sqlite_path) if sqlite_path else None
        self._source_path = source_path
        self._rows_per_file = rows_per_file
        self._state = JobState.PENDING
        self._lock = threading.Lock()
        self._record(JobState.PENDING, detail="run registered")

    @property
    def state(self) -> JobState:
        return self._state

    def transition(self, target: JobState, *, detail: str | None = None) -> None:
        with self._lock:
            if target == self._state:
                return
            if not self._can_transition(target):
                raise ValueError(f"Invalid transition {self._state.value} -> {target.value}")
            self._state = target
            self._record(target, detail=detail)

    def mark_failed(self, detail: str | None = None) -> None:
        with self._lock:
            self._state = JobState.FAILED
            self._record(JobState.FAILED, detail=detail)

    def mark_cancelled(self, detail: str | None = None) -> None:
        with self._lock:
            self._state = JobState.CANCELLED
            self._record(JobState.CANCELLED, detail=detail)

    def _can_transition(self, target: JobState) -> bool:
        if self._state in _TERMINAL_STATES:
            return False
        if target in {JobState.FAILED, JobState.CANCELLED}:
            return True
        return _STATE_ORDER.get(target, -1) >= _STATE_ORDER.get(self._state, -1)

    def _record(self, state: JobState, detail: str | None) -> None:
        if not self._sqlite_path:
            return
        upsert_split_run(
            self._sqlite_path,
            self.run_id,
            state.value,
            source_path=self._source_path,
            rows_per_file=self._rows_per_file,
            detail=detail,
        )
        record_job_event(self._sqlite_path, self.run_id, state.value, detail)
